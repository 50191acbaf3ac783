import asyncio

import pytest

from hapa.core.errors import FileValidationError
from hapa.services.file_validation import (
    MAX_FILE_SIZE,
    MAX_FILENAME_LENGTH,
    MAX_IMAGE_SIZE,
    form_upload_filename,
    read_upload,
    sanitize_filename,
    validate_upload,
)

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
WEBP = b"RIFF\x00\x00\x00\x00WEBPVP8 " + b"\x00" * 32


def _code(filename, content_type, data):
    with pytest.raises(FileValidationError) as exc:
        validate_upload(filename, content_type, data)
    return exc.value.code


def test_accepts_png():
    checked = validate_upload("capture écran.png", "image/png", PNG)
    assert checked.category == "image"
    assert checked.mime_type == "image/png"
    assert checked.filename == "capture_cran.png"
    assert checked.size == len(PNG)


def test_accepts_webp_with_riff_header():
    assert validate_upload("a.webp", "image/webp", WEBP).category == "image"


def test_rejects_disallowed_mime():
    assert _code("run.exe", "application/x-msdownload", b"MZ" + b"\x00" * 10) == "type_not_allowed"
    assert _code("x.svg", "image/svg+xml", b"<svg/>") == "type_not_allowed"


def test_rejects_empty_file():
    assert _code("a.png", "image/png", b"") == "empty_file"


def test_rejects_oversized_image():
    data = PNG + b"\x00" * MAX_IMAGE_SIZE
    assert _code("big.png", "image/png", data) == "file_too_large"


def test_documents_allow_up_to_ten_megabytes():
    data = b"%PDF-1.7\n" + b"0" * (6 * 1024 * 1024)
    assert validate_upload("rapport.pdf", "application/pdf", data).category == "document"


def test_rejects_extension_mismatch():
    assert _code("a.pdf", "image/png", PNG) == "extension_mismatch"


def test_rejects_spoofed_content():
    assert _code("fake.png", "image/png", b"%PDF-1.4 not an image") == "signature_mismatch"
    assert _code("fake.webp", "image/webp", b"RIFF\x00\x00\x00\x00WAVEfmt ") == "signature_mismatch"


def test_content_type_parameters_are_ignored():
    assert validate_upload("a.png", "image/png; charset=binary", PNG).mime_type == "image/png"


def test_sanitize_filename():
    assert sanitize_filename("../../etc/passwd") == "passwd"
    assert sanitize_filename("C:\\Users\\x\\photo 1.jpg") == "photo_1.jpg"
    assert sanitize_filename("") == "file"

    long_name = "a" * 300 + ".jpeg"
    out = sanitize_filename(long_name)
    assert len(out) == MAX_FILENAME_LENGTH
    assert out.endswith(".jpeg")


def test_form_upload_filename_prefix():
    name = form_upload_filename("photo.png", "screenshot", 2)
    assert name.startswith("hapa_form_screenshot_")
    assert name.endswith("_2_photo.png")


class _Upload:
    def __init__(self, data):
        self.data = data
        self.sizes = []

    async def read(self, size=-1):
        self.sizes.append(size)
        return self.data if size < 0 else self.data[:size]


def test_read_upload_is_bounded():
    upload = _Upload(b"\x00" * (MAX_FILE_SIZE + 4096))
    raw = asyncio.run(read_upload(upload))
    assert upload.sizes == [MAX_FILE_SIZE + 1]
    assert len(raw) == MAX_FILE_SIZE + 1

    with pytest.raises(FileValidationError) as exc:
        validate_upload("preuve.pdf", "application/pdf", b"%PDF" + raw[4:])
    assert exc.value.code == "file_too_large"
