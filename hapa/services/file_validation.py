from __future__ import annotations

import logging
import os
import re
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from hapa.core.errors import FileValidationError

logger = logging.getLogger(__name__)

MB = 1024 * 1024
MAX_IMAGE_SIZE = 5 * MB
MAX_FILE_SIZE = 10 * MB
MAX_FILENAME_LENGTH = 100
SIGNATURE_BYTES = 32

ALLOWED_MIME_TYPES: Dict[str, set] = {
    "image": {"image/jpeg", "image/jpg", "image/png", "image/webp", "image/gif"},
    "video": {"video/mp4", "video/mpeg", "video/quicktime", "video/webm"},
    "audio": {"audio/mpeg", "audio/mp3", "audio/wav", "audio/ogg", "audio/webm"},
    "document": {
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    },
}

ALLOWED_EXTENSIONS: Dict[str, set] = {
    "image": {"jpg", "jpeg", "png", "webp", "gif"},
    "video": {"mp4", "mpeg", "mpg", "mov", "webm"},
    "audio": {"mp3", "wav", "ogg", "webm"},
    "document": {"pdf", "doc", "docx"},
}


def _starts(*prefixes: bytes) -> Callable[[bytes], bool]:
    return lambda head: any(head.startswith(p) for p in prefixes)


def _riff(form: bytes) -> Callable[[bytes], bool]:
    return lambda head: head[:4] == b"RIFF" and head[8:12] == form


def _ftyp(head: bytes) -> bool:
    return head[4:8] in (b"ftyp", b"moov", b"mdat", b"wide")


def _mp3(head: bytes) -> bool:
    if head.startswith(b"ID3"):
        return True
    # MPEG audio frame sync: 11 set bits
    return len(head) >= 2 and head[0] == 0xFF and (head[1] & 0xE0) == 0xE0


_EBML = _starts(b"\x1a\x45\xdf\xa3")

SIGNATURE_CHECKS: Dict[str, Callable[[bytes], bool]] = {
    "image/jpeg": _starts(b"\xff\xd8\xff"),
    "image/jpg": _starts(b"\xff\xd8\xff"),
    "image/png": _starts(b"\x89PNG\r\n\x1a\n"),
    "image/gif": _starts(b"GIF87a", b"GIF89a"),
    "image/webp": _riff(b"WEBP"),
    "video/mp4": _ftyp,
    "video/quicktime": _ftyp,
    "video/mpeg": _starts(b"\x00\x00\x01\xba", b"\x00\x00\x01\xb3"),
    "video/webm": _EBML,
    "audio/webm": _EBML,
    "audio/mpeg": _mp3,
    "audio/mp3": _mp3,
    "audio/wav": _riff(b"WAVE"),
    "audio/ogg": _starts(b"OggS"),
    "application/pdf": _starts(b"%PDF"),
    "application/msword": _starts(b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"),
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": _starts(b"PK\x03\x04"),
}


@dataclass(frozen=True)
class ValidatedFile:
    filename: str
    mime_type: str
    size: int
    category: str
    data: bytes


def category_for_mime(mime_type: str) -> Optional[str]:
    for category, types in ALLOWED_MIME_TYPES.items():
        if mime_type in types:
            return category
    return None


def max_size_for(category: str) -> int:
    return MAX_IMAGE_SIZE if category == "image" else MAX_FILE_SIZE


def file_extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


def signature_matches(mime_type: str, head: bytes) -> bool:
    check = SIGNATURE_CHECKS.get(mime_type)
    return bool(check and check(head[:SIGNATURE_BYTES]))


def sanitize_filename(filename: str) -> str:
    """
    Basename only, unsafe characters replaced by '_', bounded length.
    The extension is kept.
    """
    name = os.path.basename((filename or "").replace("\\", "/"))
    name = re.sub(r"[^A-Za-z0-9._-]", "_", name)
    name = re.sub(r"_+", "_", name).strip("._") or "file"

    if len(name) > MAX_FILENAME_LENGTH:
        ext = file_extension(name)
        stem = name[: MAX_FILENAME_LENGTH - len(ext) - 1] if ext else name[:MAX_FILENAME_LENGTH]
        name = f"{stem}.{ext}" if ext else stem
    return name


def form_upload_filename(original: str, file_type: str, index: int = 0) -> str:
    stamp = int(time.time() * 1000)
    return f"hapa_form_{file_type}_{stamp}_{index}_{sanitize_filename(original)}"


async def read_upload(upload) -> bytes:
    """Reads at most one byte past MAX_FILE_SIZE, enough for validate_upload to reject anything larger."""
    return await upload.read(MAX_FILE_SIZE + 1)


def validate_upload(filename: str, content_type: Optional[str], data: bytes) -> ValidatedFile:
    """
    Allow-list MIME check, size ceiling, extension/category match and
    magic-number check. Raises FileValidationError with a machine code.
    """
    mime_type = (content_type or "").split(";")[0].strip().lower()
    category = category_for_mime(mime_type)
    if category is None:
        raise FileValidationError(f"File type not allowed: {mime_type or 'unknown'}", code="type_not_allowed")

    size = len(data)
    if size == 0:
        raise FileValidationError("File is empty.", code="empty_file")

    limit = max_size_for(category)
    if size > limit:
        raise FileValidationError(
            f"File too large ({size} bytes, max {limit // MB}MB).", code="file_too_large"
        )

    ext = file_extension(filename or "")
    if ext not in ALLOWED_EXTENSIONS[category]:
        raise FileValidationError(
            f"Extension '.{ext}' does not match {category} files.", code="extension_mismatch"
        )

    if not signature_matches(mime_type, data[:SIGNATURE_BYTES]):
        logger.warning(
            "[file-validation] signature mismatch for %s",
            filename,
            extra={"mime_type": mime_type, "file_size": size},
        )
        raise FileValidationError("File content does not match its declared type.", code="signature_mismatch")

    return ValidatedFile(
        filename=sanitize_filename(filename),
        mime_type=mime_type,
        size=size,
        category=category,
        data=data,
    )
