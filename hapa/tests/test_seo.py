import pytest

from hapa.services.seo import (
    SEO_LIMITS,
    auto_generate_seo_description,
    auto_generate_seo_image,
    auto_generate_seo_title,
    extract_plain_text,
    truncate_text,
    validate_seo_field,
)


def _tree(*paragraphs):
    return {
        "root": {
            "type": "root",
            "children": [
                {"type": "paragraph", "children": [{"type": "text", "text": p}]} for p in paragraphs
            ],
        }
    }


@pytest.mark.parametrize("max_length", [10, 30, 57, 60, 160])
def test_truncate_never_exceeds_budget(max_length):
    text = "Les médias audiovisuels doivent respecter le pluralisme des opinions " * 5
    assert len(truncate_text(text, max_length)) <= max_length
    assert len(truncate_text(text, max_length, add_ellipsis=False)) <= max_length


def test_truncate_prefers_word_boundary():
    text = "alpha beta gamma delta epsilon"
    assert truncate_text(text, 20) == "alpha beta gamma..."
    assert truncate_text("short", 20) == "short"
    assert truncate_text(None, 20) == ""


def test_truncate_hard_cut_when_no_late_space():
    text = "a " + "x" * 40
    out = truncate_text(text, 20)
    assert out == "a " + "x" * 15 + "..."
    assert len(out) == 20


def test_extract_plain_text_flattens_blocks():
    tree = _tree("Premier paragraphe.", "Deuxième   paragraphe.")
    assert extract_plain_text(tree) == "Premier paragraphe. Deuxième paragraphe."
    assert extract_plain_text(None) == ""
    assert extract_plain_text("  brut  ") == "brut"


def test_title_generated_with_site_name():
    data = {"title": {"fr": "Rapport annuel"}}
    assert auto_generate_seo_title(data, "fr", None) == "Rapport annuel — HAPA"


def test_long_title_fits_limit():
    data = {"title": {"fr": "Un titre extrêmement long pour un article " * 3}}
    out = auto_generate_seo_title(data, "fr", None)
    assert out.endswith(" — HAPA")
    assert len(out) <= SEO_LIMITS["title"]["max"]


def test_arabic_title_uses_arabic_site_name():
    data = {"title": {"fr": "Rapport", "ar": "تقرير"}}
    out = auto_generate_seo_title(data, "ar", None)
    assert out.startswith("تقرير — ")
    assert out.endswith("الهيئة العليا للصحافة والإعلام السمعي البصري")


def test_existing_values_are_kept():
    data = {"title": {"fr": "Nouveau"}}
    assert auto_generate_seo_title(data, "fr", "Manuel") == "Manuel"
    assert auto_generate_seo_title(data, "fr", None, operation="update", original="Ancien") is None
    assert auto_generate_seo_description(data, "fr", None, operation="update", original="Ancienne") is None


def test_description_from_content_within_limit():
    long_sentence = "Le Conseil a examiné " + "les programmes diffusés pendant la période électorale " * 5
    data = {"title": {"fr": "T"}, "content": {"fr": _tree(long_sentence + ". Fin.")}}
    out = auto_generate_seo_description(data, "fr", None)
    assert len(out) <= SEO_LIMITS["description"]["max"]
    assert out.endswith("...")


def test_description_accumulates_short_sentences():
    content = _tree("Phrase courte. " * 20)
    out = auto_generate_seo_description({"content": {"fr": content}}, "fr", None)
    assert 100 <= len(out) <= SEO_LIMITS["description"]["max"]


def test_description_falls_back_to_title():
    data = {"title": {"fr": "Communiqué de presse"}, "content": {}}
    assert auto_generate_seo_description(data, "fr", None) == "Communiqué de presse"


def test_image_falls_back_to_hero():
    assert auto_generate_seo_image({"hero_image_id": "h1"}, None) == "h1"
    assert auto_generate_seo_image({"hero_image_id": "h1"}, "m1") == "m1"
    assert auto_generate_seo_image({"hero_image_id": "h1"}, None, operation="update", original="old") is None


@pytest.mark.parametrize(
    "length,kind,status",
    [
        (0, "title", "too-short"),
        (20, "title", "too-short"),
        (45, "title", "good"),
        (58, "title", "warning"),
        (61, "title", "too-long"),
        (140, "description", "good"),
        (158, "description", "warning"),
        (170, "description", "too-long"),
    ],
)
def test_validate_seo_field(length, kind, status):
    result = validate_seo_field("x" * length, kind)
    assert result["status"] == status
    assert result["length"] == length
