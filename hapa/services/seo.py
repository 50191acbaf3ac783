from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

SEO_LIMITS = {
    "title": {"min": 30, "max": 60, "warning": 55},
    "description": {"min": 120, "max": 160, "warning": 155},
}

SITE_NAMES = {
    "fr": "HAPA",
    "ar": "الهيئة العليا للصحافة والإعلام السمعي البصري",
}

TITLE_SEPARATOR = " — "
ELLIPSIS = "..."

_BLOCK_TYPES = {"paragraph", "heading", "quote", "list", "listitem", "code", "table", "tablerow"}


def _walk(node: Any, out: List[str]) -> None:
    if not isinstance(node, dict):
        return

    node_type = node.get("type")
    if node_type == "linebreak":
        out.append("\n")
        return

    text = node.get("text")
    if isinstance(text, str):
        out.append(text)

    for child in node.get("children") or []:
        _walk(child, out)

    if node_type in _BLOCK_TYPES:
        out.append("\n")


def extract_plain_text(tree: Any) -> str:
    """Flattens a Lexical rich-text tree ({"root": {...}}) into single-spaced text."""
    if not tree:
        return ""
    if isinstance(tree, str):
        raw = tree
    else:
        parts: List[str] = []
        _walk(tree.get("root", tree) if isinstance(tree, dict) else None, parts)
        raw = "".join(parts)

    raw = re.sub(r"\n+", " ", raw)
    return re.sub(r"\s+", " ", raw).strip()


def truncate_text(text: Optional[str], max_length: int, add_ellipsis: bool = True) -> str:
    """
    Cuts at the last space inside the budget, unless that space falls before
    80% of it. Never returns more than max_length characters.
    """
    if not text or len(text) <= max_length:
        return text or ""

    effective = max_length - len(ELLIPSIS) if add_ellipsis else max_length

    cut = text.rfind(" ", 0, effective + 1)
    if cut == -1 or cut < effective * 0.8:
        cut = effective

    truncated = text[:cut].strip()
    return f"{truncated}{ELLIPSIS}" if add_ellipsis else truncated


def _localized(field: Any, locale: str) -> Any:
    if isinstance(field, dict) and "root" not in field:
        return field.get(locale) or field.get("fr")
    return field


def site_name_for(locale: str) -> str:
    return SITE_NAMES.get(locale, SITE_NAMES["fr"])


def auto_generate_seo_title(
    data: Dict[str, Any],
    locale: str,
    value: Optional[str],
    *,
    operation: str = "create",
    original: Optional[str] = None,
) -> Optional[str]:
    if value or (operation == "update" and original):
        return value

    title = _localized(data.get("title"), locale)
    if not title or not isinstance(title, str):
        return value

    site_name = site_name_for(locale)
    budget = SEO_LIMITS["title"]["max"] - len(site_name) - len(TITLE_SEPARATOR)
    if len(title) > budget:
        title = truncate_text(title, budget, add_ellipsis=False)
    return f"{title}{TITLE_SEPARATOR}{site_name}"


def summarize(plain_text: str, max_length: int = SEO_LIMITS["description"]["max"]) -> str:
    sentences = re.split(r"\.\s+", plain_text)
    first = sentences[0].strip()

    if 100 <= len(first) <= max_length:
        description = first + "."
    elif len(first) > max_length:
        description = truncate_text(first, max_length, True)
    else:
        description = first
        for sentence in sentences[1:]:
            if len(description) >= 100:
                break
            description += ". " + sentence.strip()

    if len(description) > max_length:
        description = truncate_text(description, max_length, True)
    return description


def auto_generate_seo_description(
    data: Dict[str, Any],
    locale: str,
    value: Optional[str],
    *,
    operation: str = "create",
    original: Optional[str] = None,
) -> Optional[str]:
    if value or (operation == "update" and original):
        return value

    max_length = SEO_LIMITS["description"]["max"]
    content = _localized(data.get("content"), locale)

    if not content:
        title = _localized(data.get("title"), locale)
        if title and isinstance(title, str):
            return truncate_text(title, max_length, True)
        return value

    plain = extract_plain_text(content)
    if not plain:
        return value

    return summarize(plain, max_length) or value


def auto_generate_seo_image(
    data: Dict[str, Any],
    value: Any,
    *,
    operation: str = "create",
    original: Any = None,
) -> Any:
    if value or (operation == "update" and original):
        return value
    return data.get("hero_image_id") or value


def validate_seo_field(text: Optional[str], kind: str) -> Dict[str, Any]:
    length = len(text or "")
    limits = SEO_LIMITS[kind]

    if length == 0:
        status = "too-short"
        message = f"{'Title' if kind == 'title' else 'Description'} is required for SEO"
    elif length < limits["min"]:
        status = "too-short"
        message = f"Too short. Recommended minimum: {limits['min']} characters"
    elif length > limits["max"]:
        status = "too-long"
        message = f"Too long. Maximum: {limits['max']} characters"
    elif length > limits["warning"]:
        status = "warning"
        message = f"Approaching limit. Maximum: {limits['max']} characters"
    else:
        status = "good"
        message = f"Good length ({length}/{limits['max']} characters)"

    return {"status": status, "length": length, "message": message}
