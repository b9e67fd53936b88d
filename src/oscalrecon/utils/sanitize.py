"""OSCAL string and document sanitization.

OSCAL string fields must match ``^\\S(.*\\S)?$``: non-empty, no leading or
trailing whitespace. Blank values are replaced with a reserved placeholder so
required fields keep their place in the document.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Optional

from rich.console import Console

console = Console(stderr=True)

EMPTY_PLACEHOLDER = "No_Input_Recorded"

# OSCAL fields that must stay present as empty arrays
PRESERVE_EMPTY_KEYS = frozenset({"categorizations", "components", "users"})

_OSCAL_PATTERN = re.compile(r"^[^\s\ufeff](.*[^\s\ufeff])?$", re.DOTALL)
_EDGE_WHITESPACE = re.compile(r"^[\s\ufeff\xa0]+|[\s\ufeff\xa0]+$")


def sanitize_string(value: Any, use_default: bool = True) -> Optional[str]:
    """Normalize one value to an OSCAL-compliant string.

    Returns the placeholder (or None when ``use_default`` is False) only when
    nothing but whitespace remains. Content is never discarded to satisfy the
    pattern.
    """
    if value is None:
        return EMPTY_PLACEHOLDER if use_default else None

    cleaned = str(value).strip()
    if not cleaned:
        return EMPTY_PLACEHOLDER if use_default else None

    if _OSCAL_PATTERN.match(cleaned):
        return cleaned

    console.print(
        f"  [yellow]WARN[/yellow] String has whitespace after trim: {cleaned[:100]!r}"
    )
    cleaned = _EDGE_WHITESPACE.sub("", cleaned)

    if not cleaned:
        return EMPTY_PLACEHOLDER if use_default else None

    if not _OSCAL_PATTERN.match(cleaned):
        console.print(
            f"  [yellow]WARN[/yellow] Keeping content despite pattern mismatch "
            f"(length {len(cleaned)}): {cleaned[:200]!r}"
        )
    return cleaned


def is_placeholder(value: Any) -> bool:
    return value == EMPTY_PLACEHOLDER


def _sanitize_node(
    value: Any,
    preserve_empty: bool,
    use_default: bool,
    preserve_keys: frozenset[str],
) -> Any:
    if value is None:
        return None

    if isinstance(value, (list, tuple)):
        items = [
            _sanitize_node(item, preserve_empty, use_default, preserve_keys)
            for item in value
        ]
        items = [item for item in items if item is not None]
        return items if items or preserve_empty else None

    if isinstance(value, str):
        return sanitize_string(value, use_default)

    if not isinstance(value, dict):
        return value

    result: dict[str, Any] = {}
    for key, child in value.items():
        keep_empty = key in preserve_keys
        cleaned = _sanitize_node(child, keep_empty, use_default, preserve_keys)
        if cleaned is not None:
            result[key] = cleaned
        elif keep_empty:
            result[key] = []

    return result if result else None


def sanitize_tree(
    value: Any,
    preserve_empty: bool = False,
    use_default: bool = True,
    preserve_keys: Optional[Iterable[str]] = None,
) -> Any:
    """Return a sanitized copy of a JSON-like document.

    Empty strings become the placeholder, empty arrays and objects are dropped
    (except keys in ``preserve_keys``, which stay as ``[]``). A mapping at the
    root always survives, even when every key was removed. The input is never
    mutated.
    """
    keys = frozenset(preserve_keys) if preserve_keys is not None else PRESERVE_EMPTY_KEYS
    result = _sanitize_node(value, preserve_empty, use_default, keys)
    if result is None and isinstance(value, dict):
        return {}
    return result


def sanitize_props(props: Any) -> list[dict]:
    """Sanitize an OSCAL props array.

    Props whose name and value are both blank are dropped. Optional ``class``,
    ``ns`` and ``remarks`` are kept only when they carry real content.
    """
    if not isinstance(props, list):
        return []

    sanitized: list[dict] = []
    for prop in props:
        if not isinstance(prop, dict):
            continue
        name = sanitize_string(prop.get("name"), True)
        value = sanitize_string(prop.get("value"), True)
        if is_placeholder(name) and is_placeholder(value):
            continue

        cleaned = {k: v for k, v in prop.items() if k not in ("class", "ns", "remarks")}
        cleaned["name"] = name
        cleaned["value"] = value

        for optional in ("class", "ns", "remarks"):
            if prop.get(optional):
                text = sanitize_string(prop[optional], True)
                if not is_placeholder(text):
                    cleaned[optional] = text

        sanitized.append(cleaned)

    return sanitized
