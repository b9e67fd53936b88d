"""Change classification of catalog controls against recorded SSP data.

Only catalog-authored text (title, description) is diffed. Assessment data
from the prior record is always carried forward unchanged.
"""

from __future__ import annotations

import re
from typing import Optional

from ..models.control import ChangeStatus, ControlDefinition, ControlRecord

_WHITESPACE_RUN = re.compile(r"\s+")


def normalize_text(text: Optional[str]) -> str:
    """Trim, collapse whitespace runs and case-fold.

    Line breaks are whitespace, so CRLF, LF and spaces all collapse to one space.
    """
    if not text:
        return ""
    return _WHITESPACE_RUN.sub(" ", text.strip()).casefold()


def texts_match(first: Optional[str], second: Optional[str]) -> bool:
    """Normalized equality. Two blank values match; one blank value does not."""
    if not first and not second:
        return True
    if not first or not second:
        return False
    return normalize_text(first) == normalize_text(second)


def _catalog_fields(definition: ControlDefinition) -> dict:
    return {
        "id": definition.id,
        "catalog_title": definition.title,
        "catalog_description": definition.description,
        "group_title": definition.group_title or "",
        "title": definition.title,
        "description": definition.description,
        "control_class": definition.control_class,
        "params": list(definition.params),
        "props": list(definition.props),
        "parts": list(definition.parts),
        "group_id": definition.group_id,
        "parent_id": definition.parent_id,
    }


def _change_summary(title_changed: bool, description_changed: bool) -> tuple[Optional[str], list[str]]:
    if title_changed and description_changed:
        return "Control title and description updated", ["title", "description"]
    if title_changed:
        return "Control title updated", ["title"]
    if description_changed:
        return "Control description updated", ["description"]
    return None, []


def classify_control(
    definition: ControlDefinition,
    existing: Optional[ControlRecord],
) -> ControlRecord:
    """Merge one catalog definition with the prior record for the same id.

    - no prior record: ``new`` with default assessment fields
    - catalog title and description match: ``unchanged``
    - otherwise: ``changed``, naming what changed and keeping the old text
    """
    if existing is None:
        return ControlRecord(change_status=ChangeStatus.NEW, **_catalog_fields(definition))

    title_changed = not texts_match(definition.title, existing.catalog_title)
    description_changed = not texts_match(definition.description, existing.catalog_description)
    reason, details = _change_summary(title_changed, description_changed)

    catalog = _catalog_fields(definition)
    catalog["group_title"] = catalog["group_title"] or existing.group_title

    previous = {}
    if details:
        previous = {
            "old_title": existing.catalog_title,
            "old_description": existing.catalog_description,
        }

    return ControlRecord(
        **catalog,
        **existing.model_copy(deep=True).assessment(),
        **previous,
        change_status=ChangeStatus.CHANGED if details else ChangeStatus.UNCHANGED,
        change_reason=reason,
        change_details=details or None,
    )
