"""Integrity verification model."""

from __future__ import annotations

from typing import Optional

from .base import CamelModel


class IntegrityCheck(CamelModel):
    has_hash: bool = False
    valid: bool = False
    verified: bool = False
    reason: str = ""
    algorithm: str = "SHA256"
    stored_hash: Optional[str] = None
    calculated_hash: Optional[str] = None
    timestamp: Optional[str] = None
