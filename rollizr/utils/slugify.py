"""Filesystem-safe names for per-company output files."""

from __future__ import annotations

import re
from typing import Any

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(value: Any, fallback: str = "company") -> str:
    """Lowercase ``value`` and join its alphanumeric runs with single hyphens.

    Company ids read from CSV may be numbers or missing, so any value is
    accepted; an empty result falls back to ``fallback``.

    Examples
    --------
    >>> slugify("Cool Breeze Air Conditioning & Heating, LLC")
    'cool-breeze-air-conditioning-heating-llc'
    >>> slugify("  hvac_001  ")
    'hvac-001'
    >>> slugify(None)
    'company'
    """
    text = "" if value is None else str(value)
    slug = _NON_ALNUM.sub("-", text.strip().lower()).strip("-")
    return slug or fallback
