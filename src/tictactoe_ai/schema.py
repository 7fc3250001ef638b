"""
Shared shapes for persisted learning blobs and their validation.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional

LEARNING_VERSION = "1.0.0"


@dataclass
class LoadResult:
    """Outcome of loading one blob: whether it was usable and what was skipped."""

    ok: bool
    loaded: int = 0
    skipped: int = 0
    error: Optional[str] = None


def is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def is_cell_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= 8
