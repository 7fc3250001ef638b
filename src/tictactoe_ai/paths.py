"""Centralized path helpers for learned-state and export locations.

Environment-first, with fallbacks that still work when installed as a
package or executed from arbitrary CWDs.
"""

from __future__ import annotations

import os
import subprocess
from pathlib import Path


def _find_git_root(start: Path) -> Path | None:
    cur = start
    for _ in range(5):
        if (cur / ".git").exists():
            return cur
        if cur.parent == cur:
            break
        cur = cur.parent
    return None


def repo_root() -> Path:
    """Best-effort project root.

    Order: env var TTT_REPO_ROOT -> nearest parent containing .git -> CWD.
    """
    env = os.getenv("TTT_REPO_ROOT")
    if env:
        return Path(env)
    git_root = _find_git_root(Path(__file__).resolve())
    if git_root is not None:
        return git_root
    return Path.cwd()


def learning_dir() -> Path:
    """Where the file-backed store keeps the learning blobs."""
    p = os.getenv("TTT_LEARNING_DIR")
    return Path(p) if p else repo_root() / "ai_learning"


def export_dir() -> Path:
    p = os.getenv("TTT_EXPORT_DIR")
    return Path(p) if p else repo_root() / "exports"


def get_git_commit() -> str | None:
    """Current commit hash, or None outside a git checkout."""
    root = repo_root()
    try:
        out = subprocess.check_output(
            ["git", "-C", str(root), "rev-parse", "HEAD"],
            stderr=subprocess.DEVNULL,
            text=True,
            timeout=2.0,
        )
        return out.strip() or None
    except (OSError, subprocess.SubprocessError):
        # git missing or not a repo; read .git/HEAD directly
        head = root / ".git" / "HEAD"
        try:
            txt = head.read_text().strip()
            if txt.startswith("ref:"):
                ref_file = root / ".git" / txt.split()[1]
                return ref_file.read_text().strip() if ref_file.exists() else None
            return txt or None
        except OSError:
            return None


def get_git_is_dirty() -> bool | None:
    """True with uncommitted changes, False if clean, None if unknown."""
    try:
        out = subprocess.check_output(
            ["git", "-C", str(repo_root()), "status", "--porcelain"],
            stderr=subprocess.DEVNULL,
            text=True,
            timeout=2.0,
        )
        return len(out.strip()) > 0
    except (OSError, subprocess.SubprocessError):
        return None
