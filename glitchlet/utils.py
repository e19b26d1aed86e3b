"""Utility helpers for the publish service."""

from __future__ import annotations

from pathlib import Path


def human_readable_bytes(value: int, precision: int = 1) -> str:
    """Format a byte count as a human readable string."""

    if value < 1024:
        return f"{value} B"
    scaled = float(value)
    for unit in ("KiB", "MiB", "GiB", "TiB"):
        scaled /= 1024.0
        if scaled < 1024.0 or unit == "TiB":
            return f"{scaled:.{precision}f} {unit}"
    return f"{scaled:.{precision}f} TiB"


def remove_file(path: Path) -> None:
    """Delete ``path`` if it still exists."""

    try:
        path.unlink()
    except FileNotFoundError:
        pass
