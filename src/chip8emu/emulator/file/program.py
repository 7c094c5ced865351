"""Raw CHIP-8 ROM images."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_PROGRAM_NAME = "ROM"


class ProgramLoadError(RuntimeError):
    """Raised when a ROM cannot be read or placed into memory."""


@dataclass
class ProgramInfo:
    name: str = DEFAULT_PROGRAM_NAME
    size: int = 0
    path: Optional[Path] = None


def read_rom(path: str | Path) -> bytes:
    """Read a headerless ROM image from disk."""

    file_path = Path(path)
    try:
        return file_path.read_bytes()
    except OSError as exc:
        raise ProgramLoadError(f"cannot read ROM {file_path}: {exc.strerror or exc}") from exc


def program_name(path: Optional[Path]) -> str:
    if path is None or not path.stem:
        return DEFAULT_PROGRAM_NAME
    return path.stem.upper()
