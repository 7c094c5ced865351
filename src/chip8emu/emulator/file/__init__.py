"""File loading helpers for the CHIP-8 emulator."""

from chip8emu.emulator.file.program import (
    DEFAULT_PROGRAM_NAME,
    ProgramInfo,
    ProgramLoadError,
    program_name,
    read_rom,
)

__all__ = [
    "DEFAULT_PROGRAM_NAME",
    "ProgramInfo",
    "ProgramLoadError",
    "program_name",
    "read_rom",
]
