"""CHIP-8 main memory: 4 KiB of RAM with the built-in hexadecimal font."""

from __future__ import annotations

from typing import Iterable, List, Protocol

from chip8emu.emulator.file.program import ProgramLoadError

MEMORY_SIZE = 0x1000
ADDRESS_MASK = 0x0FFF
FONT_START = 0x000
FONT_GLYPH_SIZE = 5
PROGRAM_START = 0x200
PROGRAM_CAPACITY = MEMORY_SIZE - PROGRAM_START

# 4x5 glyphs for the hexadecimal digits 0-F, one byte per row.
FONT_SET: tuple[int, ...] = (
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
)


class CapacityExceededError(ProgramLoadError):
    """Raised when a program does not fit between 0x200 and 0xFFF."""


class Addressable(Protocol):
    """Protocol describing byte addressable storage."""

    def load8(self, address: int) -> int:
        ...

    def store8(self, address: int, value: int) -> None:
        ...

    def fetch_opcode(self, address: int) -> int:
        ...


class Memory(Addressable):
    """Flat 4 KiB byte store.

    Every access masks the address to 12 bits, so an index register that has
    run past 0xFFF wraps around to the bottom of memory instead of faulting.
    """

    data: bytearray

    def __init__(self) -> None:
        self.data = bytearray(MEMORY_SIZE)
        self.clear()

    def clear(self) -> None:
        self.data[:] = bytes(MEMORY_SIZE)
        self.data[FONT_START:FONT_START + len(FONT_SET)] = bytes(FONT_SET)

    def load(self, program: Iterable[int]) -> int:
        payload = bytes(program)
        if len(payload) > PROGRAM_CAPACITY:
            raise CapacityExceededError(
                f"program is {len(payload)} bytes, capacity is {PROGRAM_CAPACITY} bytes"
            )
        self.data[PROGRAM_START:PROGRAM_START + len(payload)] = payload
        return len(payload)

    def load8(self, address: int) -> int:
        return self.data[address & ADDRESS_MASK]

    def store8(self, address: int, value: int) -> None:
        self.data[address & ADDRESS_MASK] = value & 0xFF

    def fetch_opcode(self, address: int) -> int:
        hi = self.data[address & ADDRESS_MASK]
        lo = self.data[(address + 1) & ADDRESS_MASK]
        return (hi << 8) | lo

    def dump(self, start: int, length: int) -> List[int]:
        return [self.load8(start + offset) for offset in range(length)]


__all__ = [
    "ADDRESS_MASK",
    "Addressable",
    "CapacityExceededError",
    "FONT_SET",
    "FONT_GLYPH_SIZE",
    "MEMORY_SIZE",
    "Memory",
    "PROGRAM_CAPACITY",
    "PROGRAM_START",
]
