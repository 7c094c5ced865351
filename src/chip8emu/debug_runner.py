"""Headless runner for CHIP-8 ROM debugging workflows."""

from __future__ import annotations

import argparse
import logging
import random
import sys
from dataclasses import dataclass
from typing import Iterable, List, Sequence

from chip8emu.chip8.computer import Chip8Computer
from chip8emu.chip8.display import Chip8Display, HEIGHT, WIDTH
from chip8emu.cpu.cpu import CPUError, Chip8CPU
from chip8emu.emulator.file import ProgramLoadError
from chip8emu.memory import ADDRESS_MASK, Memory

DEFAULT_CYCLES = 1000
DUMP_ROW = 16


@dataclass(frozen=True)
class DumpRange:
    """Inclusive memory range used for dumping."""

    start: int
    end: int


def _parse_hex(value: str) -> int:
    text = value.strip().lower()
    if text.startswith("0x"):
        text = text[2:]
    if not text:
        raise ValueError("empty hexadecimal value")
    result = int(text, 16)
    if not (0 <= result <= ADDRESS_MASK):
        raise ValueError("hex value out of range")
    return result


def _parse_range(text: str) -> DumpRange:
    start_str, sep, end_str = text.partition(":")
    if not sep:
        raise ValueError("range specification must contain ':'")
    start = _parse_hex(start_str)
    end = _parse_hex(end_str)
    if end < start:
        raise ValueError("range end must be >= start")
    return DumpRange(start, end)


def format_cpu_state(cpu: Chip8CPU) -> str:
    regs = cpu.registers
    lines = [
        f"Cycles #{cpu.cycles}",
        f"PC = 0x{regs.program_counter:04x}, SP = {regs.stack_pointer}, I = 0x{regs.index:04x}",
    ]
    for base in range(0, len(regs.v), 4):
        lines.append(
            ", ".join(f"V{reg:X} = 0x{regs.v[reg]:02x}" for reg in range(base, base + 4))
        )
    return "\n".join(lines)


def format_screen(display: Chip8Display) -> str:
    return "\n".join(
        "".join("#" if display.get_pixel(x, y) else "." for x in range(WIDTH))
        for y in range(HEIGHT)
    )


def format_memory(memory: Memory, dump_ranges: Sequence[DumpRange]) -> str:
    lines: List[str] = []
    for dump_range in dump_ranges:
        for row in range(dump_range.start, dump_range.end + 1, DUMP_ROW):
            length = min(DUMP_ROW, dump_range.end + 1 - row)
            values = " ".join(f"{value:02X}" for value in memory.dump(row, length))
            lines.append(f"{row:03X}: {values}")
    return "\n".join(lines)


def run(computer: Chip8Computer, cycles: int) -> None:
    """Run ``cycles`` instructions with timers ticked at the canonical ratio."""

    computer.power_on()
    try:
        computer.tick(cycles)
    finally:
        computer.power_off()


def main(argv: Iterable[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run a CHIP-8 ROM headlessly and dump machine state")
    parser.add_argument("rom", help="Path to a CHIP-8 ROM image")
    parser.add_argument("--cycles", type=int, default=DEFAULT_CYCLES, help="Instructions to execute")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the CXNN random source")
    parser.add_argument("--screen", action="store_true", help="Print the framebuffer after the run")
    parser.add_argument(
        "--dump",
        action="append",
        default=[],
        metavar="START:END",
        help="Hex memory range to dump (repeatable)",
    )
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    args = parser.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.cycles < 0:
        parser.error("--cycles must be non-negative")
    try:
        dump_ranges = [_parse_range(value) for value in args.dump]
    except ValueError as exc:
        parser.error(str(exc))

    rng = random.Random(args.seed) if args.seed is not None else None
    computer = Chip8Computer(rng=rng)
    try:
        computer.load(args.rom)
    except ProgramLoadError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    status = 0
    try:
        run(computer, args.cycles)
    except CPUError as exc:
        print(f"error: {exc}", file=sys.stderr)
        status = 2

    print(format_cpu_state(computer.cpu_core))
    if args.screen:
        print()
        print(format_screen(computer.hardware.display))
    if dump_ranges:
        print()
        print(format_memory(computer.memory, dump_ranges))
    return status


if __name__ == "__main__":
    sys.exit(main())
