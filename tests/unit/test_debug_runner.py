from __future__ import annotations

from pathlib import Path

import pytest

from chip8emu import debug_runner
from chip8emu.chip8.computer import Chip8Computer
from chip8emu.chip8.display import Chip8Display
from chip8emu.cpu.cpu import CPUError
from chip8emu.memory import Memory


def test_parse_hex_accepts_prefixed_and_plain() -> None:
    assert debug_runner._parse_hex("0x0200") == 0x200
    assert debug_runner._parse_hex("2A0") == 0x2A0


@pytest.mark.parametrize("value", ["", "0x", "0x1000", "xyz", "-1"])
def test_parse_hex_rejects_invalid(value: str) -> None:
    with pytest.raises(ValueError):
        debug_runner._parse_hex(value)


def test_parse_range() -> None:
    rng = debug_runner._parse_range("200:21F")
    assert rng == debug_runner.DumpRange(0x200, 0x21F)


@pytest.mark.parametrize("value", ["200", "210:200"])
def test_parse_range_rejects_invalid(value: str) -> None:
    with pytest.raises(ValueError):
        debug_runner._parse_range(value)


def test_format_cpu_state_for_fresh_cpu() -> None:
    computer = Chip8Computer()
    lines = debug_runner.format_cpu_state(computer.cpu_core).splitlines()

    assert lines[0] == "Cycles #0"
    assert lines[1] == "PC = 0x0200, SP = 0, I = 0x0000"
    assert lines[2] == "V0 = 0x00, V1 = 0x00, V2 = 0x00, V3 = 0x00"
    assert lines[5] == "VC = 0x00, VD = 0x00, VE = 0x00, VF = 0x00"
    assert len(lines) == 6


def test_format_screen_marks_lit_pixels() -> None:
    display = Chip8Display()
    display.buffer[0] = 0x80
    display.buffer[-1] = 0x01

    rows = debug_runner.format_screen(display).splitlines()

    assert len(rows) == 32
    assert all(len(row) == 64 for row in rows)
    assert rows[0] == "#" + "." * 63
    assert rows[31] == "." * 63 + "#"


def test_format_memory_splits_rows() -> None:
    memory = Memory()
    memory.load(bytes(range(0x12)))

    dump = debug_runner.format_memory(memory, [debug_runner.DumpRange(0x200, 0x211)])
    lines = dump.splitlines()

    assert lines[0] == "200: " + " ".join(f"{value:02X}" for value in range(16))
    assert lines[1] == "210: 10 11"


def test_main_runs_and_prints_state(tmp_path: Path, capsys) -> None:
    rom = tmp_path / "loop.ch8"
    # V5 := 0x2A; loop
    rom.write_bytes(bytes([0x65, 0x2A, 0x12, 0x02]))

    exit_code = debug_runner.main([str(rom), "--cycles", "10", "--screen", "--dump", "200:203"])

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "Cycles #10" in out
    assert "V5 = 0x2a" in out
    assert "." * 64 in out
    assert "200: 65 2A 12 02" in out


def test_main_reports_missing_rom(tmp_path: Path, capsys) -> None:
    exit_code = debug_runner.main([str(tmp_path / "missing.ch8")])

    captured = capsys.readouterr()
    assert exit_code == 1
    assert captured.out == ""
    assert "error:" in captured.err


def test_main_reports_stack_overflow(tmp_path: Path, capsys) -> None:
    rom = tmp_path / "recurse.ch8"
    rom.write_bytes(bytes([0x22, 0x00]))

    exit_code = debug_runner.main([str(rom), "--cycles", "100"])

    captured = capsys.readouterr()
    assert exit_code == 2
    assert "call depth exceeds" in captured.err
    assert "SP = 16" in captured.out


def test_main_rejects_bad_dump_range(tmp_path: Path) -> None:
    rom = tmp_path / "rom.ch8"
    rom.write_bytes(b"\x12\x00")

    with pytest.raises(SystemExit):
        debug_runner.main([str(rom), "--dump", "300:200"])


def test_run_powers_off_after_cpu_error() -> None:
    computer = Chip8Computer()
    computer.load(bytes([0x00, 0xEE]))

    with pytest.raises(CPUError):
        debug_runner.run(computer, 5)

    assert computer.get_running_status() == Chip8Computer.STATUS_STOPPED
