from __future__ import annotations

from pathlib import Path

from chip8emu import debug_runner


def _write_rom(path: Path, *opcodes: int) -> None:
    path.write_bytes(b"".join(op.to_bytes(2, "big") for op in opcodes))


def test_debug_runner_draws_glyph(tmp_path, capsys) -> None:
    rom = tmp_path / "glyph.ch8"
    # V0 := 8; I := glyph(V0); draw at (V1, V1); loop
    _write_rom(rom, 0x6008, 0xF029, 0xD115, 0x1206)

    exit_code = debug_runner.main([str(rom), "--cycles", "20", "--screen"])

    captured = capsys.readouterr()
    assert exit_code == 0
    lines = captured.out.splitlines()
    screen = lines[lines.index("") + 1:]
    assert screen[0].startswith("####.")
    assert screen[1].startswith("#..#.")
    assert screen[2].startswith("####.")
    assert screen[5] == "." * 64


def test_debug_runner_seed_is_reproducible(tmp_path, capsys) -> None:
    rom = tmp_path / "random.ch8"
    _write_rom(rom, 0xC0FF, 0xC1FF, 0xC2FF, 0x1206)

    debug_runner.main([str(rom), "--cycles", "3", "--seed", "99"])
    first = capsys.readouterr().out
    debug_runner.main([str(rom), "--cycles", "3", "--seed", "99"])
    second = capsys.readouterr().out

    assert first == second
