"""pygame dependent tests for Chip8Display."""

import pytest

pygame = pytest.importorskip("pygame")

from chip8emu.chip8.display import Chip8Display
from chip8emu.memory import Memory


def test_render_pygame_surface_scaling_two():
    display = Chip8Display(foreground=0x123456)
    memory = Memory()
    memory.store8(0x300, 0x80)
    display.draw(memory, 0x300, 0, 0, 1)

    surface = display.render_pygame_surface(scaling=2)

    assert surface.get_width() == 64 * 2
    assert surface.get_height() == 32 * 2
    assert tuple(surface.get_at((1, 1)))[:3] == (0x12, 0x34, 0x56)
    assert tuple(surface.get_at((2, 0)))[:3] == (0, 0, 0)


def test_render_pygame_surface_rejects_bad_scale():
    with pytest.raises(ValueError):
        Chip8Display().render_pygame_surface(scaling=0)
