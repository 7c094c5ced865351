"""CHIP-8 monochrome framebuffer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from chip8emu.memory import Addressable

WIDTH = 64
HEIGHT = 32
WIDTH_BYTES = WIDTH // 8


@dataclass
class Chip8Display:
    """64x32 framebuffer packed eight pixels per byte, MSB first.

    Pixel (x, y) lives in byte ``x // 8 + y * 8`` at bit ``7 - x % 8``.
    """

    WIDTH: int = WIDTH
    HEIGHT: int = HEIGHT

    foreground: int = 0xFFFFFF
    background: int = 0x000000
    buffer: bytearray = field(default_factory=lambda: bytearray(WIDTH_BYTES * HEIGHT))
    dirty: bool = False

    def is_dirty(self) -> bool:
        return self.dirty

    def set_dirty(self, dirty: bool) -> None:
        self.dirty = bool(dirty)

    def clear(self) -> None:
        self.buffer[:] = bytes(len(self.buffer))
        self.dirty = True

    def reset(self) -> None:
        self.clear()

    def get_pixel(self, x: int, y: int) -> int:
        bit = 7 - (x % 8)
        return (self.buffer[x // 8 + y * WIDTH_BYTES] >> bit) & 0x01

    # ------------------------------------------------------------------
    # Sprite blitting
    # ------------------------------------------------------------------
    def draw(self, memory: Addressable, address: int, x: int, y: int, height: int) -> bool:
        """XOR a ``height``-row sprite read from ``memory`` onto the screen.

        Rows wrap vertically. Columns past the right edge are clipped. Returns
        True when any lit pixel was switched off.
        """

        hit = False
        column = x // 8
        shift = x % 8
        for row in range(height if column < WIDTH_BYTES else 0):
            sprite = memory.load8(address + row)
            offset = ((y + row) % HEIGHT) * WIDTH_BYTES + column
            if shift == 0:
                if self.buffer[offset] & sprite:
                    hit = True
                self.buffer[offset] ^= sprite
                continue
            # The row straddles two bytes; combine them into one 16-bit window.
            src = sprite << (8 - shift)
            if column + 1 < WIDTH_BYTES:
                dst = (self.buffer[offset] << 8) | self.buffer[offset + 1]
            else:
                src &= 0xFF00
                dst = self.buffer[offset] << 8
            if dst & src:
                hit = True
            result = dst ^ src
            self.buffer[offset] = (result >> 8) & 0xFF
            if column + 1 < WIDTH_BYTES:
                self.buffer[offset + 1] = result & 0xFF
        self.dirty = True
        return hit

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def render_pixels(self) -> List[List[int]]:
        colors = (self.background, self.foreground)
        return [[colors[self.get_pixel(x, y)] for x in range(WIDTH)] for y in range(HEIGHT)]

    def render_pygame_surface(self, scaling: int = 1):
        """Render the framebuffer into a pygame Surface.

        Parameters
        ----------
        scaling:
            Integer scale factor applied to both axes.

        Returns
        -------
        pygame.Surface
            RGB surface representing the current screen.

        Raises
        ------
        RuntimeError
            If pygame is not available.
        """

        if scaling <= 0:
            raise ValueError("scaling factor must be positive")

        try:
            import pygame  # type: ignore
        except Exception as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("pygame is required for render_pygame_surface") from exc

        surface = pygame.Surface((WIDTH * scaling, HEIGHT * scaling))
        surface.fill(self.background)
        for y in range(HEIGHT):
            for x in range(WIDTH):
                if self.get_pixel(x, y):
                    surface.fill(self.foreground, (x * scaling, y * scaling, scaling, scaling))
        return surface
