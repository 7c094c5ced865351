"""CHIP-8 emulator pygame application."""

from __future__ import annotations

import argparse
import logging
import os
import random
from typing import Dict, Iterable, Optional

from chip8emu.chip8.computer import Chip8Computer
from chip8emu.chip8.display import HEIGHT, WIDTH
from chip8emu.emulator.file import ProgramLoadError

logger = logging.getLogger(__name__)

BASE_CAPTION = "CHIP-8 Emulator"
ENV_ROM_PATH = "CHIP8EMU_ROM"

# Conventional COSMAC VIP layout on a QWERTY keyboard:
#   1 2 3 4      1 2 3 C
#   Q W E R  ->  4 5 6 D
#   A S D F      7 8 9 E
#   Z X C V      A 0 B F
# pygame key constants for letters and digits are their ASCII codes.
KEY_MAP: Dict[int, int] = {
    ord("1"): 0x1,
    ord("2"): 0x2,
    ord("3"): 0x3,
    ord("4"): 0xC,
    ord("q"): 0x4,
    ord("w"): 0x5,
    ord("e"): 0x6,
    ord("r"): 0xD,
    ord("a"): 0x7,
    ord("s"): 0x8,
    ord("d"): 0x9,
    ord("f"): 0xE,
    ord("z"): 0xA,
    ord("x"): 0x0,
    ord("c"): 0xB,
    ord("v"): 0xF,
}


def _handle_key_event(computer: Chip8Computer, key: int, pressed: bool) -> bool:
    code = KEY_MAP.get(key)
    if code is None:
        return False
    if pressed:
        computer.on_key_down(code)
    else:
        computer.on_key_up(code)
    return True


def _resolve_rom_path(rom_path: Optional[str]) -> Optional[str]:
    if rom_path:
        return rom_path
    return os.getenv(ENV_ROM_PATH) or None


def _pygame_loop(
    computer: Chip8Computer,
    scale: int,
    fps: int,
) -> None:
    import pygame  # type: ignore

    pygame.init()
    screen = pygame.display.set_mode((WIDTH * scale, HEIGHT * scale))
    caption = BASE_CAPTION
    if computer.program_info is not None:
        caption = f"{BASE_CAPTION} | {computer.program_info.name}"
    pygame.display.set_caption(caption)
    clock = pygame.time.Clock()
    display = computer.hardware.display

    computer.power_on()
    running = True
    paused = False
    try:
        while running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                    continue
                if event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_ESCAPE:
                        running = False
                        continue
                    if event.key == pygame.K_p:
                        paused = not paused
                        if paused:
                            computer.pause()
                            pygame.display.set_caption(f"{caption} | Paused")
                        else:
                            computer.resume()
                            pygame.display.set_caption(caption)
                        continue
                    _handle_key_event(computer, event.key, True)
                elif event.type == pygame.KEYUP:
                    _handle_key_event(computer, event.key, False)

            computer.run_until_now()

            if computer.is_dirty():
                screen.blit(display.render_pygame_surface(scale), (0, 0))
                pygame.display.flip()
                computer.set_dirty(False)

            clock.tick(fps)
    finally:
        computer.power_off()
        pygame.quit()


def main(argv: Iterable[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="CHIP-8 emulator")
    parser.add_argument(
        "rom",
        nargs="?",
        help=f"Path to a CHIP-8 ROM image. Defaults to ${ENV_ROM_PATH} if omitted",
    )
    parser.add_argument("--scale", type=int, default=10, help="Integer scaling factor for display (default: 10)")
    parser.add_argument(
        "--hz",
        type=int,
        default=Chip8Computer.INSTRUCTION_HZ,
        help=f"Instructions executed per second (default: {Chip8Computer.INSTRUCTION_HZ})",
    )
    parser.add_argument("--fps", type=int, default=60, help="Target frames per second for the window loop")
    parser.add_argument(
        "--audio",
        dest="audio",
        action="store_true",
        help="Enable the square-wave beeper (requires pygame mixer)",
    )
    parser.add_argument(
        "--no-audio",
        dest="audio",
        action="store_false",
        help="Disable audio output",
    )
    parser.set_defaults(audio=True)
    parser.add_argument("--seed", type=int, default=None, help="Seed for the CXNN random source")
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    args = parser.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.scale <= 0:
        raise SystemExit("scale must be positive")
    if args.fps <= 0:
        raise SystemExit("fps must be positive")
    if args.hz <= 0:
        raise SystemExit("hz must be positive")

    rom_path = _resolve_rom_path(args.rom)
    if rom_path is None:
        raise SystemExit(f"no ROM given; pass a path or set {ENV_ROM_PATH}")

    rng = random.Random(args.seed) if args.seed is not None else None
    computer = Chip8Computer(instruction_hz=args.hz, rng=rng, enable_audio=args.audio)
    try:
        computer.load(rom_path)
    except ProgramLoadError as exc:
        raise SystemExit(str(exc))

    try:
        _pygame_loop(computer, args.scale, args.fps)
    except RuntimeError as exc:
        raise SystemExit(str(exc))


if __name__ == "__main__":
    main()
