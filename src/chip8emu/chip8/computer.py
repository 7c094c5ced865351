"""CHIP-8 system wiring."""

from __future__ import annotations

import logging
import os
from pathlib import Path
import random
from typing import Callable, List, Optional

from chip8emu.chip8.hardware import Chip8Hardware
from chip8emu.chip8.sound import Chip8Beeper
from chip8emu.cpu.cpu import Chip8CPU
from chip8emu.emulator.file import ProgramInfo, program_name, read_rom
from chip8emu.memory import Memory
from chip8emu.system.computer import Computer

logger = logging.getLogger(__name__)

BeepListener = Callable[["Chip8Computer"], None]


class Chip8Computer(Computer):
    """Concrete CHIP-8 machine.

    Owns the memory, display, keypad, timers and CPU. Hosts either drive it
    directly (``cycle`` at the instruction rate, ``update_timer`` at 60 Hz) or
    through the inherited ``power_on``/``tick``/``run_until_now`` scheduler,
    which interleaves the two at the canonical ratio.
    """

    INSTRUCTION_HZ = 500
    TIMER_HZ = 60

    def __init__(
        self,
        *,
        instruction_hz: float = INSTRUCTION_HZ,
        timer_hz: float = TIMER_HZ,
        rng: Optional[random.Random] = None,
        enable_audio: bool = False,
    ) -> None:
        hardware = Chip8Hardware(sound_processor=Chip8Beeper(enable_audio=enable_audio))
        super().__init__(hardware, cpu_clock_frequency=instruction_hz, timer_frequency=timer_hz)
        self.program_info: Optional[ProgramInfo] = None
        self._beep_listeners: List[BeepListener] = []

        self.cpu_core = Chip8CPU(self, rng=rng)
        self.set_cpu(self.cpu_core)
        self.add_devices([hardware.display, hardware.keypad, hardware.timers, hardware.sound_processor])
        self.initialize()

    @property
    def memory(self) -> Memory:
        return self.hardware.memory

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def initialize(self) -> None:
        """Return every component to its power-up state and unload the program."""

        self.cpu_core.reset()
        self.hardware.memory.clear()
        self.hardware.display.clear()
        self.hardware.keypad.clear()
        self.hardware.timers.reset()
        self.hardware.sound_processor.reset()
        self.program_info = None

    def load(self, source: bytes | bytearray | str | os.PathLike[str]) -> ProgramInfo:
        """Copy a ROM to 0x200 from raw bytes or a file path.

        Raises ``ProgramLoadError`` when the file cannot be read and
        ``CapacityExceededError`` when the image is larger than 0xE00 bytes; in
        both cases memory is left untouched.
        """

        path: Optional[Path] = None
        if isinstance(source, (bytes, bytearray)):
            data = bytes(source)
        else:
            path = Path(source)
            data = read_rom(path)
        size = self.hardware.memory.load(data)
        info = ProgramInfo(name=program_name(path), size=size, path=path)
        self.program_info = info
        logger.info("loaded %s (%d bytes)", info.name, size)
        return info

    def update_timer(self) -> None:
        if self.hardware.timers.tick():
            self._beep()

    # ------------------------------------------------------------------
    # Frontend accessors
    # ------------------------------------------------------------------
    def get_pixel(self, x: int, y: int) -> int:
        return self.hardware.display.get_pixel(x, y)

    def is_dirty(self) -> bool:
        return self.hardware.display.is_dirty()

    def set_dirty(self, dirty: bool) -> None:
        self.hardware.display.set_dirty(dirty)

    def on_key_down(self, key: int) -> None:
        self.hardware.keypad.press(key)

    def on_key_up(self, key: int) -> None:
        self.hardware.keypad.release(key)

    # ------------------------------------------------------------------
    # Beep notification
    # ------------------------------------------------------------------
    def add_beep_listener(self, listener: BeepListener) -> None:
        self._beep_listeners.append(listener)

    def remove_beep_listener(self, listener: BeepListener) -> None:
        self._beep_listeners.remove(listener)

    def _beep(self) -> None:
        logger.debug("beep at clock %d", self.clock_count)
        self.hardware.sound_processor.beep()
        for listener in list(self._beep_listeners):
            listener(self)
