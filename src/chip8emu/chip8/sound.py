"""Beeper sounded when the CHIP-8 sound timer expires."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import time
from array import array
from typing import List

logger = logging.getLogger(__name__)


@dataclass
class Chip8Beeper:
    """Square wave beeper with optional pygame playback."""

    history: List[float] = field(default_factory=list)
    sample_rate: int = 44100
    frequency: float = 440.0
    duration: float = 0.1
    volume: float = 0.3
    enable_audio: bool = False

    def __post_init__(self) -> None:
        self._audio_initialized: bool = False
        self._sound = None

    def beep(self) -> None:
        self.history.append(time.monotonic())
        if not self.enable_audio:
            return
        if not self._ensure_mixer():
            return
        try:
            self._sound.play()
        except Exception as exc:
            logger.warning("beep playback failed: %s", exc)

    def reset(self) -> None:
        self.history.clear()

    # ------------------------------------------------------------------
    # Audio control helpers
    # ------------------------------------------------------------------

    def _ensure_mixer(self) -> bool:
        if not self.enable_audio:
            return False
        if self._audio_initialized:
            return True
        try:
            import pygame  # type: ignore

            if not pygame.mixer.get_init():
                pygame.mixer.init(frequency=self.sample_rate, size=-16, channels=1)
            self._sound = pygame.mixer.Sound(buffer=self._render_tone())
            self._audio_initialized = True
        except Exception as exc:
            logger.warning("audio disabled, mixer unavailable: %s", exc)
            self.enable_audio = False
            self._sound = None
            self._audio_initialized = False
        return self._audio_initialized

    def _render_tone(self) -> array:
        amplitude = int(self.volume * 32767)
        samples = max(1, int(self.sample_rate * self.duration))
        half_period = max(1, int(self.sample_rate / (2.0 * self.frequency)))
        buffer = array("h", [0] * samples)
        for index in range(samples):
            buffer[index] = amplitude if (index // half_period) % 2 == 0 else -amplitude
        return buffer

