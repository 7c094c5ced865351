"""CHIP-8 hexadecimal keypad."""

from __future__ import annotations

from dataclasses import dataclass, field
import threading
from typing import List, Optional

KEY_COUNT = 16


@dataclass
class Chip8Keypad:
    """Sixteen independent keys, 0x0-0xF.

    Host input threads may press and release keys while the run loop reads
    them, so every access goes through a lock.
    """

    _keys: List[bool] = field(default_factory=lambda: [False] * KEY_COUNT)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @staticmethod
    def _check(key: int) -> None:
        if not (0 <= key < KEY_COUNT):
            raise ValueError(f"key code out of range: {key!r}")

    def press(self, key: int) -> None:
        self._check(key)
        with self._lock:
            self._keys[key] = True

    def release(self, key: int) -> None:
        self._check(key)
        with self._lock:
            self._keys[key] = False

    def is_pressed(self, key: int) -> bool:
        with self._lock:
            return self._keys[key & 0x0F]

    def first_pressed(self) -> Optional[int]:
        with self._lock:
            for key, down in enumerate(self._keys):
                if down:
                    return key
        return None

    def get_keys(self) -> List[bool]:
        with self._lock:
            return list(self._keys)

    def clear(self) -> None:
        with self._lock:
            self._keys = [False] * KEY_COUNT

    def reset(self) -> None:
        self.clear()
