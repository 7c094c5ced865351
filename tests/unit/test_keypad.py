"""Tests for the CHIP-8 keypad."""

import threading

import pytest

from chip8emu.chip8.keyboard import Chip8Keypad


def test_press_and_release_updates_state() -> None:
    keypad = Chip8Keypad()
    keypad.press(0xA)
    assert keypad.is_pressed(0xA) is True
    keypad.release(0xA)
    assert keypad.is_pressed(0xA) is False


def test_first_pressed_is_lowest_index() -> None:
    keypad = Chip8Keypad()
    assert keypad.first_pressed() is None
    keypad.press(0xC)
    keypad.press(0x3)
    assert keypad.first_pressed() == 0x3


@pytest.mark.parametrize("key", [-1, 16, 0x20])
def test_out_of_range_keys_rejected(key: int) -> None:
    keypad = Chip8Keypad()
    with pytest.raises(ValueError):
        keypad.press(key)
    with pytest.raises(ValueError):
        keypad.release(key)


def test_clear_releases_everything() -> None:
    keypad = Chip8Keypad()
    for key in range(16):
        keypad.press(key)
    keypad.clear()
    assert keypad.get_keys() == [False] * 16


def test_presses_from_other_threads_are_visible() -> None:
    keypad = Chip8Keypad()
    threads = [threading.Thread(target=keypad.press, args=(key,)) for key in range(16)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert all(keypad.get_keys())
