from __future__ import annotations

from typing import List, Tuple

import pytest

from chip8emu.system.computer import Computer


class StubCPU:
    def __init__(self) -> None:
        self.calls: List[Tuple[str, int]] = []
        self.cycles = 0

    def cycle(self) -> None:
        self.cycles += 1

    def reset(self) -> None:
        self.calls.append(("reset", 0))


class StubDevice:
    def __init__(self) -> None:
        self.resets = 0

    def reset(self) -> None:
        self.resets += 1


class TimerComputer(Computer):
    def __init__(self, **kwargs) -> None:
        super().__init__(object(), **kwargs)
        self.timer_clocks: List[int] = []

    def update_timer(self) -> None:
        self.timer_clocks.append(self.clock_count)


class FakeClock:
    def __init__(self) -> None:
        self.now = 1_000_000_000

    def __call__(self) -> int:
        return self.now


def make_computer(**kwargs) -> tuple[TimerComputer, StubCPU]:
    computer = TimerComputer(**kwargs)
    cpu = StubCPU()
    computer.set_cpu(cpu)
    return computer, cpu


def test_power_on_and_tick_advances_cpu() -> None:
    computer, cpu = make_computer()

    computer.power_on()

    assert computer.get_running_status() == computer.STATUS_RUNNING
    assert computer.clock_count == 0
    assert ("reset", 0) in cpu.calls

    computer.tick(32)
    assert cpu.cycles == 32
    assert computer.get_clock_count() == 32


def test_tick_does_nothing_while_stopped() -> None:
    computer, cpu = make_computer()
    computer.tick(10)
    assert cpu.cycles == 0
    assert computer.clock_count == 0


def test_timer_fires_at_canonical_ratio() -> None:
    computer, _ = make_computer(cpu_clock_frequency=500, timer_frequency=60)
    computer.power_on()

    computer.tick(40)

    assert computer.timer_clocks == [8, 16, 24, 32, 40]


def test_pause_and_resume_controls_execution() -> None:
    computer, cpu = make_computer()
    computer.power_on()

    computer.tick(8)
    computer.pause()
    computer.tick(16)
    assert cpu.cycles == 8
    assert computer.get_running_status() == computer.STATUS_PAUSED

    computer.resume()
    assert computer.get_running_status() == computer.STATUS_RUNNING
    computer.tick(16)
    assert cpu.cycles == 24
    # One timer per period, with no duplicates from the paused chain.
    assert computer.timer_clocks == [8, 16, 24]


def test_power_off_stops_execution() -> None:
    computer, cpu = make_computer()
    computer.power_on()
    computer.power_off()
    assert computer.get_running_status() == computer.STATUS_STOPPED
    computer.tick(10)
    assert cpu.cycles == 0


def test_reset_invokes_cpu_devices_and_clears_clock() -> None:
    computer, cpu = make_computer()
    device = StubDevice()
    computer.add_device(device)
    computer.power_on()
    computer.tick(5)

    computer.reset()

    assert cpu.calls.count(("reset", 0)) == 2
    assert device.resets == 2
    assert computer.clock_count == 0
    assert computer.devices == [device]


def test_set_clock_frequency_rescales_timer_interval() -> None:
    computer, _ = make_computer()
    computer.power_on()
    computer.set_clock_frequency(1200)

    computer.tick(40)

    assert computer.get_clock_frequency() == 1200
    assert computer.timer_clocks == [20, 40]


@pytest.mark.parametrize("frequency", [0, -1])
def test_invalid_frequencies_rejected(frequency: float) -> None:
    computer, _ = make_computer()
    with pytest.raises(ValueError):
        computer.set_clock_frequency(frequency)
    with pytest.raises(ValueError):
        TimerComputer(cpu_clock_frequency=frequency)


def test_run_until_now_follows_wall_clock(monkeypatch) -> None:
    clock = FakeClock()
    monkeypatch.setattr("chip8emu.system.computer.time.perf_counter_ns", clock)
    computer, cpu = make_computer(cpu_clock_frequency=500)
    computer.power_on()

    assert computer.run_until_now() == 0

    clock.now += 100_000_000
    assert computer.run_until_now() == 50
    assert cpu.cycles == 50

    clock.now += 10_000_000
    assert computer.cycles_due() == 5


def test_catch_up_is_capped(monkeypatch) -> None:
    clock = FakeClock()
    monkeypatch.setattr("chip8emu.system.computer.time.perf_counter_ns", clock)
    computer, cpu = make_computer(cpu_clock_frequency=500, max_catch_up_cycles=100)
    computer.power_on()

    clock.now += 60_000_000_000
    assert computer.run_until_now() == 100
    # The backlog is dropped rather than replayed.
    assert computer.cycles_due() == 0


def test_cycles_due_is_zero_when_paused(monkeypatch) -> None:
    clock = FakeClock()
    monkeypatch.setattr("chip8emu.system.computer.time.perf_counter_ns", clock)
    computer, _ = make_computer()
    computer.power_on()
    computer.pause()

    clock.now += 1_000_000_000
    assert computer.cycles_due() == 0
