"""Computer scaffold providing scheduling and wall-clock pacing."""

from __future__ import annotations

from dataclasses import dataclass, field
import heapq
import time
from typing import Callable, Iterable, List, Optional


class TimeManager:
    """Tracks wall-clock alignment against the emulated clock."""

    def __init__(self) -> None:
        self._base_time_ns = time.perf_counter_ns()

    def reset(self, clock_count: int, frequency_hz: float) -> None:
        now = time.perf_counter_ns()
        if frequency_hz <= 0:
            self._base_time_ns = now
        else:
            simulated_offset = int((clock_count / frequency_hz) * 1_000_000_000)
            self._base_time_ns = now - simulated_offset

    def expected_clock(self, frequency_hz: float) -> int:
        """Clock count the emulated machine should have reached by now."""

        elapsed = time.perf_counter_ns() - self._base_time_ns
        return int(elapsed * frequency_hz / 1_000_000_000)


@dataclass(order=True)
class _ComputerEvent:
    clock: int
    order: int
    handler: Callable[["Computer"], None] = field(compare=False)
    name: str = field(default="", compare=False)

    def apply(self, computer: "Computer") -> None:
        self.handler(computer)


class EventQueue:
    """Priority queue of events keyed by clock count."""

    def __init__(self) -> None:
        self._heap: List[_ComputerEvent] = []

    def add(self, event: _ComputerEvent) -> None:
        heapq.heappush(self._heap, event)

    def pop_ready(self, clock: int) -> List[_ComputerEvent]:
        ready: List[_ComputerEvent] = []
        while self._heap and self._heap[0].clock <= clock:
            ready.append(heapq.heappop(self._heap))
        return ready

    def clear(self) -> None:
        self._heap.clear()


class Computer:
    """Host machine tying a CPU and its devices to a paced clock.

    One clock tick is one executed instruction. While running, a periodic
    event fires ``update_timer`` every ``cpu_clock_frequency / timer_frequency``
    ticks, so timers advance at their own fixed rate whatever the instruction
    rate is.
    """

    STATUS_RUNNING = 0
    STATUS_PAUSED = 1
    STATUS_STOPPED = 2

    def __init__(
        self,
        hardware: object,
        *,
        cpu_clock_frequency: float = 500.0,
        timer_frequency: float = 60.0,
        max_catch_up_cycles: int = 5_000,
    ) -> None:
        if cpu_clock_frequency <= 0 or timer_frequency <= 0:
            raise ValueError("frequency must be positive")
        self.hardware = hardware
        self.cpu_clock_frequency = cpu_clock_frequency
        self.timer_frequency = timer_frequency
        self.max_catch_up_cycles = max_catch_up_cycles
        self.clock_count: int = 0
        self._devices: list[object] = []
        self._cpu: Optional[object] = None
        self._running_status: int = self.STATUS_STOPPED
        self._event_queue = EventQueue()
        self._event_counter = 0
        self._time_manager = TimeManager()
        self._timer_interval_clocks: int = self._compute_timer_interval()
        self._timer_active: bool = False
        self._timer_generation: int = 0
        self._time_manager.reset(self.clock_count, self.cpu_clock_frequency)

    # ------------------------------------------------------------------
    # CPU integration
    # ------------------------------------------------------------------
    @property
    def cpu(self) -> Optional[object]:
        return self._cpu

    def set_cpu(self, cpu: object) -> None:
        self._cpu = cpu

    def cycle(self) -> None:
        if self._cpu is not None:
            self._cpu.cycle()

    def update_timer(self) -> None:
        """Advance the machine's 60 Hz timers; subclasses override."""

    def tick(self, cycles: int) -> None:
        if cycles <= 0:
            return
        self._process_events()
        for _ in range(cycles):
            if self._running_status != self.STATUS_RUNNING:
                return
            self.cycle()
            self.clock_count += 1
            self._process_events()

    def cycles_due(self) -> int:
        if self._running_status != self.STATUS_RUNNING:
            return 0
        due = self._time_manager.expected_clock(self.cpu_clock_frequency) - self.clock_count
        if due > self.max_catch_up_cycles:
            # Too far behind (debugger stop, slow host); drop the backlog.
            self._time_manager.reset(
                self.clock_count + self.max_catch_up_cycles, self.cpu_clock_frequency
            )
            return self.max_catch_up_cycles
        return max(due, 0)

    def run_until_now(self) -> int:
        due = self.cycles_due()
        self.tick(due)
        return due

    # ------------------------------------------------------------------
    # Device management
    # ------------------------------------------------------------------
    def add_device(self, device: object) -> None:
        self._devices.append(device)

    def add_devices(self, devices: Iterable[object]) -> None:
        for device in devices:
            self.add_device(device)

    @property
    def devices(self) -> list[object]:
        return self._devices

    # ------------------------------------------------------------------
    # Control lifecycle
    # ------------------------------------------------------------------
    def power_on(self) -> None:
        self._run_reset()
        self._running_status = self.STATUS_RUNNING
        self._time_manager.reset(self.clock_count, self.cpu_clock_frequency)
        self._start_periodic_tasks()

    def power_off(self) -> None:
        if self._running_status == self.STATUS_STOPPED:
            return
        self._schedule_event(lambda comp: comp._apply_power_off(), name="powerOff")

    def reset(self) -> None:
        self._schedule_event(lambda comp: comp._run_reset(), name="reset")

    def pause(self) -> None:
        if self._running_status != self.STATUS_RUNNING:
            return
        self._schedule_event(lambda comp: comp._apply_pause(), name="pause")

    def resume(self) -> None:
        if self._running_status != self.STATUS_PAUSED:
            return
        self._schedule_event(lambda comp: comp._apply_resume(), name="resume")

    def get_running_status(self) -> int:
        return self._running_status

    # ------------------------------------------------------------------
    # Event dispatch helpers
    # ------------------------------------------------------------------
    def _process_events(self) -> None:
        for event in self._event_queue.pop_ready(self.clock_count):
            event.apply(self)

    def _schedule_event(self, handler: Callable[["Computer"], None], delay_cycles: int = 0, *, name: str = "") -> None:
        event_clock = max(self.clock_count + max(delay_cycles, 0), 0)
        event = _ComputerEvent(event_clock, self._event_counter, handler, name)
        self._event_counter += 1
        self._event_queue.add(event)
        if event_clock <= self.clock_count:
            self._process_events()

    def _run_reset(self) -> None:
        active = self._running_status == self.STATUS_RUNNING
        self._stop_periodic_tasks()
        self._event_queue.clear()
        self.clock_count = 0
        self._time_manager.reset(self.clock_count, self.cpu_clock_frequency)
        if self._cpu is not None and hasattr(self._cpu, "reset"):
            self._cpu.reset()
        for device in self._devices:
            if hasattr(device, "reset"):
                device.reset()
        if active:
            self._start_periodic_tasks()

    def _apply_pause(self) -> None:
        if self._running_status != self.STATUS_RUNNING:
            return
        self._running_status = self.STATUS_PAUSED
        self._stop_periodic_tasks()

    def _apply_resume(self) -> None:
        if self._running_status == self.STATUS_RUNNING:
            return
        self._running_status = self.STATUS_RUNNING
        self._time_manager.reset(self.clock_count, self.cpu_clock_frequency)
        self._start_periodic_tasks()

    def _apply_power_off(self) -> None:
        self._running_status = self.STATUS_STOPPED
        self._stop_periodic_tasks()
        self._event_queue.clear()

    def _start_periodic_tasks(self) -> None:
        if self._running_status != self.STATUS_RUNNING or self._timer_active:
            return
        self._timer_active = True
        self._timer_generation += 1
        self._schedule_timer(self._timer_generation)

    def _stop_periodic_tasks(self) -> None:
        self._timer_active = False

    def _schedule_timer(self, generation: int) -> None:
        self._schedule_event(
            lambda comp: comp._timer_event(generation),
            self._timer_interval_clocks,
            name="timer.tick",
        )

    def _timer_event(self, generation: int) -> None:
        # Events left over from before a pause or frequency change are stale.
        if generation != self._timer_generation:
            return
        if not self._timer_active or self._running_status != self.STATUS_RUNNING:
            return
        self.update_timer()
        if self._timer_active and self._running_status == self.STATUS_RUNNING:
            self._schedule_timer(generation)

    def _compute_timer_interval(self) -> int:
        return max(1, int(self.cpu_clock_frequency // self.timer_frequency))

    # ------------------------------------------------------------------
    # Clock configuration
    # ------------------------------------------------------------------
    def get_clock_count(self) -> int:
        return self.clock_count

    def get_clock_frequency(self) -> float:
        return self.cpu_clock_frequency

    def set_clock_frequency(self, frequency: float) -> None:
        if frequency <= 0:
            raise ValueError("frequency must be positive")
        self.cpu_clock_frequency = frequency
        self._time_manager.reset(self.clock_count, self.cpu_clock_frequency)
        self._timer_interval_clocks = self._compute_timer_interval()
        if self._running_status == self.STATUS_RUNNING:
            self._stop_periodic_tasks()
            self._start_periodic_tasks()
