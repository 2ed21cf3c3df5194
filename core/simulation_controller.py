"""
This class acts as the tick driver for playback, bridging the host's
refresh scheduling and the playback engine.

At most one tick is pending at any time. Pausing, resetting or loading
cancels it on the spot, and every tick carries the generation it was
scheduled in, so a tick that still fires after a cancellation does nothing.
"""
import logging
from abc import ABC, abstractmethod
from collections import deque
from typing import Any, Callable, Deque, Optional, Sequence, Tuple

from core.canonical import MotionCommand
from core.playback import PlaybackEngine, PlaybackState

logger = logging.getLogger(__name__)

Tick = Callable[[], None]


class TickScheduler(ABC):
    """Schedules a callback for the next refresh tick."""

    @abstractmethod
    def schedule(self, callback: Tick) -> Any:
        """Arrange for `callback` to run once; return a handle for cancel()."""
        pass

    @abstractmethod
    def cancel(self, handle: Any):
        """Drop a scheduled callback; unknown or spent handles are ignored."""
        pass


class ManualScheduler(TickScheduler):
    """Scheduler driven by explicit run_pending() calls, for headless runs and tests."""

    def __init__(self):
        self._queue: Deque[Tuple[int, Tick]] = deque()
        self._next_handle = 0

    def schedule(self, callback: Tick) -> int:
        self._next_handle += 1
        self._queue.append((self._next_handle, callback))
        return self._next_handle

    def cancel(self, handle: int):
        self._queue = deque(entry for entry in self._queue if entry[0] != handle)

    @property
    def pending(self) -> int:
        return len(self._queue)

    def run_pending(self) -> int:
        """Fire the callbacks queued so far; returns how many ran."""
        batch = list(self._queue)
        self._queue.clear()
        for _, callback in batch:
            callback()
        return len(batch)

    def run_until_idle(self, max_ticks: int = 1_000_000) -> int:
        """Keep firing until nothing is queued or `max_ticks` callbacks ran."""
        ticks = 0
        while self._queue and ticks < max_ticks:
            ticks += self.run_pending()
        return ticks


class SimulationController:
    """Runs a PlaybackEngine from a TickScheduler."""

    def __init__(self, engine: PlaybackEngine, scheduler: TickScheduler):
        self.engine = engine
        self.scheduler = scheduler
        self._pending: Optional[Any] = None
        self._generation = 0

    @property
    def state(self) -> PlaybackState:
        return self.engine.state

    @property
    def has_pending_tick(self) -> bool:
        return self._pending is not None

    def load_commands(self, commands: Sequence[MotionCommand]):
        self._cancel_pending()
        self.engine.load(commands)

    def start(self) -> bool:
        """Start or resume, then schedule the first tick."""
        self._cancel_pending()
        started = self.engine.start()
        if started:
            self._schedule_next()
        return started

    def pause(self) -> bool:
        self._cancel_pending()
        return self.engine.pause()

    def resume(self) -> bool:
        resumed = self.engine.resume()
        if resumed:
            self._cancel_pending()
            self._schedule_next()
        return resumed

    def toggle_pause(self) -> bool:
        if self.engine.state.running:
            return self.pause()
        return self.resume()

    def reset(self):
        self._cancel_pending()
        self.engine.reset()

    def set_speed(self, speed: int):
        self.engine.speed = speed

    def _schedule_next(self):
        generation = self._generation
        self._pending = self.scheduler.schedule(lambda: self._on_tick(generation))

    def _cancel_pending(self):
        if self._pending is not None:
            self.scheduler.cancel(self._pending)
            self._pending = None
        self._generation += 1

    def _on_tick(self, generation: int):
        if generation != self._generation:
            logger.debug("Dropping stale playback tick")
            return
        self._pending = None
        if not self.engine.state.running:
            return
        state = self.engine.step()
        if state.running:
            self._schedule_next()
        elif state.complete:
            logger.info(f"Playback complete: {self.engine.command_count} commands")
