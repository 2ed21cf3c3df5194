"""
Qt tick scheduling for playback: one single-shot QTimer per tick.
"""
from PySide6.QtCore import QObject, QTimer

from core.simulation_controller import Tick, TickScheduler


class QtTickScheduler(TickScheduler):
    """Runs ticks from the Qt event loop every `interval_ms` milliseconds."""

    def __init__(self, interval_ms: int = 16, parent: QObject = None):
        self.interval_ms = interval_ms
        self._parent = parent
        self._timers = []

    def schedule(self, callback: Tick) -> QTimer:
        timer = QTimer(self._parent)
        timer.setSingleShot(True)
        timer.setInterval(self.interval_ms)
        timer.timeout.connect(lambda: self._fire(timer, callback))
        self._timers.append(timer)
        timer.start()
        return timer

    def cancel(self, handle: QTimer):
        if handle in self._timers:
            handle.stop()
            self._release(handle)

    @property
    def pending(self) -> int:
        return len(self._timers)

    def _fire(self, timer: QTimer, callback: Tick):
        self._release(timer)
        callback()

    def _release(self, timer: QTimer):
        self._timers.remove(timer)
        timer.deleteLater()
