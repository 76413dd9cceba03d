"""Qt implementations of the page-session ports (timers, curation, notifications)."""

from __future__ import annotations

from collections.abc import Callable
import itertools

from PySide6.QtCore import QObject, QRunnable, QThreadPool, QTimer, Signal
from PySide6.QtWidgets import QMainWindow
from loguru import logger

from core.services.interfaces import CurateRequest, CurateResult, ICurationService, run_curation


class QtScheduler:
    """Single-shot timers on the Qt event loop; the handle is the QTimer."""

    def __init__(self, parent: QObject | None = None) -> None:
        self._parent = parent

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> QTimer:
        timer = QTimer(self._parent)
        timer.setSingleShot(True)

        def _fire() -> None:
            timer.deleteLater()
            callback()

        timer.timeout.connect(_fire)
        timer.start(max(0, int(delay_ms)))
        return timer

    def cancel(self, handle: QTimer) -> None:
        if handle is None:
            return
        handle.stop()
        handle.deleteLater()


class StatusReporterImpl:
    """Notifications port backed by the main window's status bar."""

    def __init__(self, main_window: QMainWindow):
        self.window = main_window

    def notify(self, message: str, duration_ms: int = 3000) -> None:
        self.window.statusBar().showMessage(message, duration_ms)


class _CurationSignals(QObject):
    finished = Signal(int, object)  # ticket, CurateResult


class _CurationTask(QRunnable):
    """QRunnable applying one curation request on a worker thread."""

    def __init__(
        self, *, ticket: int, request: CurateRequest, service: ICurationService, signals: QObject
    ) -> None:
        super().__init__()
        self._ticket = ticket
        self._request = request
        self._service = service
        self._signals = signals

    def run(self) -> None:  # type: ignore[override]
        result = run_curation(self._service, self._request)
        self._signals.finished.emit(self._ticket, result)  # type: ignore[attr-defined]


class CurationTaskRunner:
    """Runs curation requests on the global thread pool.

    Each request gets a ticket; completion is delivered back on the GUI
    thread through a queued signal and routed to the request's callback.
    """

    def __init__(self, service: ICurationService) -> None:
        self._service = service
        self._pool = QThreadPool.globalInstance()
        self._signals = _CurationSignals()
        self._signals.finished.connect(self._on_finished)
        self._tickets = itertools.count(1)
        self._pending: dict[int, Callable[[CurateResult], None]] = {}

    @property
    def pending(self) -> int:
        return len(self._pending)

    def submit(self, request: CurateRequest, on_done: Callable[[CurateResult], None]) -> None:
        ticket = next(self._tickets)
        self._pending[ticket] = on_done
        self._pool.start(
            _CurationTask(
                ticket=ticket, request=request, service=self._service, signals=self._signals
            )
        )

    def _on_finished(self, ticket: int, result: CurateResult) -> None:
        on_done = self._pending.pop(ticket, None)
        if on_done is None:
            logger.debug("No callback for curation ticket {}", ticket)
            return
        on_done(result)
