"""Background thumbnail and preview loading for the gallery views.

Results come back through `receiver.imageLoaded(token, path, image)`, a
`Signal(str, str, object)` owned by the main window. Tokens look like
"grid|{path}|{side}" or "viewer|{path}|{side}" so the window can route them.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
import threading
from typing import Any

from PySide6.QtCore import QObject, QRunnable, QThreadPool
from loguru import logger


class ImageKind(str, Enum):
    GRID = "grid"
    VIEWER = "viewer"


def make_token(kind: ImageKind, path: str, side: int) -> str:
    return f"{kind.value}|{path}|{side}"


def token_kind(token: str) -> ImageKind | None:
    try:
        return ImageKind(token.split("|", 1)[0])
    except ValueError:
        return None


class _ImageTask(QRunnable):
    def __init__(self, runner: ImageTaskRunner, kind: ImageKind, path: str, side: int) -> None:
        super().__init__()
        self._runner = runner
        self._kind = kind
        self._path = path
        self._side = side
        self._token = make_token(kind, path, side)

    def run(self) -> None:  # type: ignore[override]
        service = self._runner.service
        load = service.get_preview if self._kind is ImageKind.VIEWER else service.get_thumbnail
        try:
            img = load(self._path, self._side)
        except (OSError, ValueError) as ex:  # pragma: no cover - GUI background task
            logger.error("Loading {} image failed for {}: {}", self._kind.value, self._path, ex)
            img = None
        self._runner.finished(self._token)
        # Queued connection delivers on the receiver's thread
        self._runner.receiver.imageLoaded.emit(self._token, self._path, img)  # type: ignore[attr-defined]


class ImageTaskRunner:
    """Dispatches image loads to the global thread pool.

    A token already in flight is not queued again; grid rebuilds re-request
    every visible tile and the pending load answers the new tile as well.
    """

    def __init__(self, *, service: Any, receiver: QObject) -> None:
        self.service = service
        self.receiver = receiver
        self._pool = QThreadPool.globalInstance()
        self._in_flight: set[str] = set()
        self._lock = threading.Lock()

    def _request(self, kind: ImageKind, path: str, side: int) -> str:
        token = make_token(kind, path, side)
        if self.service is None:
            return token
        with self._lock:
            if token in self._in_flight:
                return token
            self._in_flight.add(token)
        self._pool.start(_ImageTask(self, kind, path, side))
        return token

    def finished(self, token: str) -> None:
        with self._lock:
            self._in_flight.discard(token)

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._in_flight)

    def request_preview(self, path: str, side: int = 0) -> str:
        """Request a viewer preview (`side` 0 means full size). Returns the token."""
        return self._request(ImageKind.VIEWER, path, side)

    def request_grid_thumbnail(self, path: str, thumb_side: int) -> str:
        return self._request(ImageKind.GRID, path, thumb_side)

    def prefetch_previews(self, paths: Iterable[str], side: int = 0) -> None:
        """Warm the preview cache for photos the viewer is likely to show next."""
        for path in paths:
            self._request(ImageKind.VIEWER, path, side)
