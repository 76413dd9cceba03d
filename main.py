from __future__ import annotations

from pathlib import Path
import sys

from PySide6.QtWidgets import QApplication
from loguru import logger

from app.viewmodels.main_vm import DEFAULT_PAGE_SIZE, MainVM
from app.views.main_window import MainWindow
from app.views.qt_adapters import CurationTaskRunner, QtScheduler
from core.models import ViewMode
from core.services.fade_tracker import DEFAULT_FADE_MS
from infrastructure.image_service import ImageService
from infrastructure.json_repository import JsonLibraryRepository
from infrastructure.logging import init_logging
from infrastructure.settings import JsonSettings

BASE_DIR = Path(__file__).parent


def _parse_mode(raw: object) -> ViewMode:
    try:
        return ViewMode(str(raw).lower())
    except ValueError:
        logger.warning("Unknown view.default_mode {!r}; using curate", raw)
        return ViewMode.CURATE


def main() -> int:
    settings = JsonSettings(BASE_DIR / "settings.json")
    log_dir = settings.get("logging.dir")
    log_path = init_logging(log_dir, settings.get("logging.level", "INFO"))
    logger.info("Starting photo gallery; logs in {}", log_path)

    app = QApplication(sys.argv)

    library_path = settings.resolve_path("library.path", "library.json")
    repo = JsonLibraryRepository.from_settings(settings, library_path)
    logger.info("Library: {}", repo.path)

    vm = MainVM(
        page_source=repo,
        curation_runner=CurationTaskRunner(repo),
        notifier=None,
        scheduler=QtScheduler(app),
        mode=_parse_mode(settings.get("view.default_mode", "curate")),
        page_size=int(settings.get("library.page_size", DEFAULT_PAGE_SIZE) or DEFAULT_PAGE_SIZE),
        fade_ms=int(settings.get("curation.fade_ms", DEFAULT_FADE_MS) or DEFAULT_FADE_MS),
    )

    img = ImageService(settings)
    win = MainWindow(vm=vm, image_service=img, settings=settings, log_dir=str(log_path))
    vm.load_page(0)
    win.show()
    win.grid.setFocus()

    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
