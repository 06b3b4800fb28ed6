"""File-backed holder of the single persisted state document."""

from __future__ import annotations

import logging
from pathlib import Path

from folio_core.defaults import default_state
from folio_core.document import dump_document, load_document
from folio_core.exceptions import ErrorCode, FolioError
from folio_core.models.portfolio import PortfolioState

logger = logging.getLogger(__name__)


class StateStore:
    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    def load(self) -> PortfolioState:
        if not self._path.exists():
            return default_state()
        return load_document(self._read(self._path))

    def save(self, state: PortfolioState) -> Path:
        self._write_atomic(self._path, dump_document(state))
        logger.debug("state saved to %s", self._path)
        return self._path

    def export_to(self, target: Path) -> Path:
        self._write_atomic(target, dump_document(self.load()))
        logger.info("state exported to %s", target)
        return target

    def import_from(self, source: Path) -> PortfolioState:
        # Validation happens before anything is written; a bad file leaves the stored snapshot intact.
        state = load_document(self._read(source))
        self.save(state)
        logger.info("state imported from %s", source)
        return state

    @staticmethod
    def _read(path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise FolioError(ErrorCode.STORAGE_ERROR, f"cannot read {path}: {exc.strerror}", details={"path": str(path)}) from exc

    @staticmethod
    def _write_atomic(path: Path, text: str) -> None:
        tmp_path = path.with_name(f".{path.name}.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(text, encoding="utf-8")
            tmp_path.replace(path)
        except OSError as exc:
            raise FolioError(ErrorCode.STORAGE_ERROR, f"cannot write {path}: {exc.strerror}", details={"path": str(path)}) from exc
