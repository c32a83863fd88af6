"""JSON-backed ``TourSourceAdapter``."""

from __future__ import annotations

import json
from logging import getLogger
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from toursearch.domain.errors import SourceUnavailableError
from toursearch.domain.model import SourceKind

from .schema import TourDocument
from .translator import translate_document

if TYPE_CHECKING:
    from pathlib import Path

    from toursearch.domain.model import TourRecord

log = getLogger(__name__)


class TourExportError(SourceUnavailableError):
    """Raised when the tour export cannot be read or does not validate."""

    def __init__(self, message: str) -> None:
        super().__init__(SourceKind.TOUR, message)


class JsonTourSource:
    """Reads an exported tour structure (a ``playlist`` document)."""

    def __init__(self, document: dict[str, Any]) -> None:
        self._document = document

    @classmethod
    def from_path(cls, path: Path) -> JsonTourSource:
        try:
            document = json.loads(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise TourExportError(f"Cannot read {path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise TourExportError(f"{path} is not valid JSON: {exc}") from exc
        if not isinstance(document, dict):
            raise TourExportError(f"{path} must contain a JSON object")
        return cls(document)

    def load_records(self) -> list[TourRecord]:
        try:
            document = TourDocument.model_validate(self._document)
        except ValidationError as exc:
            raise TourExportError(f"Invalid tour export: {exc}") from exc
        records = translate_document(document)
        log.info(
            "Loaded %d tour records from %d playlist items", len(records), len(document.playlist)
        )
        return records
