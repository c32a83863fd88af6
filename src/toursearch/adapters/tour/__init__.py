"""Native tour structure adapter."""

from __future__ import annotations

from .source import JsonTourSource, TourExportError
from .translator import NavigationHandle, translate_document

__all__ = ["JsonTourSource", "NavigationHandle", "TourExportError", "translate_document"]
