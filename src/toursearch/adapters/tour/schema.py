"""Exported tour document schema.

The document is a ``playlist`` of panoramas / 3D models, each carrying its
``overlays`` (hotspots, frames, videos, 3D sprites...). Unknown keys are kept
and surface as type-detection properties.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class TourBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = ""
    class_name: str | None = Field(
        default=None, validation_alias=AliasChoices("class", "class_name", "className")
    )
    label: str = ""
    subtitle: str = ""
    description: str = ""
    tags: list[str] = Field(default_factory=list)
    type: str | None = Field(
        default=None, validation_alias=AliasChoices("type", "elementType", "entityType")
    )
    data: dict[str, Any] = Field(default_factory=dict)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        if value is None:
            return ""
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("label", "subtitle", "description", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value

    def properties(self) -> dict[str, Any]:
        """Flags from ``data`` plus any unmodeled keys, for type detection."""

        extras = dict(self.model_extra or {})
        return {**extras, **self.data, "description": self.description}


class TourOverlay(TourBaseModel):
    pass


class TourPlaylistItem(TourBaseModel):
    media_id: str | None = Field(default=None, validation_alias=AliasChoices("mediaId", "media_id"))
    thumbnail: str | None = Field(
        default=None, validation_alias=AliasChoices("thumbnail", "thumbnailUrl", "image")
    )
    overlays: list[TourOverlay] = Field(default_factory=list)


class TourDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    playlist: list[TourPlaylistItem] = Field(default_factory=list)
