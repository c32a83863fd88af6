"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import IntEnum, StrEnum


class SourceKind(StrEnum):
    TOUR = "tour"
    BUSINESS = "business"
    SHEET = "sheet"


class EntityType(StrEnum):
    """Searchable element kinds; values double as result group names."""

    PANORAMA = "Panorama"
    HOTSPOT = "Hotspot"
    POLYGON = "Polygon"
    VIDEO = "Video"
    WEBFRAME = "Webframe"
    IMAGE = "Image"
    TEXT = "Text"
    PROJECTED_IMAGE = "ProjectedImage"
    MODEL_3D = "Model3D"
    MODEL_3D_OBJECT = "Model3DObject"
    HOTSPOT_3D = "3DHotspot"
    BUSINESS = "Business"
    ELEMENT = "Element"

    @classmethod
    def parse(cls, value: str | None) -> EntityType | None:
        """Case-insensitive lookup by value or member name; ``None`` if unknown."""

        if not value:
            return None
        wanted = value.strip().lower().replace("-", "").replace(" ", "")
        if not wanted:
            return None
        if wanted in _TYPE_ALIASES:
            return cls(_TYPE_ALIASES[wanted])
        for member in cls:
            if wanted in {member.value.lower(), member.name.lower().replace("_", "")}:
                return member
        return None


_TYPE_ALIASES: dict[str, str] = {
    "3dmodel": "Model3D",
    "model": "Model3D",
    "sprite": "3DHotspot",
    "hotspot3d": "3DHotspot",
    "pano": "Panorama",
    "frame": "Webframe",
    "iframe": "Webframe",
}


class ConfidenceTier(IntEnum):
    NONE = 0
    WEAK = 1
    MEDIUM = 2
    EXACT = 3


class MatchMethod(StrEnum):
    """How a secondary record was tied to a tour entity."""

    EXACT_ID = "exact_id"
    TAG = "tag"
    LABEL = "label"

    @property
    def tier(self) -> ConfidenceTier:
        return _TIER_BY_METHOD[self]


_TIER_BY_METHOD: dict[MatchMethod, ConfidenceTier] = {
    MatchMethod.EXACT_ID: ConfidenceTier.EXACT,
    MatchMethod.TAG: ConfidenceTier.MEDIUM,
    MatchMethod.LABEL: ConfidenceTier.WEAK,
}
