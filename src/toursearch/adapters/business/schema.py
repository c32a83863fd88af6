"""Business feed payload schemas."""

from __future__ import annotations

import logging
from typing import ClassVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

log = logging.getLogger(__name__)


class BusinessBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.info(
            "Business feed %s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


class BusinessEntry(BusinessBaseModel):
    id: str
    name: str = ""
    description: str = ""
    match_tags: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("matchTags", "match_tags", "tags"),
    )
    image_url: str | None = Field(
        default=None, validation_alias=AliasChoices("imageUrl", "image_url", "image")
    )
    local_image_path: str | None = Field(
        default=None,
        validation_alias=AliasChoices("localImagePath", "localImage", "local_image_path"),
    )
    element_type: str | None = Field(
        default=None, validation_alias=AliasChoices("elementType", "element_type", "type")
    )
    parent_id: str | None = Field(
        default=None, validation_alias=AliasChoices("parentId", "parent_id")
    )

    @field_validator("id", "parent_id", mode="before")
    @classmethod
    def _coerce_identifier(cls, value: object) -> object:
        if isinstance(value, int | float) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("name", "description", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("match_tags", mode="before")
    @classmethod
    def _split_tags(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, str):
            return [tag.strip() for tag in value.split(",") if tag.strip()]
        return value
