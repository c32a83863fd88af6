"""Spreadsheet row schema."""

from __future__ import annotations

import logging
from typing import ClassVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

log = logging.getLogger(__name__)


class SheetRow(BaseModel):
    """One header-driven spreadsheet row; every cell arrives as text."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)
    _logged_extra_keys: ClassVar[set[str]] = set()

    id: str = ""
    tag: str = ""
    name: str = ""
    description: str = ""
    image_url: str = Field(
        default="", validation_alias=AliasChoices("imageUrl", "image_url", "imageurl")
    )
    image: str = ""
    element_type: str = Field(
        default="", validation_alias=AliasChoices("elementType", "element_type", "elementtype")
    )
    type: str = ""
    parent_id: str = Field(
        default="", validation_alias=AliasChoices("parentId", "parent_id", "parentid")
    )

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.info("Spreadsheet rows: unmodeled columns: %s", ", ".join(sorted(new_keys)))

    @field_validator("*", mode="before")
    @classmethod
    def _cell_to_text(cls, value: object) -> object:
        if value is None:
            return ""
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, int | float):
            return str(value)
        return value

    @property
    def resolved_image(self) -> str:
        return self.image_url or self.image

    @property
    def resolved_type(self) -> str:
        return self.element_type or self.type
