"""Schemas for archive metadata files produced by scrapers and importers."""

from __future__ import annotations

import logging
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, PositiveInt

log = logging.getLogger(__name__)


class MetadataBaseModel(BaseModel):
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
        log.warning(
            "Metadata %s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


class MetadataSource(MetadataBaseModel):
    name: str | None = None
    url: str | None = None


class MetadataImage(MetadataBaseModel):
    filename: str = Field(min_length=1)
    page_number: NonNegativeInt = Field(alias="pageNumber")
    width: PositiveInt | None = None
    height: PositiveInt | None = None


class MetadataTag(MetadataBaseModel):
    name: str = Field(min_length=1)
    namespace: str = ""


class ArchiveMetadataPayload(MetadataBaseModel):
    """Top-level metadata document; omitted collections are left untouched."""

    sources: list[MetadataSource] | None = None
    images: list[MetadataImage] | None = None
    tags: list[MetadataTag | str] | None = None
