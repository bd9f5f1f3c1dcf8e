"""Translate metadata payloads into domain records."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import ValidationError

from pagekeeper.domain.model import ArchiveMetadata, Image, Source, Tag

from .schema import ArchiveMetadataPayload, MetadataTag

if TYPE_CHECKING:
    from pathlib import Path


class MetadataPayloadError(ValueError):
    """Raised when a metadata document cannot be parsed or validated."""


def parse_metadata_payload(raw: str | bytes) -> ArchiveMetadataPayload:
    try:
        return ArchiveMetadataPayload.model_validate_json(raw)
    except ValidationError as exc:
        raise MetadataPayloadError(f"Invalid archive metadata: {exc}") from exc


def load_metadata_file(path: Path) -> ArchiveMetadata:
    """Read and translate a JSON metadata file."""

    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise MetadataPayloadError(f"Cannot read metadata file {path}: {exc}") from exc
    return translate_metadata(parse_metadata_payload(raw))


def translate_metadata(payload: ArchiveMetadataPayload) -> ArchiveMetadata:
    return ArchiveMetadata(
        sources=None
        if payload.sources is None
        else [Source(name=source.name, url=source.url) for source in payload.sources],
        images=None
        if payload.images is None
        else [
            Image(
                filename=image.filename,
                page_number=image.page_number,
                width=image.width,
                height=image.height,
            )
            for image in payload.images
        ],
        tags=None if payload.tags is None else [_translate_tag(tag) for tag in payload.tags],
    )


def _translate_tag(tag: MetadataTag | str) -> Tag:
    if isinstance(tag, MetadataTag):
        return Tag(name=tag.name.strip(), namespace=tag.namespace.strip())
    # "namespace:name", or a bare name in the default namespace
    namespace, separator, name = tag.partition(":")
    if not separator:
        namespace, name = "", tag
    if not name.strip():
        raise MetadataPayloadError(f"Tag {tag!r} has no name")
    return Tag(name=name.strip(), namespace=namespace.strip())

