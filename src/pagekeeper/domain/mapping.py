"""Alias rules that rewrite source names and tags before they are compared to storage.

Rules are evaluated as an ordered fold: every rule is tested and the last one
whose predicate holds wins, so later configuration entries override earlier ones.
All functions here are pure; the same rules and input always give the same output.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

from pagekeeper.domain.model import DEFAULT_TAG_NAMESPACE, Source, Tag

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from pagekeeper.domain.model import SourceKey, TagKey


@dataclass(frozen=True, slots=True)
class SourceMappingRule:
    """Rename a source whose name equals ``match`` or whose URL contains it."""

    match: str
    ignore_case: bool = False
    name: str | None = None

    def matches(self, source: Source) -> bool:
        pattern = self.match.casefold() if self.ignore_case else self.match
        if source.name:
            candidate = source.name.casefold() if self.ignore_case else source.name
            return candidate == pattern
        if source.url:
            url = source.url.casefold() if self.ignore_case else source.url
            return pattern in url
        return False


@dataclass(frozen=True, slots=True)
class TagMappingRule:
    """Rewrite the namespace and/or name of tags whose name is in ``match``."""

    match: frozenset[str] = field(default_factory=frozenset[str])
    ignore_case: bool = False
    match_namespace: str | None = None
    namespace: str | None = None
    name: str | None = None

    def matches(self, tag: Tag) -> bool:
        if self.match_namespace and self.match_namespace != tag.namespace:
            return False
        if self.ignore_case:
            return tag.name.casefold() in {value.casefold() for value in self.match}
        return tag.name in self.match


class _Rule(Protocol):
    def matches(self, item: Any, /) -> bool: ...  # noqa: ANN401


def _last_match[TRule: _Rule](item: object, rules: Sequence[TRule]) -> TRule | None:
    winner: TRule | None = None
    for rule in rules:
        if rule.matches(item):
            winner = rule
    return winner


def resolve_source_mapping(source: Source, rules: Sequence[SourceMappingRule]) -> Source:
    """Return ``source`` with its name replaced by the winning rule's name, if any."""

    rule = _last_match(source, rules)
    if rule is None or rule.name is None:
        return source
    return Source(name=rule.name, url=source.url)


def normalize_tag(tag: Tag) -> Tag:
    """Default an empty namespace to ``tag``."""

    if tag.namespace:
        return tag
    return Tag(name=tag.name, namespace=DEFAULT_TAG_NAMESPACE)


def resolve_tag_mapping(tag: Tag, rules: Sequence[TagMappingRule]) -> Tag:
    """Return ``tag`` rewritten by the winning rule, if any."""

    rule = _last_match(tag, rules)
    if rule is None:
        return tag
    return Tag(
        name=rule.name if rule.name is not None else tag.name,
        namespace=rule.namespace or tag.namespace,
    )


def normalize_sources(
    sources: Iterable[Source],
    rules: Sequence[SourceMappingRule],
) -> list[Source]:
    """Map every source and drop repeated ``(name, url)`` pairs, keeping first-seen order."""

    seen: set[SourceKey] = set()
    normalized: list[Source] = []
    for source in sources:
        mapped = resolve_source_mapping(source, rules)
        if mapped.key in seen:
            continue
        seen.add(mapped.key)
        normalized.append(mapped)
    return normalized


def normalize_tags(tags: Iterable[Tag], rules: Sequence[TagMappingRule]) -> list[Tag]:
    """Default namespaces, apply mapping rules and drop repeated ``(namespace, name)`` pairs."""

    seen: set[TagKey] = set()
    normalized: list[Tag] = []
    for tag in tags:
        mapped = resolve_tag_mapping(normalize_tag(tag), rules)
        if mapped.key in seen:
            continue
        seen.add(mapped.key)
        normalized.append(mapped)
    return normalized
