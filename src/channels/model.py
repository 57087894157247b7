"""Channel data model: streams of version constraints and channel locators."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field, replace
from typing import Iterable, List, Optional, Tuple

from errors import ChannelLoadFailure
from versioning.maven_version import VersionRange
from versioning.models import Coordinate, MavenRepository

WILDCARD = "*"


@dataclass(frozen=True)
class Stream:
    """Version constraint for a group:artifact inside a channel.

    Exactly one of ``version``, ``version_range`` and ``version_pattern`` is set.
    ``classifier`` and ``extension`` restrict the match when present.
    """
    group_id: str
    artifact_id: str
    version: Optional[str] = None
    version_range: Optional[str] = None
    version_pattern: Optional[str] = None
    classifier: Optional[str] = None
    extension: Optional[str] = None

    def __post_init__(self):
        constraints = [c for c in (self.version, self.version_range, self.version_pattern) if c]
        if len(constraints) != 1:
            raise ValueError(
                f"Stream {self.group_id}:{self.artifact_id} must declare exactly one of "
                "version, versionRange, versionPattern"
            )
        if self.version_range:
            VersionRange(self.version_range)
        if self.version_pattern:
            re.compile(self.version_pattern)

    @property
    def is_wildcard(self) -> bool:
        return self.artifact_id == WILDCARD

    def matches(self, coordinate: Coordinate) -> bool:
        if self.group_id != coordinate.group_id:
            return False
        if not self.is_wildcard and self.artifact_id != coordinate.artifact_id:
            return False
        if self.classifier is not None and self.classifier != coordinate.classifier:
            return False
        if self.extension is not None and self.extension != coordinate.extension:
            return False
        return True

    def accepts(self, version: str) -> bool:
        """Whether ``version`` satisfies this stream's constraint."""
        if self.version:
            return version == self.version
        if self.version_range:
            return VersionRange(self.version_range).contains(version)
        return re.fullmatch(self.version_pattern, version) is not None

    def describe(self) -> str:
        return self.version or self.version_range or f"/{self.version_pattern}/"


@dataclass(frozen=True)
class Channel:
    """Ordered, named collection of streams plus the repositories backing them."""
    name: str
    streams: Tuple[Stream, ...] = ()
    repositories: Tuple[MavenRepository, ...] = ()
    description: Optional[str] = None
    schema_version: Optional[str] = None

    def find_stream(self, coordinate: Coordinate) -> Optional[Stream]:
        """Return the stream governing ``coordinate``; exact entries win over wildcards."""
        wildcard = None
        for stream in self.streams:
            if not stream.matches(coordinate):
                continue
            if not stream.is_wildcard:
                return stream
            if wildcard is None:
                wildcard = stream
        return wildcard


def with_unique_names(channels: Iterable[Channel]) -> List[Channel]:
    """Return ``channels`` with repeated names suffixed ``-2``, ``-3`` and so on.

    The resolver and the resolution record identify a channel by its name.
    """
    taken = set()
    unique = []
    for channel in channels:
        name, n = channel.name, 1
        while name in taken:
            n += 1
            name = f"{channel.name}-{n}"
        taken.add(name)
        unique.append(channel if name == channel.name else replace(channel, name=name))
    return unique


@dataclass(frozen=True)
class ChannelCoordinate:
    """Locates a channel manifest: a URL or a Maven group:artifact[:version]."""
    url: Optional[str] = None
    group_id: Optional[str] = None
    artifact_id: Optional[str] = None
    version: Optional[str] = None

    def __post_init__(self):
        has_url = bool(self.url)
        has_ga = bool(self.group_id) or bool(self.artifact_id)
        if has_url == has_ga:
            raise ChannelLoadFailure(self, "a channel needs either a URL or Maven coordinates")
        if has_ga and not (self.group_id and self.artifact_id):
            raise ChannelLoadFailure(self, "Maven channel coordinates need a groupId and an artifactId")

    @classmethod
    def parse(cls, value: str) -> "ChannelCoordinate":
        value = (value or "").strip()
        if not value:
            raise ChannelLoadFailure(value, "empty channel reference")
        if "://" in value or os.path.exists(value) or value.endswith((".yaml", ".yml")):
            return cls(url=value)
        parts = value.split(":")
        if len(parts) not in (2, 3) or not all(parts[:2]):
            raise ChannelLoadFailure(value, "expected a URL or groupId:artifactId[:version]")
        return cls(group_id=parts[0], artifact_id=parts[1],
                   version=parts[2] if len(parts) == 3 and parts[2] else None)

    def __str__(self) -> str:
        if self.url:
            return self.url
        out = f"{self.group_id}:{self.artifact_id}"
        return f"{out}:{self.version}" if self.version else out


@dataclass
class ChannelsConfig:
    """Caller-level channel configuration."""
    channels: Iterable[ChannelCoordinate] = field(default_factory=list)
    disable_latest_resolution: bool = False
    allow_channel_direct_fallback: bool = False
    local_cache: Optional[str] = None
    repositories: Iterable[MavenRepository] = field(default_factory=list)
