"""Channel overlay artifact resolution.

Requests for an artifact are answered by the first channel declaring a
stream for it; when no channel answers, a versioned coordinate falls back to
the default repositories. Every successful resolution is recorded.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from common.logging_utils import extra_context, is_debug_enabled
from errors import RecorderClosed, UnresolvedArtifact
from registry.maven.source import VersionSource
from versioning.maven_version import highest
from versioning.models import MAVEN_CENTRAL, ArtifactKey, Coordinate, ResolvedArtifact
from .manifest import ManifestResolver
from .model import Channel, ChannelsConfig, Stream, with_unique_names
from .recorder import ResolutionRecorder

logger = logging.getLogger(__name__)


class ChannelOverlayResolver:
    """Resolves coordinates through ordered channels with direct fallback.

    Args:
        channels: Loaded channels, highest priority first.
        default_source: Source used for direct fallback; channels without
            repositories of their own also resolve through its repositories.
        recorder: Receives every resolution; created when omitted.
        disable_latest_resolution: Use exact mode (the requested version must
            be accepted by the channel) instead of latest mode.
        allow_channel_direct_fallback: When a channel has no stream for a
            versioned coordinate, look the requested version up in that
            channel's repositories before the default source.
    """

    def __init__(self, channels: Sequence[Channel], default_source: VersionSource,
                 recorder: Optional[ResolutionRecorder] = None,
                 disable_latest_resolution: bool = False,
                 allow_channel_direct_fallback: bool = False):
        self.channels: List[Channel] = with_unique_names(channels)
        self.default_source = default_source
        self.recorder = (recorder if recorder is not None
                         else ResolutionRecorder(self.channels, default_source.repositories))
        self.disable_latest_resolution = disable_latest_resolution
        self.allow_channel_direct_fallback = allow_channel_direct_fallback
        self._resolved: Dict[Tuple[ArtifactKey, Optional[str]], ResolvedArtifact] = {}
        self._served_by: Dict[Tuple[ArtifactKey, Optional[str]], Optional[str]] = {}
        self._sources: Dict[str, VersionSource] = {}

    @classmethod
    def from_config(cls, config: ChannelsConfig, build_dir: Path,
                    base_dir: Optional[Path] = None, offline: bool = False) -> "ChannelOverlayResolver":
        """Load the configured channels and build a resolver.

        Raises:
            ChannelLoadFailure: any configured channel cannot be loaded.
        """
        local_cache = None
        if config.local_cache:
            local_cache = Path(config.local_cache).expanduser()
            if not local_cache.is_absolute() and base_dir is not None:
                local_cache = Path(base_dir) / local_cache
        repositories = list(config.repositories) or [MAVEN_CENTRAL]
        source = VersionSource.create(repositories, build_dir, local_cache=local_cache, offline=offline)
        channels = ManifestResolver(source).load_all(config.channels)
        return cls(channels, source,
                   disable_latest_resolution=config.disable_latest_resolution,
                   allow_channel_direct_fallback=config.allow_channel_direct_fallback)

    @property
    def channel_names(self) -> List[str]:
        return [c.name for c in self.channels]

    def _channel_source(self, channel: Channel) -> VersionSource:
        source = self._sources.get(channel.name)
        if source is None:
            repositories = channel.repositories or self.default_source.repositories
            source = self.default_source.with_repositories(repositories)
            self._sources[channel.name] = source
        return source

    def _exact_version(self, channel: Channel, stream: Stream, coordinate: Coordinate) -> Optional[str]:
        if coordinate.version is None:
            return stream.version
        if stream.accepts(coordinate.version):
            return coordinate.version
        raise UnresolvedArtifact(
            coordinate, self.channel_names,
            reason=f"channel '{channel.name}' requires {stream.describe()} and latest resolution is disabled",
        )

    def _latest_version(self, channel: Channel, stream: Stream, coordinate: Coordinate) -> Optional[str]:
        if stream.version:
            return stream.version
        versions = self._channel_source(channel).get_all_versions(coordinate)
        return highest(v for v in versions if stream.accepts(v))

    def _direct_version(self, channel: Channel, coordinate: Coordinate) -> Optional[str]:
        if not (self.allow_channel_direct_fallback and coordinate.version and channel.repositories):
            return None
        if coordinate.version in self._channel_source(channel).get_all_versions(coordinate):
            logger.info("Channel %s has no stream for %s, using requested version from its repositories",
                        channel.name, coordinate)
            return coordinate.version
        return None

    def channel_version(self, channel: Channel, coordinate: Coordinate) -> Optional[str]:
        """The version ``channel`` dictates for ``coordinate``, or None when it has no answer."""
        stream = channel.find_stream(coordinate)
        if stream is None:
            return self._direct_version(channel, coordinate)
        if self.disable_latest_resolution:
            return self._exact_version(channel, stream, coordinate)
        return self._latest_version(channel, stream, coordinate)

    def resolve(self, coordinate: Coordinate) -> ResolvedArtifact:
        """Resolve ``coordinate`` to a versioned, locally available artifact.

        Raises:
            UnresolvedArtifact: no channel and no fallback could resolve it, or
                the file of the chosen version could not be fetched.
            RecorderClosed: the resolution record was already flushed.
        """
        if self.recorder.closed:
            raise RecorderClosed(f"Cannot resolve {coordinate} after the resolution record was flushed")
        cache_key = (coordinate.key, coordinate.version)
        cached = self._resolved.get(cache_key)
        if cached is not None:
            self.recorder.record(cached.coordinate, cached.version, self._served_by.get(cache_key))
            return cached

        for channel in self.channels:
            version = self.channel_version(channel, coordinate)
            if version is None:
                continue
            if is_debug_enabled(logger):
                logger.debug("Channel decision", extra=extra_context(
                    event="decision", component="channel_resolver", action="resolve",
                    target=str(coordinate), outcome=channel.name
                ))
            resolved = coordinate.with_version(version)
            try:
                path = self._channel_source(channel).resolve_artifact(resolved)
            except UnresolvedArtifact as exc:
                raise UnresolvedArtifact(resolved, [channel.name], reason=exc.reason) from exc
            return self._finish(coordinate, resolved, path, channel.name)

        if coordinate.version:
            if self.channels:
                logger.info("No channel provides %s, falling back to direct resolution", coordinate)
            try:
                path = self.default_source.resolve_artifact(coordinate)
            except UnresolvedArtifact as exc:
                raise UnresolvedArtifact(coordinate, self.channel_names, reason=exc.reason) from exc
            return self._finish(coordinate, coordinate, path, None)

        raise UnresolvedArtifact(coordinate, self.channel_names,
                                 reason="no channel provides a version and none was requested")

    def _finish(self, requested: Coordinate, resolved: Coordinate, path: Path,
                channel: Optional[str]) -> ResolvedArtifact:
        if requested.version != resolved.version:
            logger.info("Updated %s. Previous version: %s", resolved, requested.version)
        artifact = ResolvedArtifact(resolved, path)
        cache_key = (requested.key, requested.version)
        self._resolved[cache_key] = artifact
        self._served_by[cache_key] = channel
        self.recorder.record(resolved, resolved.version, channel)
        return artifact

    def done(self, home: Path) -> Path:
        """Persist the resolution record into the installation ``home``."""
        return self.recorder.flush(home)
