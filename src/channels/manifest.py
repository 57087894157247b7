"""Loading channel manifests from URLs, files or Maven coordinates."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List

from common import http_client
from common.logging_utils import extra_context, is_debug_enabled, safe_url
from constants import Constants
from errors import ChannelLoadFailure, UnresolvedArtifact
from registry.maven.source import VersionSource
from versioning.models import Coordinate
from . import mapper
from .model import Channel, ChannelCoordinate, with_unique_names

logger = logging.getLogger(__name__)


class ManifestResolver:
    """Turns ChannelCoordinates into loaded Channels.

    Maven-referenced manifests are resolved through ``source`` (latest
    release from metadata when no version is given).
    """

    def __init__(self, source: VersionSource):
        self.source = source

    def load(self, channel: ChannelCoordinate) -> List[Channel]:
        """Load every channel document the coordinate points at.

        Raises:
            ChannelLoadFailure: the manifest cannot be located, fetched or parsed.
        """
        if channel.url:
            text = self._read_url(channel)
            name = Path(channel.url.split("?", 1)[0].rstrip("/")).stem or channel.url
        else:
            text = self._read_artifact(channel)
            name = f"{channel.group_id}:{channel.artifact_id}"
        try:
            channels = mapper.from_yaml(text, source_name=name)
        except mapper.ChannelFormatError as exc:
            raise ChannelLoadFailure(channel, str(exc)) from exc
        logger.info("Loaded %d channel(s) from %s", len(channels), channel)
        return channels

    def load_all(self, coordinates: Iterable[ChannelCoordinate]) -> List[Channel]:
        """Load all coordinates in order; any failure aborts the whole list."""
        channels: List[Channel] = []
        for coordinate in coordinates:
            channels.extend(self.load(coordinate))
        unique = with_unique_names(channels)
        for loaded, channel in zip(channels, unique):
            if loaded.name != channel.name:
                logger.warning("Channel name %s is already in use, renamed to %s", loaded.name, channel.name)
        return unique

    def _read_url(self, channel: ChannelCoordinate) -> str:
        url = channel.url
        if url.startswith(("http://", "https://")):
            status, _, text = http_client.robust_get(url)
            if status != 200:
                if is_debug_enabled(logger):
                    logger.debug("Channel fetch failed", extra=extra_context(
                        event="function_exit", component="manifest", action="fetch",
                        outcome="fetch_failed", status_code=status, target=safe_url(url)
                    ))
                raise ChannelLoadFailure(channel, f"HTTP status {status} fetching {safe_url(url)}")
            return text
        path = Path(url[len("file://"):] if url.startswith("file://") else url).expanduser()
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ChannelLoadFailure(channel, f"cannot read {path}: {exc}") from exc

    def _read_artifact(self, channel: ChannelCoordinate) -> str:
        version = channel.version
        if not version:
            version = self.source.latest_version(channel.group_id, channel.artifact_id)
            if not version:
                raise ChannelLoadFailure(channel, "no published version found in repository metadata")
            logger.info("Resolved channel %s to latest version %s", channel, version)
        coordinate = Coordinate(channel.group_id, channel.artifact_id,
                                extension=Constants.CHANNEL_EXTENSION,
                                classifier=Constants.CHANNEL_CLASSIFIER,
                                version=version)
        try:
            path = self.source.resolve_artifact(coordinate)
        except UnresolvedArtifact as exc:
            raise ChannelLoadFailure(channel, str(exc)) from exc
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ChannelLoadFailure(channel, f"cannot read {path}: {exc}") from exc
