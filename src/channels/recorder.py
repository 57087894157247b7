"""Record of the artifact versions actually used during one provisioning run."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from constants import Constants
from errors import RecorderClosed
from versioning.models import ArtifactKey, Coordinate, MavenRepository
from . import mapper
from .model import Channel, Stream

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordEntry:
    coordinate: Coordinate
    version: str
    channel: Optional[str] = None


class ResolutionRecorder:
    """Accumulates (coordinate, version) pairs and persists them once.

    Recording the same coordinate again replaces the earlier entry. The
    persisted file pins every entry to an exact version so that loading it
    back as channels reproduces the same artifact set.
    """

    def __init__(self, channels: Sequence[Channel] = (),
                 default_repositories: Sequence[MavenRepository] = ()):
        self._channels = list(channels)
        self._default_repositories = tuple(default_repositories)
        self._entries: Dict[ArtifactKey, RecordEntry] = {}
        self._flushed_to: Optional[Path] = None

    @property
    def closed(self) -> bool:
        return self._flushed_to is not None

    def _check_open(self) -> None:
        if self._flushed_to is not None:
            raise RecorderClosed(f"Resolution record already flushed to {self._flushed_to}")

    def record(self, coordinate: Coordinate, version: str, channel: Optional[str] = None) -> None:
        self._check_open()
        key = coordinate.key
        previous = self._entries.get(key)
        if previous is not None and previous.version != version:
            logger.info("Re-recorded %s: %s -> %s", coordinate.without_version(), previous.version, version)
        self._entries[key] = RecordEntry(coordinate.without_version(), version, channel)

    def entries(self) -> List[RecordEntry]:
        return list(self._entries.values())

    def version_of(self, coordinate: Coordinate) -> Optional[str]:
        entry = self._entries.get(coordinate.key)
        return entry.version if entry else None

    def __len__(self) -> int:
        return len(self._entries)

    @staticmethod
    def _pinned_streams(entries: List[RecordEntry]) -> tuple:
        ordered = sorted(entries, key=lambda e: e.coordinate.key)
        return tuple(
            Stream(group_id=e.coordinate.group_id,
                   artifact_id=e.coordinate.artifact_id,
                   version=e.version,
                   classifier=e.coordinate.classifier,
                   extension=e.coordinate.extension)
            for e in ordered
        )

    def recorded_channels(self) -> List[Channel]:
        """One pinned channel per source channel that served artifacts, then the direct channel."""
        by_channel: Dict[Optional[str], List[RecordEntry]] = {}
        for entry in self._entries.values():
            by_channel.setdefault(entry.channel, []).append(entry)
        recorded = []
        for channel in self._channels:
            entries = by_channel.pop(channel.name, None)
            if entries:
                recorded.append(Channel(name=channel.name,
                                        streams=self._pinned_streams(entries),
                                        repositories=channel.repositories,
                                        description=channel.description,
                                        schema_version=Constants.CHANNEL_SCHEMA_VERSION))
        direct = by_channel.pop(None, None)
        if direct:
            recorded.append(Channel(name=Constants.DIRECT_CHANNEL_NAME,
                                    streams=self._pinned_streams(direct),
                                    repositories=self._default_repositories,
                                    schema_version=Constants.CHANNEL_SCHEMA_VERSION))
        # Entries attributed to channels this recorder was not told about.
        for name, entries in by_channel.items():
            recorded.append(Channel(name=name, streams=self._pinned_streams(entries),
                                    schema_version=Constants.CHANNEL_SCHEMA_VERSION))
        return recorded

    def to_yaml(self) -> str:
        return mapper.to_yaml(self.recorded_channels())

    def flush(self, home: Path) -> Path:
        """Write the record into ``home`` and close the recorder.

        Raises:
            RecorderClosed: the record was already flushed.
        """
        self._check_open()
        target_dir = Path(home) / Constants.CHANNELS_DIR
        target_dir.mkdir(parents=True, exist_ok=True)
        target = target_dir / Constants.CHANNELS_FILE
        target.write_text(self.to_yaml(), encoding="utf-8")
        self._flushed_to = target
        logger.info("Recorded %d resolved artifact(s) in %s", len(self._entries), target)
        return target
