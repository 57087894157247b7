"""Version source backed by one or more Maven repositories.

A VersionSource answers two questions: which versions of a coordinate exist,
and where the file of one specific version lives locally. The two questions
use separate local repositories:

- ``probe_context`` receives the metadata written while listing versions;
- ``materialize_context`` is the artifact cache shared with the rest of the
  build and only ever receives resolved artifact files.
"""
from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Set

from common import http_client
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from constants import Constants
from errors import UnresolvedArtifact
from registry.maven.metadata import ArtifactMetadata, parse_metadata
from versioning.maven_version import highest
from versioning.models import Coordinate, MavenRepository

logger = logging.getLogger(__name__)


def artifact_dir(group_id: str, artifact_id: str) -> str:
    """Repository-relative directory of a group:artifact."""
    return f"{group_id.replace('.', '/')}/{artifact_id}"


def artifact_relative_path(coordinate: Coordinate) -> str:
    """Repository-relative path of a versioned coordinate's file."""
    if not coordinate.version:
        raise ValueError(f"Coordinate {coordinate} has no version")
    name = f"{coordinate.artifact_id}-{coordinate.version}"
    if coordinate.classifier:
        name += f"-{coordinate.classifier}"
    name += f".{coordinate.extension}"
    return f"{artifact_dir(coordinate.group_id, coordinate.artifact_id)}/{coordinate.version}/{name}"


@dataclass(frozen=True)
class ResolutionContext:
    """A named local repository used by one kind of resolution activity."""
    name: str
    local_repository: Path

    def artifact_path(self, coordinate: Coordinate) -> Path:
        return self.local_repository / artifact_relative_path(coordinate)

    def metadata_path(self, group_id: str, artifact_id: str, repository_id: str) -> Path:
        return (self.local_repository / artifact_dir(group_id, artifact_id)
                / f"maven-metadata-{repository_id}.xml")


class VersionSource:
    """Queries Maven repositories for versions and materializes artifacts."""

    def __init__(self, repositories: Sequence[MavenRepository],
                 probe_context: ResolutionContext,
                 materialize_context: ResolutionContext,
                 offline: bool = False):
        self.repositories: List[MavenRepository] = list(repositories)
        self.probe_context = probe_context
        self.materialize_context = materialize_context
        self.offline = offline

    @classmethod
    def create(cls, repositories: Sequence[MavenRepository], build_dir: Path,
               local_cache: Optional[Path] = None, offline: bool = False) -> "VersionSource":
        """Build a source with the standard probe and materialize contexts."""
        probe = ResolutionContext("probe", Path(build_dir) / Constants.VERSIONS_RESOLUTION_CACHE)
        cache = Path(local_cache) if local_cache else Path(Constants.DEFAULT_LOCAL_REPOSITORY)
        materialize = ResolutionContext("materialize", cache.expanduser())
        return cls(repositories, probe, materialize, offline=offline)

    def with_repositories(self, repositories: Sequence[MavenRepository]) -> "VersionSource":
        """Return a source over other repositories sharing both contexts."""
        return VersionSource(repositories, self.probe_context, self.materialize_context, self.offline)

    def _active_repositories(self) -> List[MavenRepository]:
        if not self.offline:
            return self.repositories
        return [r for r in self.repositories if r.is_local]

    # ---------- version probing ----------

    def _local_metadata(self, repo: MavenRepository, group_id: str, artifact_id: str) -> Optional[ArtifactMetadata]:
        base = repo.local_path / artifact_dir(group_id, artifact_id)
        if not base.is_dir():
            return None
        for name in (Constants.MAVEN_METADATA_FILE, "maven-metadata-local.xml"):
            candidate = base / name
            if candidate.is_file():
                meta = parse_metadata(candidate.read_text(encoding="utf-8"))
                if meta is not None:
                    return meta
        # No metadata file: every non-empty version directory is a version.
        versions = [p.name for p in base.iterdir() if p.is_dir() and any(p.iterdir())]
        return ArtifactMetadata(versions=versions)

    def _remote_metadata(self, repo: MavenRepository, group_id: str, artifact_id: str) -> Optional[ArtifactMetadata]:
        url = repo.artifact_url(f"{artifact_dir(group_id, artifact_id)}/{Constants.MAVEN_METADATA_FILE}")
        status, _, text = http_client.robust_get(url)
        if status != 200 or not text:
            if is_debug_enabled(logger):
                logger.debug("Maven metadata fetch failed", extra=extra_context(
                    event="function_exit", component="version_source", action="fetch_metadata",
                    outcome="fetch_failed", status_code=status, target=safe_url(url)
                ))
            return None
        target = self.probe_context.metadata_path(group_id, artifact_id, repo.id)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")
        return parse_metadata(text)

    def _metadata(self, group_id: str, artifact_id: str) -> List[ArtifactMetadata]:
        found = []
        for repo in self._active_repositories():
            if repo.is_local:
                meta = self._local_metadata(repo, group_id, artifact_id)
            else:
                meta = self._remote_metadata(repo, group_id, artifact_id)
            if meta is not None:
                found.append(meta)
        if self.offline:
            cached = self._local_metadata(
                MavenRepository("local-cache", str(self.materialize_context.local_repository)),
                group_id, artifact_id)
            if cached is not None:
                found.append(cached)
        return found

    def get_all_versions(self, coordinate: Coordinate) -> Set[str]:
        """Return every version listed for the coordinate's group:artifact.

        An empty set means no repository published anything; it is not an error.
        """
        with Timer() as t:
            versions: Set[str] = set()
            for meta in self._metadata(coordinate.group_id, coordinate.artifact_id):
                versions.update(meta.versions)
        if is_debug_enabled(logger):
            logger.debug("Probed versions", extra=extra_context(
                event="function_exit", component="version_source", action="get_all_versions",
                target=f"{coordinate.group_id}:{coordinate.artifact_id}",
                count=len(versions), duration_ms=t.duration_ms()
            ))
        return versions

    def latest_version(self, group_id: str, artifact_id: str) -> Optional[str]:
        """Latest release according to repository metadata."""
        candidates: List[str] = []
        listed: List[str] = []
        for meta in self._metadata(group_id, artifact_id):
            if meta.release:
                candidates.append(meta.release)
            elif meta.latest:
                candidates.append(meta.latest)
            listed.extend(meta.versions)
        return highest(candidates) if candidates else highest(listed)

    # ---------- materialization ----------

    def resolve_artifact(self, coordinate: Coordinate) -> Path:
        """Return the local file of a versioned coordinate, downloading it if needed.

        Raises:
            UnresolvedArtifact: no repository serves the file.
        """
        target = self.materialize_context.artifact_path(coordinate)
        if target.is_file():
            return target
        relative = artifact_relative_path(coordinate)
        tried = []
        for repo in self._active_repositories():
            tried.append(repo.id)
            if repo.is_local:
                source = repo.local_path / relative
                if source.is_file():
                    target.parent.mkdir(parents=True, exist_ok=True)
                    shutil.copy2(source, target)
                    return target
                continue
            status = http_client.download_file(repo.artifact_url(relative), target)
            if status == 200:
                logger.debug("Downloaded %s from %s", coordinate, repo.id)
                return target
        reason = "not found in repositories: " + (", ".join(tried) if tried else "<none>")
        if self.offline:
            reason += " (offline)"
        raise UnresolvedArtifact(coordinate, reason=reason)
