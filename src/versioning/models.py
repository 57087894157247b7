"""Data models for artifact coordinates and resolution results."""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Tuple

from constants import Constants


# Identity of an artifact: (group_id, artifact_id, classifier, extension).
ArtifactKey = Tuple[str, str, str, str]


@dataclass(frozen=True)
class Coordinate:
    """Maven coordinate; a missing version means "resolve for me"."""
    group_id: str
    artifact_id: str
    extension: str = Constants.DEFAULT_EXTENSION
    classifier: str = ""
    version: Optional[str] = None

    def __post_init__(self):
        if not self.group_id or not self.artifact_id:
            raise ValueError("Coordinate requires a groupId and an artifactId")

    @property
    def key(self) -> ArtifactKey:
        return (self.group_id, self.artifact_id, self.classifier, self.extension)

    def with_version(self, version: Optional[str]) -> "Coordinate":
        return replace(self, version=version)

    def without_version(self) -> "Coordinate":
        return replace(self, version=None)

    @classmethod
    def parse(cls, token: str, extension: str = Constants.DEFAULT_EXTENSION) -> "Coordinate":
        """Parse ``g:a``, ``g:a:v``, ``g:a:ext:v`` or ``g:a:ext:classifier:v``."""
        parts = [p.strip() for p in token.strip().split(":")]
        if len(parts) == 2:
            return cls(parts[0], parts[1], extension=extension)
        if len(parts) == 3:
            return cls(parts[0], parts[1], extension=extension, version=parts[2] or None)
        if len(parts) == 4:
            return cls(parts[0], parts[1], extension=parts[2] or extension, version=parts[3] or None)
        if len(parts) == 5:
            return cls(parts[0], parts[1], extension=parts[2] or extension,
                       classifier=parts[3], version=parts[4] or None)
        raise ValueError(f"Invalid Maven coordinate '{token}'")

    def __str__(self) -> str:
        out = f"{self.group_id}:{self.artifact_id}:{self.extension}"
        if self.classifier:
            out += f":{self.classifier}"
        if self.version:
            out += f":{self.version}"
        return out


@dataclass(frozen=True)
class ResolvedArtifact:
    """Outcome of one resolution: the coordinate with its version and the local file."""
    coordinate: Coordinate
    path: Path

    @property
    def version(self) -> str:
        return self.coordinate.version or ""


@dataclass(frozen=True)
class MavenRepository:
    """A remote (http/https) or local (file:// or path) Maven repository."""
    id: str
    url: str

    @property
    def is_local(self) -> bool:
        return not self.url.startswith(("http://", "https://"))

    @property
    def local_path(self) -> Path:
        url = self.url
        if url.startswith("file://"):
            url = url[len("file://"):]
        return Path(url).expanduser()

    def artifact_url(self, relative: str) -> str:
        return self.url.rstrip("/") + "/" + relative


MAVEN_CENTRAL = MavenRepository(Constants.MAVEN_CENTRAL_ID, Constants.MAVEN_CENTRAL_URL)
