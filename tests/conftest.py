"""Shared fixtures: file-system Maven repositories and resolution sources."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Iterable, List, Optional

import pytest

from common import http_client
from registry.maven.source import VersionSource, artifact_dir
from versioning.models import MavenRepository


def render_metadata(group_id: str, artifact_id: str, versions: List[str],
                    release: Optional[str] = None) -> str:
    """Render a minimal maven-metadata.xml document."""
    root = ET.Element("metadata")
    ET.SubElement(root, "groupId").text = group_id
    ET.SubElement(root, "artifactId").text = artifact_id
    versioning = ET.SubElement(root, "versioning")
    if versions:
        ET.SubElement(versioning, "latest").text = versions[-1]
        ET.SubElement(versioning, "release").text = release or versions[-1]
    versions_elem = ET.SubElement(versioning, "versions")
    for v in versions:
        ET.SubElement(versions_elem, "version").text = v
    return ET.tostring(root, encoding="unicode")


def publish(root: Path, group_id: str, artifact_id: str, versions: Iterable[str],
            extension: str = "jar", classifier: str = "", content: Optional[str] = None,
            metadata: bool = True) -> None:
    """Lay out ``versions`` of an artifact in a Maven repository directory."""
    versions = list(versions)
    base = root / artifact_dir(group_id, artifact_id)
    for version in versions:
        vdir = base / version
        vdir.mkdir(parents=True, exist_ok=True)
        name = f"{artifact_id}-{version}"
        if classifier:
            name += f"-{classifier}"
        (vdir / f"{name}.{extension}").write_text(
            content if content is not None else f"{group_id}:{artifact_id}:{version}",
            encoding="utf-8",
        )
    if metadata:
        (base / "maven-metadata.xml").write_text(
            render_metadata(group_id, artifact_id, versions), encoding="utf-8")


@pytest.fixture(autouse=True)
def _fresh_http_cache():
    http_client.clear_cache()
    yield
    http_client.clear_cache()


@pytest.fixture
def repo_root(tmp_path):
    root = tmp_path / "remote-repo"
    root.mkdir()
    return root


@pytest.fixture
def repository(repo_root):
    return MavenRepository("test-repo", repo_root.as_uri())


@pytest.fixture
def build_dir(tmp_path):
    return tmp_path / "target"


@pytest.fixture
def local_cache(tmp_path):
    return tmp_path / "m2"


@pytest.fixture
def source(repository, build_dir, local_cache):
    return VersionSource.create([repository], build_dir, local_cache=local_cache)
