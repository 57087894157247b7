"""maven-metadata.xml parsing helpers."""
from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import List, Optional

from common.logging_utils import extra_context, is_debug_enabled

logger = logging.getLogger(__name__)


@dataclass
class ArtifactMetadata:
    """Version listing of a group:artifact in one repository."""
    versions: List[str] = field(default_factory=list)
    release: Optional[str] = None
    latest: Optional[str] = None


def _text(elem: Optional[ET.Element]) -> Optional[str]:
    if elem is None or not isinstance(elem.text, str):
        return None
    value = elem.text.strip()
    return value or None


def parse_metadata(text: str) -> Optional[ArtifactMetadata]:
    """Parse maven-metadata.xml content.

    Returns:
        ArtifactMetadata, or None when the document is not well formed.
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError:
        if is_debug_enabled(logger):
            logger.debug("Maven metadata parse error", extra=extra_context(
                event="anomaly", component="metadata", action="parse", outcome="parse_error"
            ))
        return None

    meta = ArtifactMetadata()
    versioning = root.find("versioning")
    if versioning is None:
        return meta
    meta.release = _text(versioning.find("release"))
    meta.latest = _text(versioning.find("latest"))
    versions_elem = versioning.find("versions")
    if versions_elem is not None:
        for item in versions_elem.findall("version"):
            value = _text(item)
            if value:
                meta.versions.append(value)
    return meta
