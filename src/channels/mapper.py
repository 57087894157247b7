"""Channel manifest (YAML) reading and writing.

A manifest file holds one or more YAML documents, each describing a channel.
Documents are validated against a Draft-07 JSON Schema before mapping.
"""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

import yaml
from jsonschema import Draft7Validator

from constants import Constants
from versioning.models import MavenRepository
from .model import Channel, Stream

_STREAM_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["groupId", "artifactId"],
    "properties": {
        "groupId": {"type": "string", "minLength": 1},
        "artifactId": {"type": "string", "minLength": 1},
        "version": {"type": "string", "minLength": 1},
        "versionRange": {"type": "string", "minLength": 1},
        "versionPattern": {"type": "string", "minLength": 1},
        "classifier": {"type": "string"},
        "extension": {"type": "string", "minLength": 1},
    },
    "oneOf": [
        {"required": ["version"]},
        {"required": ["versionRange"]},
        {"required": ["versionPattern"]},
    ],
    "additionalProperties": False,
}

CHANNEL_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["streams"],
    "properties": {
        "schemaVersion": {"type": "string"},
        "name": {"type": "string"},
        "description": {"type": "string"},
        "repositories": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["id", "url"],
                "properties": {
                    "id": {"type": "string", "minLength": 1},
                    "url": {"type": "string", "minLength": 1},
                },
                "additionalProperties": False,
            },
        },
        "streams": {"type": "array", "items": _STREAM_SCHEMA},
    },
    "additionalProperties": False,
}


class ChannelFormatError(ValueError):
    """Raised when a manifest document is not a valid channel."""


def _validate(doc: Any, index: int) -> None:
    validator = Draft7Validator(CHANNEL_SCHEMA)
    errs = sorted(validator.iter_errors(doc), key=lambda e: list(e.path))
    if errs:
        first = errs[0]
        path = "/".join(str(p) for p in first.path)
        raise ChannelFormatError(f"Invalid channel document #{index + 1} at '{path}': {first.message}")


def channel_from_dict(doc: Dict[str, Any], default_name: str) -> Channel:
    streams = tuple(
        Stream(
            group_id=s["groupId"],
            artifact_id=s["artifactId"],
            version=s.get("version"),
            version_range=s.get("versionRange"),
            version_pattern=s.get("versionPattern"),
            classifier=s.get("classifier"),
            extension=s.get("extension"),
        )
        for s in doc.get("streams") or []
    )
    repositories = tuple(MavenRepository(r["id"], r["url"]) for r in doc.get("repositories") or [])
    return Channel(
        name=doc.get("name") or default_name,
        streams=streams,
        repositories=repositories,
        description=doc.get("description"),
        schema_version=doc.get("schemaVersion"),
    )


def from_yaml(text: str, source_name: str = "channel") -> List[Channel]:
    """Parse every channel document in ``text``.

    Raises:
        ChannelFormatError: malformed YAML or a document failing validation.
    """
    try:
        docs = [d for d in yaml.safe_load_all(text) if d is not None]
    except yaml.YAMLError as exc:
        raise ChannelFormatError(f"Malformed YAML: {exc}") from exc
    if not docs:
        raise ChannelFormatError("No channel document found")
    channels = []
    for index, doc in enumerate(docs):
        _validate(doc, index)
        name = source_name if len(docs) == 1 else f"{source_name}#{index + 1}"
        try:
            channels.append(channel_from_dict(doc, name))
        except ValueError as exc:
            raise ChannelFormatError(f"Invalid channel document #{index + 1}: {exc}") from exc
    return channels


def channel_to_dict(channel: Channel) -> Dict[str, Any]:
    doc: Dict[str, Any] = {"schemaVersion": channel.schema_version or Constants.CHANNEL_SCHEMA_VERSION,
                           "name": channel.name}
    if channel.description:
        doc["description"] = channel.description
    if channel.repositories:
        doc["repositories"] = [{"id": r.id, "url": r.url} for r in channel.repositories]
    streams = []
    for s in channel.streams:
        entry: Dict[str, Any] = {"groupId": s.group_id, "artifactId": s.artifact_id}
        if s.version:
            entry["version"] = s.version
        elif s.version_range:
            entry["versionRange"] = s.version_range
        else:
            entry["versionPattern"] = s.version_pattern
        if s.classifier is not None:
            entry["classifier"] = s.classifier
        if s.extension is not None:
            entry["extension"] = s.extension
        streams.append(entry)
    doc["streams"] = streams
    return doc


def to_yaml(channels: Sequence[Channel]) -> str:
    """Serialize channels as a multi-document YAML string."""
    return yaml.safe_dump_all([channel_to_dict(c) for c in channels],
                              sort_keys=False, default_flow_style=False)
