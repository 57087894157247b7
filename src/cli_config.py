"""Configuration file loading and merging with command line overrides.

The configuration file is YAML (or JSON, which YAML accepts) with kebab-case
keys. Command line flags take precedence over the file.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from channels.model import ChannelCoordinate, ChannelsConfig
from constants import Constants
from errors import ConfigurationError
from image import ApplicationImageInfo
from provisioning.model import ConfigSpec, ProvisioningSpec
from versioning.models import MavenRepository

logger = logging.getLogger(__name__)


def load_config_file(path: Optional[str]) -> Dict[str, Any]:
    """Load the YAML/JSON configuration file; an empty dict when no path is given.

    Raises:
        ConfigurationError: the file is missing, unreadable or not a mapping.
    """
    if not path:
        return {}
    if not os.path.isfile(path):
        raise ConfigurationError(f"Config file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Unable to read config file {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping at top level")
    logger.info("Loaded configuration from %s", path)
    return data


def _pick(args, dest: str, data: Mapping[str, Any], key: str, default=None):
    value = getattr(args, dest, None)
    if value not in (None, [], False):
        return value
    return data.get(key, default)


def _as_list(value) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _channel_coordinate(entry) -> ChannelCoordinate:
    if isinstance(entry, str):
        return ChannelCoordinate.parse(entry)
    if not isinstance(entry, Mapping):
        raise ConfigurationError(f"Invalid channel entry {entry!r}")
    manifest = entry.get("manifest", entry)
    if not isinstance(manifest, Mapping):
        raise ConfigurationError(f"Invalid channel manifest {manifest!r}")
    if manifest.get("url"):
        return ChannelCoordinate(url=manifest["url"])
    return ChannelCoordinate(
        group_id=manifest.get("group-id") or manifest.get("groupId"),
        artifact_id=manifest.get("artifact-id") or manifest.get("artifactId"),
        version=manifest.get("version"),
    )


def _repository(entry, index: int) -> MavenRepository:
    if isinstance(entry, Mapping):
        if not entry.get("url"):
            raise ConfigurationError(f"Repository entry {dict(entry)} has no url")
        return MavenRepository(str(entry.get("id") or f"repo-{index}"), str(entry["url"]))
    text = str(entry)
    repo_id, sep, url = text.partition("=")
    if sep and "://" not in repo_id:
        return MavenRepository(repo_id, url)
    return MavenRepository(f"repo-{index}", text)


def channels_config(args, data: Mapping[str, Any]) -> ChannelsConfig:
    """Channel settings from CLI flags and the ``channels`` section of the config."""
    entries = getattr(args, "CHANNELS", None) or _as_list(data.get("channels"))
    repositories = getattr(args, "REPOSITORIES", None) or _as_list(data.get("repositories"))
    return ChannelsConfig(
        channels=[_channel_coordinate(e) for e in entries],
        disable_latest_resolution=bool(_pick(args, "DISABLE_LATEST", data, "disable-latest-resolution", False)),
        allow_channel_direct_fallback=bool(_pick(args, "DIRECT_FALLBACK", data, "direct-fallback", False)),
        local_cache=_pick(args, "LOCAL_CACHE", data, "local-cache"),
        repositories=[_repository(r, i) for i, r in enumerate(repositories)],
    )


def _plugin_options(args, data: Mapping[str, Any]) -> Dict[str, str]:
    options = {str(k): str(v) for k, v in (data.get("plugin-options") or {}).items()}
    for pair in getattr(args, "PLUGIN_OPTIONS", None) or []:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            raise ConfigurationError(f"Plugin option '{pair}' must be name=value")
        options[name] = value
    return options


def provisioning_spec(args, data: Mapping[str, Any], base_dir: Path) -> ProvisioningSpec:
    """The declarative provisioning spec from CLI flags and config.

    Feature-pack entries are passed through unvalidated; the plan builder
    rejects invalid ones.
    """
    cli_packs = [{"location": loc} for loc in getattr(args, "FEATURE_PACKS", None) or []]
    feature_packs = cli_packs or _as_list(data.get("feature-packs"))
    configs = []
    for entry in _as_list(data.get("configs")):
        if not isinstance(entry, Mapping):
            raise ConfigurationError(f"Invalid config entry {entry!r}")
        configs.append(ConfigSpec(model=entry.get("model"), name=entry.get("name"),
                                  layers=_as_list(entry.get("layers")),
                                  excluded_layers=_as_list(entry.get("excluded-layers"))))
    return ProvisioningSpec(
        feature_packs=feature_packs,
        feature_pack_location=_pick(args, "FEATURE_PACK_LOCATION", data, "feature-pack-location"),
        provisioning_file=_pick(args, "PROVISIONING_FILE", data, "provisioning-file",
                                Constants.DEFAULT_PROVISIONING_FILE),
        layers=_as_list(_pick(args, "LAYERS", data, "layers")),
        excluded_layers=_as_list(_pick(args, "EXCLUDED_LAYERS", data, "excluded-layers")),
        configs=configs,
        plugin_options=_plugin_options(args, data),
        base_dir=str(base_dir),
    )


@dataclass
class PackagingOptions:
    """Deployment and extra content settings of the ``package`` goal."""
    filename: Optional[str] = None
    name: Optional[str] = None
    runtime_name: Optional[str] = None
    server_groups: List[str] = field(default_factory=list)
    config_name: str = Constants.STANDALONE_XML
    extra_content_dirs: List[str] = field(default_factory=list)
    artifact_id: Optional[str] = None
    skip_deployment: bool = False


def packaging_options(args, data: Mapping[str, Any]) -> PackagingOptions:
    return PackagingOptions(
        filename=_pick(args, "FILENAME", data, "filename"),
        name=_pick(args, "NAME", data, "name"),
        runtime_name=_pick(args, "RUNTIME_NAME", data, "runtime-name"),
        server_groups=[str(g) for g in _as_list(_pick(args, "SERVER_GROUPS", data, "server-groups"))],
        config_name=_pick(args, "CONFIG_NAME", data, "config-name", Constants.STANDALONE_XML),
        extra_content_dirs=[str(d) for d in _as_list(
            _pick(args, "EXTRA_CONTENT_DIRS", data, "extra-server-content-dirs"))],
        artifact_id=_pick(args, "ARTIFACT_ID", data, "artifact-id"),
        skip_deployment=bool(_pick(args, "SKIP_DEPLOYMENT", data, "skip-deployment", False)),
    )


def image_info(args, data: Mapping[str, Any]) -> ApplicationImageInfo:
    """Image settings from the ``image`` section of the config and CLI flags."""
    section = data.get("image") or {}
    if not isinstance(section, Mapping):
        raise ConfigurationError("The 'image' configuration must be a mapping")
    info = ApplicationImageInfo.from_dict(section)
    for dest, attr in (("IMAGE_NAME", "name"), ("IMAGE_GROUP", "group"), ("IMAGE_TAG", "tag"),
                       ("REGISTRY", "registry"), ("REGISTRY_USER", "user"), ("JDK", "jdk")):
        value = getattr(args, dest, None)
        if value:
            setattr(info, attr, value)
    if getattr(args, "PUSH", False):
        info.push = True
    if getattr(args, "NO_BUILD", False):
        info.build = False
    password = os.environ.get(Constants.ENV_REGISTRY_PASSWORD)
    if password:
        info.password = password
    return info
