"""Declarative provisioning spec and the immutable plan built from it."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional, Tuple, Union

from constants import Constants
from errors import InvalidPlanSpec
from versioning.models import Coordinate


def _tuple(values: Optional[Iterable[Any]]) -> Tuple[Any, ...]:
    if values is None:
        return ()
    if isinstance(values, str):
        return (values,)
    return tuple(values)


@dataclass(frozen=True)
class ConfigId:
    """A configuration id; ``name`` is None for a whole model."""
    model: str
    name: Optional[str] = None

    @property
    def model_only(self) -> bool:
        return self.name is None

    @classmethod
    def parse(cls, value: Union[str, "ConfigId", Mapping[str, str]]) -> "ConfigId":
        if isinstance(value, ConfigId):
            return value
        if isinstance(value, Mapping):
            if not value.get("model"):
                raise InvalidPlanSpec(f"Configuration id {dict(value)} has no model")
            return cls(value["model"], value.get("name") or None)
        model, _, name = str(value).strip().partition("/")
        if not model:
            raise InvalidPlanSpec(f"Invalid configuration id '{value}'")
        return cls(model, name or None)

    def __str__(self) -> str:
        return self.model if self.name is None else f"{self.model}/{self.name}"


def maven_coords(group_id: str, artifact_id: str, classifier: Optional[str] = None,
                 type_: Optional[str] = None, version: Optional[str] = None) -> str:
    """Format ``g:a[:classifier:type][:version]``."""
    out = f"{group_id}:{artifact_id}"
    if classifier is not None or type_ is not None:
        out += f":{classifier or ''}:{type_ or ''}"
    if version is not None:
        out += f":{version}"
    return out


def parse_maven_location(location: str) -> Optional[Coordinate]:
    """Return the Maven coordinate a feature-pack location names, if it names one.

    Accepts ``g:a``, ``g:a:v``, ``g:a:classifier:type`` and
    ``g:a:classifier:type:v``; universe locations (``name@universe#ver``)
    return None.
    """
    if not location or any(c in location for c in "@#/\\"):
        return None
    parts = location.split(":")
    if any(not p for p in parts[:2]):
        return None
    ext = Constants.FEATURE_PACK_EXTENSION
    if len(parts) == 2:
        return Coordinate(parts[0], parts[1], extension=ext)
    if len(parts) == 3:
        return Coordinate(parts[0], parts[1], extension=ext, version=parts[2] or None)
    if len(parts) in (4, 5):
        version = (parts[4] or None) if len(parts) == 5 else None
        return Coordinate(parts[0], parts[1], extension=parts[3] or ext,
                          classifier=parts[2], version=version)
    return None


@dataclass(frozen=True)
class FeaturePackRef:
    """A feature pack named by location, Maven coordinates or local path (exactly one)."""
    location: Optional[str] = None
    group_id: Optional[str] = None
    artifact_id: Optional[str] = None
    classifier: Optional[str] = None
    type: Optional[str] = None
    extension: Optional[str] = None
    version: Optional[str] = None
    path: Optional[str] = None
    inherit_configs: Optional[bool] = None
    inherit_packages: Optional[bool] = None
    included_configs: Tuple[ConfigId, ...] = ()
    excluded_configs: Tuple[ConfigId, ...] = ()
    included_packages: Tuple[str, ...] = ()
    excluded_packages: Tuple[str, ...] = ()
    transitive: bool = False

    def __post_init__(self):
        has_maven = bool(self.group_id) or bool(self.artifact_id)
        if has_maven and not (self.group_id and self.artifact_id):
            raise InvalidPlanSpec(
                f"Invalid Maven coordinates for feature-pack {self.group_id}:{self.artifact_id}"
            )
        sources = sum(1 for s in (self.location, has_maven, self.path) if s)
        if sources == 0:
            raise InvalidPlanSpec("Feature-pack location, Maven GAV or feature pack path is missing")
        if sources > 1:
            raise InvalidPlanSpec(
                "A feature-pack must set only one of location, Maven GAV or path "
                f"(got location={self.location!r}, gav={self.group_id}:{self.artifact_id}, path={self.path!r})"
            )
        object.__setattr__(self, "included_configs", tuple(ConfigId.parse(c) for c in _tuple(self.included_configs)))
        object.__setattr__(self, "excluded_configs", tuple(ConfigId.parse(c) for c in _tuple(self.excluded_configs)))
        object.__setattr__(self, "included_packages", _tuple(self.included_packages))
        object.__setattr__(self, "excluded_packages", _tuple(self.excluded_packages))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FeaturePackRef":
        """Build from a kebab-case mapping as found in configuration files."""
        if not isinstance(data, Mapping):
            raise InvalidPlanSpec(f"Feature-pack entry must be a mapping, got {data!r}")
        return cls(
            location=data.get("location"),
            group_id=data.get("group-id") or data.get("groupId"),
            artifact_id=data.get("artifact-id") or data.get("artifactId"),
            classifier=data.get("classifier"),
            type=data.get("type"),
            extension=data.get("extension"),
            version=data.get("version"),
            path=data.get("path"),
            inherit_configs=data.get("inherit-configs"),
            inherit_packages=data.get("inherit-packages"),
            included_configs=_tuple(data.get("included-configs")),
            excluded_configs=_tuple(data.get("excluded-configs")),
            included_packages=_tuple(data.get("included-packages")),
            excluded_packages=_tuple(data.get("excluded-packages")),
            transitive=bool(data.get("transitive", False)),
        )

    @property
    def maven_location(self) -> Optional[str]:
        if not self.group_id:
            return None
        type_ = self.extension if self.extension is not None else self.type
        return maven_coords(self.group_id, self.artifact_id, self.classifier, type_, self.version)

    def feature_pack_location(self) -> str:
        if self.path:
            return self.path
        return self.maven_location or self.location


@dataclass(frozen=True)
class ConfigSpec:
    """A target configuration and the layers it includes or excludes."""
    model: Optional[str] = None
    name: Optional[str] = None
    layers: Tuple[str, ...] = ()
    excluded_layers: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "layers", _tuple(self.layers))
        object.__setattr__(self, "excluded_layers", _tuple(self.excluded_layers))


@dataclass(frozen=True)
class ProvisioningSpec:
    """Declarative input of the plan builder.

    ``layers``/``excluded_layers`` apply to the default configuration and
    are shorthand for an extra ConfigSpec. ``feature_packs`` entries may be
    FeaturePackRef instances or raw mappings; mappings are validated when
    the plan is built.
    """
    feature_packs: Tuple[Union[FeaturePackRef, Mapping[str, Any]], ...] = ()
    feature_pack_location: Optional[str] = None
    provisioning_file: Optional[str] = Constants.DEFAULT_PROVISIONING_FILE
    layers: Tuple[str, ...] = ()
    excluded_layers: Tuple[str, ...] = ()
    configs: Tuple[ConfigSpec, ...] = ()
    plugin_options: Mapping[str, str] = field(default_factory=dict)
    base_dir: str = "."

    def __post_init__(self):
        for name in ("feature_packs", "layers", "excluded_layers", "configs"):
            object.__setattr__(self, name, _tuple(getattr(self, name)))


@dataclass(frozen=True)
class FeaturePackDependency:
    """A feature pack as handed to the provisioning engine."""
    location: str
    local_path: Optional[str] = None
    transitive: bool = False
    inherit_configs: Optional[bool] = None
    inherit_packages: Optional[bool] = None
    included_configs: Tuple[ConfigId, ...] = ()
    excluded_configs: Tuple[ConfigId, ...] = ()
    included_packages: Tuple[str, ...] = ()
    excluded_packages: Tuple[str, ...] = ()

    @property
    def maven_coordinate(self) -> Optional[Coordinate]:
        if self.local_path:
            return None
        return parse_maven_location(self.location)


@dataclass(frozen=True)
class ConfigModel:
    model: str
    name: str
    included_layers: Tuple[str, ...] = ()
    excluded_layers: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ProvisioningPlan:
    """Immutable, validated description of what to install."""
    feature_packs: Tuple[FeaturePackDependency, ...] = ()
    configs: Tuple[ConfigModel, ...] = ()
    options: Mapping[str, str] = field(default_factory=dict)
    source_file: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "feature_packs", tuple(self.feature_packs))
        object.__setattr__(self, "configs", tuple(self.configs))
        object.__setattr__(self, "options", MappingProxyType(dict(self.options)))

    @property
    def has_layers(self) -> bool:
        return any(c.included_layers for c in self.configs)

    def with_feature_packs(self, feature_packs: Iterable[FeaturePackDependency]) -> "ProvisioningPlan":
        """Return a copy of this plan with other feature-pack entries."""
        return replace(self, feature_packs=tuple(feature_packs))

    def describe(self) -> str:
        return ", ".join(fp.location for fp in self.feature_packs) or "<empty plan>"
