"""Turns a declarative provisioning spec into one immutable plan."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Mapping, Tuple

from constants import Constants
from errors import InvalidPlanSpec
from .model import (
    ConfigModel,
    ConfigSpec,
    FeaturePackDependency,
    FeaturePackRef,
    ProvisioningPlan,
    ProvisioningSpec,
)
from .plan_xml import parse_plan

logger = logging.getLogger(__name__)


class ProvisioningPlanBuilder:
    """Builds a ProvisioningPlan, validating the spec before touching the disk.

    Source selection: an explicit feature-pack list (or the single location
    shorthand) wins; otherwise the pre-authored provisioning file is parsed
    and used as-is; otherwise the build fails.
    """

    def build(self, spec: ProvisioningSpec) -> ProvisioningPlan:
        """Validate ``spec`` and return the plan it describes.

        Raises:
            InvalidPlanSpec: the spec is structurally invalid, or the
                fallback provisioning file cannot be parsed.
        """
        refs = self._normalize_feature_packs(spec)
        configs = self._config_specs(spec)
        if any(c.layers for c in configs) and not refs:
            raise InvalidPlanSpec(
                "No server feature-pack location to provision layers "
                f"{sorted({l for c in configs for l in c.layers})}"
            )

        plan_file = self._plan_file(spec)
        if refs:
            if plan_file is not None and plan_file.exists():
                logger.warning("Feature-packs are set, ignoring provisioning file %s", plan_file)
            return self._build_from_refs(refs, configs, spec)

        if plan_file is not None and plan_file.exists():
            logger.info("Provisioning server using %s", plan_file)
            return parse_plan(plan_file)

        raise InvalidPlanSpec(
            "No feature-pack has been configured and no provisioning file found"
            + (f" at {plan_file}" if plan_file is not None else "")
        )

    @staticmethod
    def _normalize_feature_packs(spec: ProvisioningSpec) -> Tuple[FeaturePackRef, ...]:
        if spec.feature_packs and spec.feature_pack_location:
            raise InvalidPlanSpec(
                "feature-pack-location can't be used with a list of feature-packs"
            )
        if spec.feature_pack_location:
            return (FeaturePackRef(location=spec.feature_pack_location),)
        refs = []
        for entry in spec.feature_packs:
            refs.append(entry if isinstance(entry, FeaturePackRef) else FeaturePackRef.from_dict(entry))
        return tuple(refs)

    @staticmethod
    def _config_specs(spec: ProvisioningSpec) -> Tuple[ConfigSpec, ...]:
        configs: List[ConfigSpec] = []
        if spec.layers or spec.excluded_layers:
            configs.append(ConfigSpec(layers=spec.layers, excluded_layers=spec.excluded_layers))
        configs.extend(spec.configs)
        return tuple(configs)

    @staticmethod
    def _plan_file(spec: ProvisioningSpec):
        if not spec.provisioning_file:
            return None
        path = Path(spec.provisioning_file)
        if not path.is_absolute():
            path = Path(spec.base_dir) / path
        return path

    def _build_from_refs(self, refs: Tuple[FeaturePackRef, ...], configs: Tuple[ConfigSpec, ...],
                         spec: ProvisioningSpec) -> ProvisioningPlan:
        feature_packs = [self._to_dependency(ref, spec.base_dir) for ref in refs]
        config_models = [
            ConfigModel(
                model=c.model or Constants.STANDALONE,
                name=c.name or Constants.STANDALONE_XML,
                included_layers=c.layers,
                excluded_layers=c.excluded_layers,
            )
            for c in configs
        ]
        options = self._merge_options(spec.plugin_options, config_models, spec.base_dir)
        plan = ProvisioningPlan(feature_packs=feature_packs, configs=config_models, options=options)
        logger.debug("Built provisioning plan: %s", plan.describe())
        return plan

    @staticmethod
    def _to_dependency(ref: FeaturePackRef, base_dir: str) -> FeaturePackDependency:
        local_path = None
        if ref.path:
            path = Path(ref.path).expanduser()
            if not path.is_absolute():
                path = Path(base_dir) / path
            local_path = str(path)
        return FeaturePackDependency(
            location=ref.feature_pack_location(),
            local_path=local_path,
            transitive=ref.transitive,
            inherit_configs=ref.inherit_configs,
            inherit_packages=ref.inherit_packages,
            included_configs=ref.included_configs,
            excluded_configs=ref.excluded_configs,
            included_packages=ref.included_packages,
            excluded_packages=ref.excluded_packages,
        )

    @staticmethod
    def _merge_options(caller: Mapping[str, str], configs: List[ConfigModel],
                       base_dir: str) -> Dict[str, str]:
        options = {str(k): str(v) for k, v in (caller or {}).items()}
        if any(c.included_layers for c in configs):
            options.setdefault(Constants.OPTIONAL_PACKAGES, Constants.PASSIVE_PLUS)
        repo = options.get(Constants.MAVEN_REPO_PLUGIN_OPTION)
        if repo and not Path(repo).is_absolute():
            options[Constants.MAVEN_REPO_PLUGIN_OPTION] = str((Path(base_dir) / repo).resolve())
        return options
