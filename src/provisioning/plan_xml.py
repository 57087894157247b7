"""Provisioning XML: the engine's native plan file format."""
from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import List, Optional, Tuple

from constants import Constants
from errors import InvalidPlanSpec
from .model import ConfigId, ConfigModel, FeaturePackDependency, ProvisioningPlan

logger = logging.getLogger(__name__)


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _children(elem: ET.Element, name: str) -> List[ET.Element]:
    return [child for child in elem if _local(child.tag) == name]


def _child(elem: ET.Element, name: str) -> Optional[ET.Element]:
    found = _children(elem, name)
    return found[0] if found else None


def _inherit(elem: Optional[ET.Element]) -> Optional[bool]:
    if elem is None or elem.get("inherit") is None:
        return None
    return elem.get("inherit").strip().lower() == "true"


def _names(elem: Optional[ET.Element], kind: str) -> Tuple[str, ...]:
    if elem is None:
        return ()
    return tuple(e.get("name") for e in _children(elem, kind) if e.get("name"))


def _config_ids(elem: Optional[ET.Element], kind: str) -> Tuple[ConfigId, ...]:
    if elem is None:
        return ()
    ids = []
    for e in _children(elem, kind):
        if e.get("model"):
            ids.append(ConfigId(e.get("model"), e.get("name") or None))
    return tuple(ids)


def _parse_feature_pack(elem: ET.Element, transitive: bool) -> FeaturePackDependency:
    location = elem.get("location")
    if not location:
        raise InvalidPlanSpec("feature-pack element without a location attribute")
    default_configs = _child(elem, "default-configs")
    packages = _child(elem, "packages")
    return FeaturePackDependency(
        location=location,
        transitive=transitive,
        inherit_configs=_inherit(default_configs),
        inherit_packages=_inherit(packages),
        included_configs=_config_ids(default_configs, "include"),
        excluded_configs=_config_ids(default_configs, "exclude"),
        included_packages=_names(packages, "include"),
        excluded_packages=_names(packages, "exclude"),
    )


def parse_plan(path: Path) -> ProvisioningPlan:
    """Parse a provisioning XML file into a plan.

    Raises:
        InvalidPlanSpec: unreadable or malformed file.
    """
    try:
        root = ET.parse(str(path)).getroot()
    except (OSError, ET.ParseError) as exc:
        raise InvalidPlanSpec(f"Unable to parse provisioning file {path}: {exc}") from exc
    if _local(root.tag) != "installation":
        raise InvalidPlanSpec(f"Provisioning file {path} has root element <{_local(root.tag)}>, expected <installation>")

    feature_packs = [_parse_feature_pack(e, False) for e in _children(root, "feature-pack")]
    for transitive in _children(root, "transitive"):
        feature_packs.extend(_parse_feature_pack(e, True) for e in _children(transitive, "feature-pack"))

    configs = []
    for elem in _children(root, "config"):
        layers = _child(elem, "layers")
        configs.append(ConfigModel(
            model=elem.get("model") or Constants.STANDALONE,
            name=elem.get("name") or Constants.STANDALONE_XML,
            included_layers=_names(layers, "include"),
            excluded_layers=_names(layers, "exclude"),
        ))

    options = {}
    options_elem = _child(root, "options")
    if options_elem is not None:
        for opt in _children(options_elem, "option"):
            if opt.get("name"):
                options[opt.get("name")] = opt.get("value") or ""

    logger.debug("Parsed provisioning file %s: %d feature-pack(s)", path, len(feature_packs))
    return ProvisioningPlan(feature_packs=feature_packs, configs=configs, options=options,
                            source_file=str(path))


def _write_config_ids(parent: ET.Element, kind: str, ids) -> None:
    for config_id in ids:
        attrs = {"model": config_id.model}
        if config_id.name:
            attrs["name"] = config_id.name
        ET.SubElement(parent, kind, attrs)


def _write_feature_pack(parent: ET.Element, fp: FeaturePackDependency) -> None:
    elem = ET.SubElement(parent, "feature-pack", {"location": fp.local_path or fp.location})
    if fp.inherit_configs is not None or fp.included_configs or fp.excluded_configs:
        dc = ET.SubElement(elem, "default-configs")
        if fp.inherit_configs is not None:
            dc.set("inherit", str(fp.inherit_configs).lower())
        _write_config_ids(dc, "include", fp.included_configs)
        _write_config_ids(dc, "exclude", fp.excluded_configs)
    if fp.inherit_packages is not None or fp.included_packages or fp.excluded_packages:
        pk = ET.SubElement(elem, "packages")
        if fp.inherit_packages is not None:
            pk.set("inherit", str(fp.inherit_packages).lower())
        for name in fp.included_packages:
            ET.SubElement(pk, "include", {"name": name})
        for name in fp.excluded_packages:
            ET.SubElement(pk, "exclude", {"name": name})


def plan_to_xml(plan: ProvisioningPlan) -> str:
    """Serialize a plan to provisioning XML."""
    root = ET.Element("installation", {"xmlns": Constants.PROVISIONING_XML_NS})
    transitive = [fp for fp in plan.feature_packs if fp.transitive]
    if transitive:
        t_elem = ET.SubElement(root, "transitive")
        for fp in transitive:
            _write_feature_pack(t_elem, fp)
    for fp in plan.feature_packs:
        if not fp.transitive:
            _write_feature_pack(root, fp)
    for config in plan.configs:
        c_elem = ET.SubElement(root, "config", {"model": config.model, "name": config.name})
        if config.included_layers or config.excluded_layers:
            layers = ET.SubElement(c_elem, "layers")
            for name in config.included_layers:
                ET.SubElement(layers, "include", {"name": name})
            for name in config.excluded_layers:
                ET.SubElement(layers, "exclude", {"name": name})
    if plan.options:
        o_elem = ET.SubElement(root, "options")
        for name, value in plan.options.items():
            ET.SubElement(o_elem, "option", {"name": name, "value": value})
    ET.indent(root)
    return '<?xml version="1.0" ?>\n' + ET.tostring(root, encoding="unicode") + "\n"


def write_plan(plan: ProvisioningPlan, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(plan_to_xml(plan), encoding="utf-8")
    return path
