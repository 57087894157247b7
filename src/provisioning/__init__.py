"""Provisioning plans and their installation through a provisioning engine."""

from .builder import ProvisioningPlanBuilder
from .engine import GalleonCliEngine, ProvisioningEngine
from .model import (
    ConfigId,
    ConfigModel,
    ConfigSpec,
    FeaturePackDependency,
    FeaturePackRef,
    ProvisioningPlan,
    ProvisioningSpec,
)
from .provisioner import ServerProvisioner

__all__ = [
    "ProvisioningPlanBuilder",
    "GalleonCliEngine",
    "ProvisioningEngine",
    "ConfigId",
    "ConfigModel",
    "ConfigSpec",
    "FeaturePackDependency",
    "FeaturePackRef",
    "ProvisioningPlan",
    "ProvisioningSpec",
    "ServerProvisioner",
]
