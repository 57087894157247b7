"""Provisioning engines: the component that materializes an installation from a plan."""

from __future__ import annotations

import logging
import shutil
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from common.exec_util import exec_command
from constants import Constants
from errors import ProvisioningEngineFailure
from .model import FeaturePackDependency, ProvisioningPlan, maven_coords
from .plan_xml import write_plan

logger = logging.getLogger(__name__)


class ProvisioningEngine(ABC):
    """Installs the plan's feature packs into ``home``.

    ``records_state`` tells the caller whether the engine keeps its own copy
    of the plan inside the installation.
    """

    records_state: bool = True

    @abstractmethod
    def provision(self, plan: ProvisioningPlan, home: Path, resolver) -> None:
        """Materialize ``plan`` into ``home``, fetching artifacts through ``resolver``.

        Raises:
            ProvisioningEngineFailure: the engine could not install the plan.
        """


class GalleonCliEngine(ProvisioningEngine):
    """Drives the ``galleon.sh`` command line tool.

    Maven feature packs are resolved through the channel resolver first so
    that channel versions apply and are recorded; the plan handed to the tool
    pins those versions and the tool reads the artifacts from the same local
    repository the resolver materialized them into. Artifacts the tool pulls
    in on its own (transitive feature packs, module jars) bypass the resolver.
    """

    def __init__(self, binary: Optional[str] = None, record_state: bool = True,
                 extra_args: Optional[List[str]] = None):
        self.binary = binary or Constants.GALLEON_BINARY
        self.records_state = record_state
        self.extra_args = list(extra_args or [])

    @staticmethod
    def _pin(fp: FeaturePackDependency, resolver) -> FeaturePackDependency:
        coordinate = fp.maven_coordinate
        if coordinate is None:
            return fp
        resolved = resolver.resolve(coordinate)
        c = resolved.coordinate
        location = maven_coords(c.group_id, c.artifact_id, c.classifier or None,
                                c.extension, c.version)
        return FeaturePackDependency(
            location=location,
            transitive=fp.transitive,
            inherit_configs=fp.inherit_configs,
            inherit_packages=fp.inherit_packages,
            included_configs=fp.included_configs,
            excluded_configs=fp.excluded_configs,
            included_packages=fp.included_packages,
            excluded_packages=fp.excluded_packages,
        )

    def provision(self, plan: ProvisioningPlan, home: Path, resolver) -> None:
        pinned = plan.with_feature_packs(self._pin(fp, resolver) for fp in plan.feature_packs)
        local_repo = resolver.default_source.materialize_context.local_repository
        with tempfile.TemporaryDirectory(prefix="fpack-") as tmp:
            plan_file = write_plan(pinned, Path(tmp) / "provisioning.xml")
            cmd = [self.binary, "provision", str(plan_file), f"--dir={home}"] + self.extra_args
            env = {"JAVA_OPTS": f"-Dmaven.repo.local={local_repo}"}
            try:
                code = exec_command(cmd, env=env)
            except FileNotFoundError as exc:
                raise ProvisioningEngineFailure(
                    f"Galleon command line tool '{self.binary}' not found"
                ) from exc
        if code != 0:
            raise ProvisioningEngineFailure(f"'{self.binary} provision' exited with code {code}")
        if not self.records_state:
            shutil.rmtree(Path(home) / Constants.GALLEON_STATE_DIR, ignore_errors=True)
