"""Provisioning orchestration: plan, install, persist the resolution record."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Mapping, Optional, Union

from common.logging_utils import Timer
from constants import Constants
from errors import FpackError, InvalidPlanSpec, ProvisioningEngineFailure
from .builder import ProvisioningPlanBuilder
from .engine import ProvisioningEngine
from .model import ProvisioningPlan, ProvisioningSpec
from .plan_xml import parse_plan, write_plan

logger = logging.getLogger(__name__)


class ServerProvisioner:
    """Runs one provisioning (or update) of a server installation.

    Args:
        engine: The provisioning engine to drive.
        resolver: A ChannelOverlayResolver; its record is flushed into the
            installation once the engine succeeded.
        builder: Plan builder, a default one when omitted.
    """

    def __init__(self, engine: ProvisioningEngine, resolver,
                 builder: Optional[ProvisioningPlanBuilder] = None):
        self.engine = engine
        self.resolver = resolver
        self.builder = builder or ProvisioningPlanBuilder()

    def provision(self, spec_or_plan: Union[ProvisioningSpec, ProvisioningPlan], home: Path) -> ProvisioningPlan:
        """Install ``spec_or_plan`` into ``home``, replacing any previous installation.

        Raises:
            InvalidPlanSpec: the spec is invalid.
            UnresolvedArtifact: a feature pack could not be resolved.
            ProvisioningEngineFailure: the engine failed or left no installation.
        """
        if isinstance(spec_or_plan, ProvisioningPlan):
            plan = spec_or_plan
        else:
            plan = self.builder.build(spec_or_plan)
        home = Path(home)
        if home.exists():
            logger.debug("Deleting previous installation %s", home)
            shutil.rmtree(home)
        with Timer() as t:
            self._install(plan, home)
        self.resolver.done(home)
        logger.info("Provisioned %s in %s (%d ms)", plan.describe(), home, t.duration_ms())
        return plan

    def _install(self, plan: ProvisioningPlan, home: Path) -> None:
        logger.info("Provisioning server in %s", home)
        try:
            self.engine.provision(plan, home, self.resolver)
        except FpackError:
            raise
        except Exception as exc:  # pylint: disable=broad-exception-caught
            raise ProvisioningEngineFailure(
                f"Provisioning of {plan.describe()} failed: {exc}"
            ) from exc
        if not home.exists():
            raise ProvisioningEngineFailure(
                f"Provisioning of {plan.describe()} reported success but {home} does not exist"
            )
        if not self.engine.records_state:
            write_plan(plan, home / Constants.PLUGIN_PROVISIONING_FILE)

    @staticmethod
    def recorded_plan(home: Path) -> ProvisioningPlan:
        """The plan an existing installation was provisioned from.

        Raises:
            InvalidPlanSpec: the installation holds no recorded plan.
        """
        home = Path(home)
        for candidate in (home / Constants.GALLEON_STATE_DIR / Constants.GALLEON_PROVISIONING_FILE,
                          home / Constants.PLUGIN_PROVISIONING_FILE):
            if candidate.exists():
                return parse_plan(candidate)
        raise InvalidPlanSpec(f"No provisioning record found in installation {home}")

    def update(self, home: Path, options: Optional[Mapping[str, str]] = None) -> ProvisioningPlan:
        """Re-provision ``home`` from its recorded plan with the configured channels.

        The current installation is left untouched when provisioning fails.

        Raises:
            InvalidPlanSpec: no channel is configured or no plan was recorded.
            ProvisioningEngineFailure: the engine failed.
        """
        if not self.resolver.channels:
            raise InvalidPlanSpec("Updating a server requires at least one channel")
        home = Path(home)
        plan = self.recorded_plan(home)
        if options:
            merged = dict(plan.options)
            merged.update(options)
            plan = ProvisioningPlan(feature_packs=plan.feature_packs, configs=plan.configs,
                                    options=merged, source_file=plan.source_file)
        logger.info("Updating server %s using channels %s", home, ", ".join(self.resolver.channel_names))
        # The engine installs into a sibling directory; home is replaced only on success.
        staging = Path(tempfile.mkdtemp(prefix=f".{home.name}-update-", dir=str(home.parent)))
        try:
            with Timer() as t:
                self._install(plan, staging / home.name)
            shutil.rmtree(home)
            os.replace(staging / home.name, home)
        finally:
            shutil.rmtree(staging, ignore_errors=True)
        self.resolver.done(home)
        logger.info("Updated %s in %s (%d ms)", plan.describe(), home, t.duration_ms())
        return plan
