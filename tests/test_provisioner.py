"""Tests for the provisioning orchestrator and the Galleon CLI engine."""

from pathlib import Path
from unittest.mock import patch

import pytest

from channels import ChannelOverlayResolver
from channels.model import Channel, Stream
from conftest import publish
from constants import Constants
from errors import InvalidPlanSpec, ProvisioningEngineFailure, UnresolvedArtifact
from provisioning import (
    GalleonCliEngine,
    ProvisioningEngine,
    ProvisioningPlanBuilder,
    ProvisioningSpec,
    ServerProvisioner,
)
from provisioning.plan_xml import parse_plan

WILDFLY = "org.wildfly:wildfly-galleon-pack"


class FakeEngine(ProvisioningEngine):
    """Resolves every Maven feature pack and creates the home directory."""

    def __init__(self, records_state=False, create_home=True, error=None):
        self.records_state = records_state
        self.create_home = create_home
        self.error = error
        self.plans = []

    def provision(self, plan, home, resolver):
        self.plans.append(plan)
        if self.error is not None:
            raise self.error
        for fp in plan.feature_packs:
            if fp.maven_coordinate is not None:
                resolver.resolve(fp.maven_coordinate)
        if self.create_home:
            (Path(home) / "bin").mkdir(parents=True)


@pytest.fixture
def resolver(source, repo_root):
    publish(repo_root, "org.wildfly", "wildfly-galleon-pack", ["25.0.0.Final", "26.0.0.Final"], extension="zip")
    channel = Channel("wildfly", streams=(Stream("org.wildfly", "wildfly-galleon-pack",
                                                 version_range="[25,27)", extension="zip"),))
    return ChannelOverlayResolver([channel], source)


class TestServerProvisioner:
    """ServerProvisioner.provision."""

    def test_provision_records_channels_and_plan(self, resolver, tmp_path):
        engine = FakeEngine()
        home = tmp_path / "server"
        plan = ServerProvisioner(engine, resolver).provision(
            ProvisioningSpec(feature_pack_location=WILDFLY, layers=["cloud-server"], base_dir=str(tmp_path)), home)
        assert plan.options["optional-packages"] == "passive+"
        channels_file = home / Constants.CHANNELS_DIR / Constants.CHANNELS_FILE
        assert "26.0.0.Final" in channels_file.read_text(encoding="utf-8")
        recorded = parse_plan(home / Constants.PLUGIN_PROVISIONING_FILE)
        assert [fp.location for fp in recorded.feature_packs] == [WILDFLY]

    def test_engine_with_state_gets_no_plan_file(self, resolver, tmp_path):
        home = tmp_path / "server"
        ServerProvisioner(FakeEngine(records_state=True), resolver).provision(
            ProvisioningSpec(feature_pack_location=WILDFLY, base_dir=str(tmp_path)), home)
        assert not (home / Constants.PLUGIN_PROVISIONING_FILE).exists()

    def test_previous_installation_deleted(self, resolver, tmp_path):
        home = tmp_path / "server"
        home.mkdir()
        (home / "stale.txt").write_text("old", encoding="utf-8")
        ServerProvisioner(FakeEngine(), resolver).provision(
            ProvisioningSpec(feature_pack_location=WILDFLY, base_dir=str(tmp_path)), home)
        assert not (home / "stale.txt").exists()

    def test_invalid_spec_never_reaches_engine(self, resolver, tmp_path):
        engine = FakeEngine()
        with pytest.raises(InvalidPlanSpec):
            ServerProvisioner(engine, resolver).provision(
                ProvisioningSpec(layers=["web-default"], base_dir=str(tmp_path)), tmp_path / "server")
        assert engine.plans == []

    def test_engine_error_wrapped(self, resolver, tmp_path):
        engine = FakeEngine(error=RuntimeError("feature-pack not found"))
        with pytest.raises(ProvisioningEngineFailure) as exc_info:
            ServerProvisioner(engine, resolver).provision(
                ProvisioningSpec(feature_pack_location=WILDFLY, base_dir=str(tmp_path)), tmp_path / "server")
        assert WILDFLY in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_typed_errors_propagate(self, source, tmp_path):
        resolver = ChannelOverlayResolver([], source)
        with pytest.raises(UnresolvedArtifact):
            ServerProvisioner(FakeEngine(), resolver).provision(
                ProvisioningSpec(feature_pack_location=WILDFLY, base_dir=str(tmp_path)), tmp_path / "server")

    def test_missing_home_after_success_is_failure(self, resolver, tmp_path):
        with pytest.raises(ProvisioningEngineFailure):
            ServerProvisioner(FakeEngine(create_home=False), resolver).provision(
                ProvisioningSpec(feature_pack_location=WILDFLY, base_dir=str(tmp_path)), tmp_path / "server")
        assert not resolver.recorder.closed


class TestUpdate:
    """ServerProvisioner.update re-provisions from the recorded plan."""

    def test_update_uses_recorded_plan(self, resolver, tmp_path):
        home = tmp_path / "server"
        ServerProvisioner(FakeEngine(), resolver).provision(
            ProvisioningSpec(feature_pack_location=WILDFLY, base_dir=str(tmp_path)), home)

        engine = FakeEngine()
        fresh = ChannelOverlayResolver(resolver.channels, resolver.default_source)
        plan = ServerProvisioner(engine, fresh).update(home, options={"jboss-fork-embedded": "true"})
        assert [fp.location for fp in plan.feature_packs] == [WILDFLY]
        assert plan.options["jboss-fork-embedded"] == "true"
        assert (home / Constants.CHANNELS_DIR / Constants.CHANNELS_FILE).is_file()
        assert not any(p.name.startswith(".server-update-") for p in tmp_path.iterdir())

    def test_failed_update_keeps_installation(self, resolver, tmp_path):
        home = tmp_path / "server"
        ServerProvisioner(FakeEngine(), resolver).provision(
            ProvisioningSpec(feature_pack_location=WILDFLY, base_dir=str(tmp_path)), home)

        fresh = ChannelOverlayResolver(resolver.channels, resolver.default_source)
        engine = FakeEngine(error=ProvisioningEngineFailure("galleon exited with 1"))
        with pytest.raises(ProvisioningEngineFailure):
            ServerProvisioner(engine, fresh).update(home)
        assert (home / "bin").is_dir()
        assert (home / Constants.PLUGIN_PROVISIONING_FILE).is_file()
        assert not any(p.name.startswith(".server-update-") for p in tmp_path.iterdir())
        assert not fresh.recorder.closed

    def test_update_requires_channels(self, source, tmp_path):
        with pytest.raises(InvalidPlanSpec):
            ServerProvisioner(FakeEngine(), ChannelOverlayResolver([], source)).update(tmp_path)

    def test_update_requires_recorded_plan(self, resolver, tmp_path):
        with pytest.raises(InvalidPlanSpec):
            ServerProvisioner(FakeEngine(), resolver).update(tmp_path / "server")


class TestGalleonCliEngine:
    """Command line and pinned plan handed to galleon.sh."""

    def test_provision_pins_resolved_versions(self, resolver, tmp_path, local_cache):
        seen = {}

        def fake_exec(cmd, cwd=None, env=None, input_text=None):
            seen["cmd"] = cmd
            seen["env"] = env
            seen["plan"] = parse_plan(Path(cmd[2]))
            Path(cmd[3].split("=", 1)[1]).mkdir(parents=True)
            return 0

        home = tmp_path / "server"
        engine = GalleonCliEngine(binary="/opt/galleon/bin/galleon.sh")
        plan = ProvisioningPlanBuilder().build(
            ProvisioningSpec(feature_pack_location=WILDFLY, base_dir=str(tmp_path)))
        with patch("provisioning.engine.exec_command", side_effect=fake_exec):
            engine.provision(plan, home, resolver)
        assert seen["cmd"][:2] == ["/opt/galleon/bin/galleon.sh", "provision"]
        assert seen["cmd"][3] == f"--dir={home}"
        assert seen["env"] == {"JAVA_OPTS": f"-Dmaven.repo.local={local_cache}"}
        (fp,) = seen["plan"].feature_packs
        assert fp.location == "org.wildfly:wildfly-galleon-pack::zip:26.0.0.Final"
        assert resolver.recorder.version_of(fp.maven_coordinate) == "26.0.0.Final"

    def test_non_zero_exit(self, resolver, tmp_path):
        plan_spec = ProvisioningSpec(feature_pack_location=WILDFLY, base_dir=str(tmp_path))
        plan = ProvisioningPlanBuilder().build(plan_spec)
        with patch("provisioning.engine.exec_command", return_value=1):
            with pytest.raises(ProvisioningEngineFailure):
                GalleonCliEngine().provision(plan, tmp_path / "server", resolver)

    def test_missing_binary(self, resolver, tmp_path):
        plan = ProvisioningPlanBuilder().build(
            ProvisioningSpec(feature_pack_location=WILDFLY, base_dir=str(tmp_path)))
        with patch("provisioning.engine.exec_command", side_effect=FileNotFoundError("galleon.sh")):
            with pytest.raises(ProvisioningEngineFailure):
                GalleonCliEngine().provision(plan, tmp_path / "server", resolver)

    def test_without_record_state_drops_engine_state(self, resolver, tmp_path):
        home = tmp_path / "server"

        def fake_exec(cmd, cwd=None, env=None, input_text=None):
            (home / Constants.GALLEON_STATE_DIR).mkdir(parents=True)
            return 0

        plan = ProvisioningPlanBuilder().build(
            ProvisioningSpec(feature_pack_location=WILDFLY, base_dir=str(tmp_path)))
        engine = GalleonCliEngine(record_state=False)
        with patch("provisioning.engine.exec_command", side_effect=fake_exec):
            engine.provision(plan, home, resolver)
        assert not engine.records_state
        assert not (home / Constants.GALLEON_STATE_DIR).exists()
        assert home.is_dir()
