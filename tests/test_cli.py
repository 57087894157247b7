"""Tests for argument parsing, configuration loading and the CLI entry point."""

import json
from unittest.mock import patch

import pytest

import fpack
from args import parse_args
from cli_config import (
    channels_config,
    image_info,
    load_config_file,
    packaging_options,
    provisioning_spec,
)
from conftest import publish
from constants import Constants, ExitCodes
from errors import ConfigurationError, ProvisioningEngineFailure

CONFIG_YAML = """\
channels:
  - manifest:
      url: https://example.org/channels/base.yaml
  - manifest:
      groupId: org.wildfly.channels
      artifactId: wildfly
  - org.example:extra:1.0
disable-latest-resolution: true
local-cache: m2
repositories:
  - id: internal
    url: https://nexus.example.org/maven/
feature-packs:
  - group-id: org.wildfly
    artifact-id: wildfly-galleon-pack
    version: 26.0.0.Final
layers:
  - cloud-server
plugin-options:
  jboss-fork-embedded: true
extra-server-content-dirs:
  - extra
server-groups: [main-server-group]
image:
  jdk-version: 17
  registry: quay.io
  push: true
"""


class TestParseArgs:
    def test_provision_flags(self):
        args = parse_args(["provision", "--channel", "a.yaml", "--channel", "g:a",
                           "--feature-pack-location", "g:fp:1", "--layer", "web-server",
                           "--plugin-option", "x=y", "--loglevel", "debug"])
        assert args.GOAL == "provision"
        assert args.CHANNELS == ["a.yaml", "g:a"]
        assert args.FEATURE_PACK_LOCATION == "g:fp:1"
        assert args.LAYERS == ["web-server"]
        assert args.PLUGIN_OPTIONS == ["x=y"]
        assert args.LOG_LEVEL == "DEBUG"

    def test_goal_required(self):
        with pytest.raises(SystemExit):
            parse_args([])

    def test_image_flags_only_on_image_goal(self):
        assert parse_args(["image", "--push", "--jdk", "17"]).PUSH
        with pytest.raises(SystemExit):
            parse_args(["provision", "--push"])

    def test_update_has_no_provisioning_flags(self):
        with pytest.raises(SystemExit):
            parse_args(["update", "--layer", "x"])


class TestConfigFile:
    def test_yaml_and_json(self, tmp_path):
        yml = tmp_path / "fpack.yaml"
        yml.write_text(CONFIG_YAML, encoding="utf-8")
        js = tmp_path / "fpack.json"
        js.write_text(json.dumps({"layers": ["a"]}), encoding="utf-8")
        assert load_config_file(str(yml))["local-cache"] == "m2"
        assert load_config_file(str(js)) == {"layers": ["a"]}
        assert load_config_file(None) == {}

    def test_errors(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config_file(str(tmp_path / "missing.yaml"))
        bad = tmp_path / "bad.yaml"
        bad.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_config_file(str(bad))
        broken = tmp_path / "broken.yaml"
        broken.write_text("a: [", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_config_file(str(broken))


class TestConfigMapping:
    """Config sections to typed settings; CLI flags win."""

    @pytest.fixture
    def data(self, tmp_path):
        path = tmp_path / "fpack.yaml"
        path.write_text(CONFIG_YAML, encoding="utf-8")
        return load_config_file(str(path))

    def test_channels_from_config(self, data):
        config = channels_config(parse_args(["provision"]), data)
        coords = list(config.channels)
        assert coords[0].url == "https://example.org/channels/base.yaml"
        assert (coords[1].group_id, coords[1].artifact_id, coords[1].version) == (
            "org.wildfly.channels", "wildfly", None)
        assert coords[2].version == "1.0"
        assert config.disable_latest_resolution
        assert config.local_cache == "m2"
        assert [r.id for r in config.repositories] == ["internal"]

    def test_cli_channels_win(self, data):
        args = parse_args(["provision", "--channel", "g:a:2", "--repository", "mine=file:///repo",
                           "--local-cache", "/cache"])
        config = channels_config(args, data)
        assert [str(c) for c in config.channels] == ["g:a:2"]
        assert [(r.id, r.url) for r in config.repositories] == [("mine", "file:///repo")]
        assert config.local_cache == "/cache"

    def test_provisioning_spec(self, data, tmp_path):
        spec = provisioning_spec(parse_args(["provision", "--plugin-option", "a=b"]), data, tmp_path)
        assert spec.feature_packs[0]["artifact-id"] == "wildfly-galleon-pack"
        assert spec.layers == ("cloud-server",)
        assert spec.plugin_options == {"jboss-fork-embedded": "True", "a": "b"}
        assert spec.provisioning_file == Constants.DEFAULT_PROVISIONING_FILE
        assert spec.base_dir == str(tmp_path)

    def test_cli_feature_packs_replace_config_list(self, data, tmp_path):
        spec = provisioning_spec(parse_args(["provision", "--feature-pack", "g:a:1"]), data, tmp_path)
        assert spec.feature_packs == ({"location": "g:a:1"},)

    def test_bad_plugin_option(self, data, tmp_path):
        with pytest.raises(ConfigurationError):
            provisioning_spec(parse_args(["provision", "--plugin-option", "novalue"]), data, tmp_path)

    def test_packaging_and_image(self, data, monkeypatch):
        monkeypatch.setenv(Constants.ENV_REGISTRY_PASSWORD, "s3cret")
        args = parse_args(["image", "--image-tag", "v1", "--registry-user", "bot"])
        options = packaging_options(args, data)
        assert options.server_groups == ["main-server-group"]
        assert options.extra_content_dirs == ["extra"]
        info = image_info(args, data)
        assert (info.jdk, info.registry, info.push, info.tag) == ("17", "quay.io", True, "v1")
        assert (info.user, info.password) == ("bot", "s3cret")


class TestRun:
    """fpack.run end to end with the engine stubbed."""

    @pytest.fixture
    def project(self, tmp_path):
        repo = tmp_path / "repo"
        publish(repo, "org.wildfly", "wildfly-galleon-pack", ["26.0.0.Final"], extension="zip")
        (tmp_path / "channel.yaml").write_text(
            "name: wildfly\nstreams:\n  - groupId: org.wildfly\n    artifactId: wildfly-galleon-pack\n"
            "    versionRange: \"[26,27)\"\n", encoding="utf-8")
        return tmp_path, repo

    def _argv(self, project, *extra):
        base, repo = project
        return ["provision", "--base-dir", str(base), "--channel", str(base / "channel.yaml"),
                "--repository", f"local={repo.as_uri()}", "--local-cache", str(base / "m2"), *extra]

    def test_provision_success(self, project):
        def fake_provision(self, plan, home, resolver):
            for fp in plan.feature_packs:
                resolver.resolve(fp.maven_coordinate)
            home.mkdir(parents=True)

        with patch("provisioning.engine.GalleonCliEngine.provision", fake_provision):
            code = fpack.run(self._argv(project, "--feature-pack-location", "org.wildfly:wildfly-galleon-pack"))
        assert code == ExitCodes.SUCCESS.value
        base, _ = project
        assert (base / "target" / "server" / ".channels" / "channels.yaml").is_file()

    def test_invalid_spec_exit_code(self, project):
        assert fpack.run(self._argv(project, "--layer", "web-server")) == ExitCodes.CONFIG_ERROR.value

    def test_channel_failure_exit_code(self, project):
        base, _ = project
        argv = self._argv(project, "--feature-pack-location", "g:a:1")
        argv[argv.index(str(base / "channel.yaml"))] = str(base / "missing.yaml")
        assert fpack.run(argv) == ExitCodes.CONNECTION_ERROR.value

    def test_invalid_spec_reported_before_channel_loading(self, project):
        base, _ = project
        argv = self._argv(project, "--feature-pack-location", "g:a:1", "--feature-pack", "g:b:1")
        argv[argv.index(str(base / "channel.yaml"))] = str(base / "missing.yaml")
        with patch("fpack.ChannelOverlayResolver.from_config") as from_config:
            assert fpack.run(argv) == ExitCodes.CONFIG_ERROR.value
        from_config.assert_not_called()

    def test_engine_failure_exit_code(self, project):
        with patch("provisioning.engine.GalleonCliEngine.provision",
                   side_effect=ProvisioningEngineFailure("boom")):
            code = fpack.run(self._argv(project, "--feature-pack-location", "org.wildfly:wildfly-galleon-pack"))
        assert code == ExitCodes.PROVISIONING_ERROR.value

    def test_skip(self, tmp_path):
        config = tmp_path / "fpack.yaml"
        config.write_text("skip: true\n", encoding="utf-8")
        assert fpack.run(["provision", "-c", str(config)]) == ExitCodes.SUCCESS.value

    def test_main_exits_with_code(self, tmp_path, monkeypatch):
        config = tmp_path / "fpack.yaml"
        config.write_text("skip: true\n", encoding="utf-8")
        monkeypatch.setattr("sys.argv", ["fpack", "provision", "-c", str(config)])
        with pytest.raises(SystemExit) as exc_info:
            fpack.main()
        assert exc_info.value.code == 0
