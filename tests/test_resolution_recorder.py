"""Tests for the resolution record and its replay."""

import pytest
import yaml

from channels import ChannelOverlayResolver, ManifestResolver, ResolutionRecorder
from channels.model import Channel, ChannelCoordinate, Stream
from conftest import publish
from constants import Constants
from errors import RecorderClosed
from versioning.models import Coordinate, MavenRepository


class TestRecorder:
    """Accumulating and persisting resolved versions."""

    def test_rerecording_replaces_entry(self):
        recorder = ResolutionRecorder()
        recorder.record(Coordinate("org", "lib", version="1.0"), "1.0", "c")
        recorder.record(Coordinate("org", "lib", version="1.1"), "1.1", "c")
        assert len(recorder) == 1
        assert recorder.version_of(Coordinate("org", "lib")) == "1.1"
        assert recorder.entries()[0].coordinate.version is None

    def test_identity_includes_classifier_and_extension(self):
        recorder = ResolutionRecorder()
        recorder.record(Coordinate("org", "fp", extension="zip"), "1.0")
        recorder.record(Coordinate("org", "fp", extension="pom"), "1.0")
        recorder.record(Coordinate("org", "fp", extension="zip", classifier="x"), "1.0")
        assert len(recorder) == 3

    def test_one_channel_per_source_plus_direct(self):
        repo = MavenRepository("r", "https://repo.example.org/")
        channels = [Channel("base", repositories=(repo,), description="Base"), Channel("extra")]
        recorder = ResolutionRecorder(channels, default_repositories=[MavenRepository("central", "https://c/")])
        recorder.record(Coordinate("org", "b"), "2.0", "base")
        recorder.record(Coordinate("org", "a"), "1.0", "base")
        recorder.record(Coordinate("com", "z"), "3.0", None)
        recorded = recorder.recorded_channels()
        assert [c.name for c in recorded] == ["base", Constants.DIRECT_CHANNEL_NAME]
        base = recorded[0]
        assert base.repositories == (repo,)
        assert [s.artifact_id for s in base.streams] == ["a", "b"]
        assert all(s.version and s.extension == "jar" and s.classifier == "" for s in base.streams)
        assert recorded[1].repositories == (MavenRepository("central", "https://c/"),)

    def test_flush_writes_channels_file(self, tmp_path):
        recorder = ResolutionRecorder()
        recorder.record(Coordinate("org", "lib"), "1.0")
        target = recorder.flush(tmp_path)
        assert target == tmp_path / ".channels" / "channels.yaml"
        (doc,) = list(yaml.safe_load_all(target.read_text(encoding="utf-8")))
        assert doc["streams"] == [{"groupId": "org", "artifactId": "lib", "version": "1.0",
                                   "classifier": "", "extension": "jar"}]

    def test_flush_twice_raises(self, tmp_path):
        recorder = ResolutionRecorder()
        recorder.flush(tmp_path)
        assert recorder.closed
        with pytest.raises(RecorderClosed):
            recorder.flush(tmp_path)
        with pytest.raises(RecorderClosed):
            recorder.record(Coordinate("org", "lib"), "1.0")


class TestReplay:
    """A persisted record reloaded as channels reproduces the same artifact set."""

    def test_round_trip(self, source, repo_root, tmp_path):
        publish(repo_root, "org", "lib", ["1.0.0", "1.4.0", "1.9.0"])
        publish(repo_root, "org", "fp", ["26.0.0.Final", "27.0.0.Beta1"], extension="zip")
        publish(repo_root, "com", "direct", ["5.0"])
        channel = Channel("upstream", streams=(
            Stream("org", "lib", version_range="[1,1.5)"),
            Stream("org", "fp", version_pattern=r".*\.Final", extension="zip"),
        ))
        requests = [
            Coordinate("org", "lib"),
            Coordinate("org", "fp", extension="zip"),
            Coordinate("com", "direct", version="5.0"),
        ]
        first = ChannelOverlayResolver([channel], source)
        original = {c.key: first.resolve(c).version for c in requests}
        record = first.done(tmp_path / "home")

        # New releases must not leak into the replay.
        publish(repo_root, "org", "lib", ["1.0.0", "1.4.0", "1.4.5", "1.9.0"])
        replayed_channels = ManifestResolver(source).load(ChannelCoordinate(url=str(record)))
        assert [c.name for c in replayed_channels] == ["upstream", "direct"]
        replay = ChannelOverlayResolver(replayed_channels, source, disable_latest_resolution=True)
        replayed = {c.key: replay.resolve(c.without_version()).version for c in requests}
        assert replayed == original
        assert original[("org", "lib", "", "jar")] == "1.4.0"
        assert original[("org", "fp", "", "zip")] == "26.0.0.Final"
