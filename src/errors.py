"""Typed failures raised by the resolution, planning and packaging layers.

Library code raises these; the CLI entry point maps them to exit codes.
"""

from __future__ import annotations

from typing import Iterable, Optional


class FpackError(Exception):
    """Base class for every fatal condition reported to the caller."""


class InvalidPlanSpec(FpackError):
    """The declarative provisioning spec is structurally invalid."""


class UnresolvedArtifact(FpackError):
    """No channel and no fallback could resolve a coordinate."""

    def __init__(self, coordinate, channels: Iterable[str] = (), reason: Optional[str] = None):
        self.coordinate = coordinate
        self.channels = list(channels)
        self.reason = reason
        message = f"Unable to resolve artifact {coordinate}"
        if self.channels:
            message += f" (channels tried: {', '.join(self.channels)})"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class ChannelLoadFailure(FpackError):
    """A channel manifest could not be located, fetched or parsed."""

    def __init__(self, channel, reason: str):
        self.channel = channel
        self.reason = reason
        super().__init__(f"Unable to load channel {channel}: {reason}")


class ProvisioningEngineFailure(FpackError):
    """The provisioning engine signaled an error."""


class DeploymentPrecondition(FpackError):
    """A deployment cannot be attempted with the given inputs."""


class ExternalToolUnavailable(FpackError):
    """An external binary is missing or failed its availability probe."""


class RecorderClosed(FpackError):
    """The resolution record was already flushed."""


class ConfigurationError(FpackError):
    """The configuration file or command line options are unusable."""
