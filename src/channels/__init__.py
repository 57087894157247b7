"""Channel-based artifact version resolution.

Channels are ordered manifests of version constraints. They override the
"latest available" answer of the backing repositories for the artifacts
they list, and every resolution made through them is recorded so that a
provisioned installation can be reproduced.
"""

from .model import Channel, ChannelCoordinate, ChannelsConfig, Stream
from .manifest import ManifestResolver
from .recorder import RecordEntry, ResolutionRecorder
from .resolver import ChannelOverlayResolver

__all__ = [
    "Channel",
    "ChannelCoordinate",
    "ChannelsConfig",
    "Stream",
    "ManifestResolver",
    "RecordEntry",
    "ResolutionRecorder",
    "ChannelOverlayResolver",
]
