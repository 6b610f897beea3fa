"""Discovery surface exposed to host launchers."""

from prismgl.api.discovery import DiscoveryProvider, parse_artifact_kind
from prismgl.api.server import create_discovery_app

__all__ = ["DiscoveryProvider", "create_discovery_app", "parse_artifact_kind"]
