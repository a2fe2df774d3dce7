from .types import RequestAction, UpstreamState

__all__ = ["RequestAction", "UpstreamState"]
