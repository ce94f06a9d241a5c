"""Backend metadata shared by adapters and routers."""

from portfolio_core.backend.capabilities import CAPABILITY_FLAGS, BackendCapabilities

__all__ = ["BackendCapabilities", "CAPABILITY_FLAGS"]
