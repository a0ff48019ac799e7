"""HTTP routers."""

from .lifecycle import router as lifecycle_router

__all__ = ["lifecycle_router"]
