"""API routers package."""

from .stock_picker import router as stock_picker_router

__all__ = ["stock_picker_router"]
