"""API route modules."""
from .vitals import router as vitals_router
from .alerts import router as alerts_router

__all__ = [
    "vitals_router",
    "alerts_router",
]
