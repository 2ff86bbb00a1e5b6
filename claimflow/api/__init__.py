# API module - claim routes
from .endpoints import router

__all__ = ["router"]
