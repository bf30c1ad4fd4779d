"""FastAPI routers acting as controllers in the MVC architecture."""

from . import pipeline

__all__ = ["pipeline"]
