"""HTTP layer for the submission pipeline and Ubuntu scoring."""
from .app import create_app

__all__ = ["create_app"]
