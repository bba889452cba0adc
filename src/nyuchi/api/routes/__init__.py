"""API route modules."""
from . import pipeline, ubuntu

__all__ = [
    "pipeline",
    "ubuntu",
]
