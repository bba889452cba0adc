"""Nyuchi core library - pipeline, scoring and storage components."""
from . import models
from . import schemas
from . import storage
from . import security
from . import scoring
from . import pipeline
from . import config

__all__ = [
    "models",
    "schemas",
    "storage",
    "security",
    "scoring",
    "pipeline",
    "config",
]
