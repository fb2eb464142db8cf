"""Database utilities and models."""

from dayflow.db.base import Base
from dayflow.db import models  # noqa: F401  (imported for side effects)

__all__ = ["Base"]
