"""ORM models exposed for metadata discovery."""
from dayflow.db.models.state_entry import StateEntry

__all__ = ["StateEntry"]
