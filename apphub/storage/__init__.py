"""Registry persistence."""

from .database import DatabaseManager
from .models import AppRecord, Base

__all__ = ["AppRecord", "Base", "DatabaseManager"]
