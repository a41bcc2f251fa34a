"""
Storage layout management
"""

from .storage_manager import StorageManager

__all__ = ["StorageManager"]
