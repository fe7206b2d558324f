"""
PATH: users/models/__init__.py

Users models export surface.
"""

from .user import User

__all__ = ["User"]
