"""
Core Database Package

Database engine and session management.
"""

from .connection import Database, init_database

__all__ = [
    'Database',
    'init_database',
]
