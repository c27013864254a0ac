"""
Base service class.
Services contain business logic and coordinate sources and repositories.
"""

from abc import ABC


class BaseService(ABC):
    """Base service class for all services."""
    pass
