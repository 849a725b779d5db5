"""
Data access layer for service.
"""

from service.dal.infractions import InfractionsTable

__all__ = ["InfractionsTable"]
