"""
Page fetching.
"""

from .resolver import PageResolver, DEFAULT_USER_AGENT

__all__ = [
    'PageResolver',
    'DEFAULT_USER_AGENT',
]
