"""
Domain layer package housing repository targets, resources and event types.
"""

from typing import Final

# separator used for storage keys and for directory entries in listings
PATH_SEPARATOR: Final[str] = "/"
