"""
=============================================================================
HANDLERS MODULE
=============================================================================

The method handlers that turn a parsed request into filesystem operations
and a response.

    methods.py   MethodHandlers: GET, HEAD, PUT, POST, DELETE
    listing.py   generate_listing(): HTML index of a directory

=============================================================================
"""

from .listing import DirectoryEntry, Resource, generate_listing
from .methods import Exchange, MethodHandlers

__all__ = [
    "MethodHandlers",
    "Exchange",
    "generate_listing",
    "DirectoryEntry",
    "Resource",
]
