"""
setrack.commands - CLI command implementations
"""

__all__ = [
    "migrate",
    "projects",
    "serve",
]
