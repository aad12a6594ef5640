"""setrack.server - Flask REST API server for the project dashboard.

Provides a thin REST wrapper over ``ProjectRepository`` with CORS
support and optional hosting of the built dashboard bundle.
"""

from setrack.server.app import create_app

__all__ = ["create_app"]
