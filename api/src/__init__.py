"""FastAPI service for task tracking.

This package provides REST API endpoints for creating, listing, replacing
and deleting tasks and the users they are assigned to.
"""

__version__ = "1.0.0"
