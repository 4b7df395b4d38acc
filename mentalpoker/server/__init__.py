"""
mentalpoker Server - FastAPI + WebSocket Server Layer
"""

from mentalpoker.server.app import app, create_app

__all__ = ["app", "create_app"]
