"""
HTTP gateway for the LOBSTR facilitator
Provides the FastAPI application serving /verify, /settle and /supported
"""

from src.gateway.server import create_app

__all__ = ["create_app"]
