"""HTTP surface for the chat service."""

from .app import create_app

__all__ = ["create_app"]
