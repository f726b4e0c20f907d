# src/fcrank/middleware/__init__.py

"""Middleware components for the FC Rank API."""

from .logging import RequestLoggingMiddleware

__all__ = ["RequestLoggingMiddleware"]
