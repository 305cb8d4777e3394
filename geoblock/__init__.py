"""WSGI middleware that allows or blocks requests by client IP range and country."""

__version__ = "0.1.0"
__all__ = ["config", "evaluator", "plugin"]