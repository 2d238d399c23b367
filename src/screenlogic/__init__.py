"""Async client for Pentair ScreenLogic pool/spa controllers."""

__version__ = "0.1.0"

__all__ = ["__version__"]
