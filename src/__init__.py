# src/__init__.py — v1
"""cinearchive — identify posters, covers and portraits via Gemini vision."""

from cinearchive.version import __version__

__all__ = ["__version__"]
