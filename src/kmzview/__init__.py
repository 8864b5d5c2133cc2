"""
kmzview - KMZ archive explorer and map renderer.

This package parses KMZ archives, exposes their NetworkLink hierarchy as a
navigable tree and renders their ground overlays on an interactive map.
"""

__version__ = "0.1.0"
