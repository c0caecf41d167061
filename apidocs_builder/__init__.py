"""API Docs Builder - cache-aware API reference generation for a docs site.

This package wraps the static-site generator's OpenAPI doc generation with
hash-based caching, and sequences the full documentation build.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
