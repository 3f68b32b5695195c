"""
Engine Index Module.

Provides the immutable multi-facet inverted index.
"""

from .facets import FacetIndex

__all__ = ["FacetIndex"]
