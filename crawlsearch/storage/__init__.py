"""
Output layer: deterministic JSON rendering of indexes and search results.
"""

from . import json_writer

__all__ = ['json_writer']
