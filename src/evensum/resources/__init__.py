# src/evensum/resources/__init__.py
"""Resource collaborators: parsing, reduction, discovery and generation."""

from evensum.resources.catalog import discover_resources, generate_resources, prepare_resources
from evensum.resources.reducer import TextFileReducer, parse_values, sum_positive_evens

__all__ = [
    "TextFileReducer",
    "discover_resources",
    "generate_resources",
    "parse_values",
    "prepare_resources",
    "sum_positive_evens",
]
