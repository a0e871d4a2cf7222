# src/evensum/__init__.py
"""
Evensum: concurrent aggregation of positive even values.

Every resource is reduced by its own worker thread; partial sums are folded
into one running total in submission order, bounded by a global deadline.
"""

__version__ = "0.1.0"
