"""Approximate Voronoi diagrams grown over a pixel grid."""

__version__ = "0.1.0"
