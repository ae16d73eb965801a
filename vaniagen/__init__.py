"""Procedural Metroidvania world generation: gated room graphs, room tiles and layouts."""

__version__ = "0.1.0"
