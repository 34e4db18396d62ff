"""Bilayer thickness, curvature and area-per-lipid analysis, plus XTC and config file helpers."""

__version__ = "0.1.0"