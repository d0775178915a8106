"""
skillmatrix - skill catalog loading and stack selection resolution.
"""

__version__ = "1.0.0"
