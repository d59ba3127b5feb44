"""Conformance checker for the embedded C coding and Doxygen standards."""

__version__ = "0.1.0"
