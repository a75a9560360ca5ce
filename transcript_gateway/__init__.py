# transcript_gateway/__init__.py
"""Transcript acquisition gateway with prioritized, fallback-driven extraction techniques."""

__version__ = "0.1.0"
