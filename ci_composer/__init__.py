"""Compose CI pipeline configuration from project presets."""

__version__ = "0.1.0"
