"""Render a dynamic page, extract its articles and publish them as a feed."""

__version__ = "1.0.0"
