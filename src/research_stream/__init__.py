"""Streaming client core for a research/drafting agent."""

__version__ = "0.1.0"
