"""Streaming math tutor: LLM relay, rate limiting and answer rendering."""

__version__ = "0.1.0"
