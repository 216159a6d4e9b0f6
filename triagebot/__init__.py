"""Asynchronous handlers for triaging issues and pull requests, with in-memory backends."""

__version__ = "0.1.0"