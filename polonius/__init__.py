"""Borrow-checking analysis: initialization, liveness and loan errors from facts."""

__version__ = "0.13.0"