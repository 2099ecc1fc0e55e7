"""Reviewer assignment service for team pull requests."""

__version__ = "0.1.0"
