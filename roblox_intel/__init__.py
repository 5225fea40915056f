"""Roblox game metrics and competitor group tracking service."""

__version__ = "0.1.0"
