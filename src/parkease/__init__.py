"""ParkEase parking allocation and booking lifecycle core."""

__version__ = "0.1.0"
