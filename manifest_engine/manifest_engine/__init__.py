"""Snapshot-based versioning and structural diff engine for game asset manifests."""

__version__ = "0.1.0"
