"""
Go Release Watcher - Notify a chat channel when a new Go release ships.

This package provides functionality to:
- Fetch the Go download listing page
- Extract the latest release version for the macOS amd64 installer
- Compare it with the last version recorded in Firestore
- Post a message to a chat webhook and record the new version
"""

__version__ = "1.0.0"
__author__ = "Go Release Watcher Team"
