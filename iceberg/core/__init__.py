"""Backup, restore, and retrieval engines."""
