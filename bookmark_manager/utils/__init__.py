"""
Utility modules for the Bookmark Manager.

Shared error hierarchy and logging setup.
"""
