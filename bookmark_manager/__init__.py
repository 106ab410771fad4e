"""
Bookmark Manager

Filtering, classification and archiving engine for a personal bookmark
collection organised into categories, folders and labels.
"""

__version__ = "1.0.0"
