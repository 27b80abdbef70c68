"""Data models.

This package contains:
- types: Bridge descriptors and connection results
"""
