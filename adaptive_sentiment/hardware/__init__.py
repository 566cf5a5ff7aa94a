"""
Host hardware capability detection for runtime tier selection.
"""
