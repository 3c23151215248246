"""Assign weekly class sessions to laboratory rooms."""
