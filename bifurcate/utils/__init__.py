"""
Utility helpers for URLs, timestamps and component wiring
"""
