"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: Render ids, key names, ring size limits
- exceptions: Custom exception hierarchy
"""
