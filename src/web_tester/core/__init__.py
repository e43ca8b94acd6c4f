"""
Core module for the web test execution engine.

This module contains:
- config.py: Application configuration and settings
- logging_config.py: Logging configuration
- errors.py: Exception taxonomy
- models/: Test case, result and run data models
"""

__all__ = ["config", "logging_config", "errors", "models"]
