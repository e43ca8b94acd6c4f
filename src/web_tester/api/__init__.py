"""
API module for the web test execution engine.

This module contains:
- endpoints.py: Test run and health endpoints
"""

__all__ = ["endpoints"]
