"""
Shared Kernel Module
====================

This module contains shared infrastructure used across both bounded
contexts (Resolution and Analytics).

Architecture Pattern: Modular Monolith
- Each module (resolution, analytics) is a bounded context
- Shared kernel contains only generic infrastructure

DO NOT add resolution or analytics business logic to the shared kernel.
"""

__version__ = "1.0.0"
