"""
Analytics Interfaces Layer
===========================
"""

from feedback_resolver.analytics.interfaces.controllers import router

__all__ = ["router"]
