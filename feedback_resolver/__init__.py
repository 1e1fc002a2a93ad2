"""
Feedback Resolver
==================

Classifies customer support messages, reuses curated solutions for
similar past complaints and reports answer-type analytics.
"""

__version__ = "1.0.0"
