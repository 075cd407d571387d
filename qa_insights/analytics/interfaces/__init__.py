"""
Analytics Interfaces Layer
==========================

FastAPI route handlers. This is the outermost layer - handles HTTP
requests/responses and delegates to application services.
"""

from qa_insights.analytics.interfaces.controllers import analytics_router

__all__ = ["analytics_router"]
