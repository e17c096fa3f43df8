"""
Reporting Interfaces Layer
===========================
"""

from helpdesk.reporting.interfaces.controllers import router as reporting_router, get_reporting_service

__all__ = ["reporting_router", "get_reporting_service"]
