"""
Help-desk ticket lifecycle and SLA engine.
"""

__version__ = "1.0.0"
