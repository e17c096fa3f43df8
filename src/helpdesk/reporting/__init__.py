"""
Reporting Module
================

Bounded Context for read-only rollups: ticket summary, per-agent and
per-SLA-tier figures.
"""

__version__ = "1.0.0"
