"""
Shared Kernel Module
====================

Shared infrastructure and domain primitives used across all bounded
contexts (SLA, Tickets, Escalation, Reporting).

Architecture Pattern: Modular Monolith
- Each module (sla, tickets, escalation, reporting) is a bounded context
- Shared kernel contains only generic infrastructure, the clock and the
  acting-user value object

DO NOT add ticket lifecycle or SLA rules to the shared kernel.
"""

__version__ = "1.0.0"
