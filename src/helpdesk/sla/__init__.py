"""
SLA Module
==========

Bounded Context for the SLA tier catalog and deadline computation.

Responsibilities:
- Maintain SLA tiers (response and resolution budgets in hours)
- Seed the catalog from YAML on first start
- Compute response/resolution deadlines for new tickets
- Breach predicate shared by tickets, escalation and reporting
"""

__version__ = "1.0.0"
