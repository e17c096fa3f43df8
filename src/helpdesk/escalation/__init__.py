"""
Escalation Module
=================

Bounded Context for SLA breach escalation.

Responsibilities:
- Breach predicate and per-ticket breach status
- One-time escalation with a system audit comment
- Batch scan over breaching tickets, on demand or on a schedule
"""

__version__ = "1.0.0"
