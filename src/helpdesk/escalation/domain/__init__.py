"""
Escalation Domain Layer
=======================

Contains:
- Policies: ClearAssigneePolicy, HandlerPolicy and their factory
- Value Objects: BreachStatus, EscalationOutcome, EscalationScanSummary
"""

from helpdesk.escalation.domain.policies import (
    EscalationPolicy,
    ClearAssigneePolicy,
    HandlerPolicy,
    build_escalation_policy,
)
from helpdesk.escalation.domain.value_objects import (
    BreachStatus,
    EscalationOutcome,
    EscalationResult,
    EscalationScanSummary,
)

__all__ = [
    # Policies
    "EscalationPolicy",
    "ClearAssigneePolicy",
    "HandlerPolicy",
    "build_escalation_policy",
    # Value Objects
    "BreachStatus",
    "EscalationOutcome",
    "EscalationResult",
    "EscalationScanSummary",
]
