"""
Escalation Infrastructure Layer
================================

Background scheduling and service wiring for the escalation monitor.
"""

from helpdesk.escalation.infrastructure.scheduler import (
    EscalationScheduler,
    configured_policy,
    escalation_service_factory,
)

__all__ = [
    "EscalationScheduler",
    "configured_policy",
    "escalation_service_factory",
]
