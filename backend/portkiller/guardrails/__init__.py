"""Safeguards for process termination.

Provides:
- The static process-name policy table
- Blocked / critical predicates
- Classification into blocked, requires_confirmation or allowed
"""

from portkiller.guardrails.policies import (
    DEFAULT_POLICY,
    PROCESS_POLICIES,
    ProcessPolicy,
    classify,
    get_process_policy,
    is_completely_blocked,
    is_system_critical,
)

__all__ = [
    "DEFAULT_POLICY",
    "PROCESS_POLICIES",
    "ProcessPolicy",
    "classify",
    "get_process_policy",
    "is_completely_blocked",
    "is_system_critical",
]
