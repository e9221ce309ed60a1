"""Shared utilities for the town portal client.

Convenience re-exports so consumers can ``from portal.utils import
log_audit_event``; the full module path remains supported.
"""

from portal.utils.audit import AuditEvent, log_audit_event

__all__ = [
    "AuditEvent",
    "log_audit_event",
]
