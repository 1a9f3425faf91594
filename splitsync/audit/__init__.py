"""Audit logging package."""

from splitsync.audit.logger import AuditLogger, configure_logging

__all__ = ["AuditLogger", "configure_logging"]
