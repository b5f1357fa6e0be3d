"""Audit logging package."""

from kakeibo.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
