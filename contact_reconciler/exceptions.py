"""
Custom exception hierarchy for contact reconciliation.

Almost everything in the pipeline is absorbed locally (a bad line is
skipped, a bad phone is dropped). Only conditions that make the whole run
meaningless are raised, and each carries a machine-readable code.
"""

from __future__ import annotations


class ContactReconcilerError(Exception):
    """Base exception for all reconciliation failures."""

    def __init__(self, code: str, message: str, details: dict | None = None):
        self.code = code
        self.details = details or {}
        super().__init__(message)


class NoContactsFoundError(ContactReconcilerError):
    """Neither source export produced a single contact."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("NO_CONTACTS_FOUND", message, details)


class ContactFileError(ContactReconcilerError):
    """An export file exists but could not be read as UTF-8 text."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("CONTACT_FILE_UNREADABLE", message, details)
