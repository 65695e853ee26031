"""
Contact Reconciler — Merge two vCard exports into one clean address book.

Architecture: Decode (+ repair) → Quality filter → Identity resolution/merge → Encode per destination
Philosophy:  Degrade the record, keep going. Merge only on strong signals.
"""

__version__ = "1.0.0"
