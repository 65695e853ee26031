"""
Main reconciliation pipeline — orchestrates the full workflow.

Flow:
  ┌──────────┐   ┌──────────┐
  │  Google  │   │  Apple   │
  │  export  │   │  export  │
  └────┬─────┘   └────┬─────┘
       │              │
  ┌────▼─────┐   ┌────▼─────┐
  │  Decode  │   │  Decode  │   ← Unfold, parse, repair, note extraction
  └────┬─────┘   └────┬─────┘
       │              │
       └──────┬───────┘           ← Google first, then Apple
              │
       ┌──────▼──────┐
       │   Filter    │   ← Ordered rule cascade, first hit wins
       └──────┬──────┘
              │
       ┌──────▼──────┐
       │ Dedup/Merge │   ← Strong signals only
       └──────┬──────┘
              │
       ┌──────▼──────┐
       │   Encode    │   ← Once per destination format
       └─────────────┘

Design principles:
  - Each stage consumes its whole input before the next one starts.
  - Nothing in a stage raises for bad data; the record is degraded instead.
  - The only fatal condition is having no contacts at all.
"""

from __future__ import annotations

import logging
from collections import Counter

from .decoder import parse_vcf
from .dedup import deduplicate
from .encoder import contacts_to_vcf
from .exceptions import NoContactsFoundError
from .filters import classify
from .models import (
    Contact,
    ContactSource,
    DiscardedContact,
    OutputFormat,
    ProcessingStats,
    ReconciliationResult,
)

logger = logging.getLogger(__name__)


class ContactReconciliationPipeline:
    """Orchestrates decode → filter → dedup → encode.

    Usage:
        pipeline = ContactReconciliationPipeline()
        result = pipeline.run(google_text, apple_text)
        Path("google.vcf").write_text(result.google_vcf)
    """

    def run(
        self, google_vcf: str | None = None, apple_vcf: str | None = None
    ) -> ReconciliationResult:
        """Execute the full pipeline on two raw exports.

        Args:
            google_vcf: Raw Google export text, or None/"" if absent.
            apple_vcf: Raw Apple export text, or None/"" if absent.

        Returns:
            ReconciliationResult with both output documents and statistics.

        Raises:
            NoContactsFoundError: neither export contained a single card.
        """
        stats = ProcessingStats()

        # ── Step 1: Decode both sources ─────────────────────────────
        google = self._decode(google_vcf, ContactSource.GOOGLE)
        apple = self._decode(apple_vcf, ContactSource.APPLE)
        stats.google_total = len(google)
        stats.apple_total = len(apple)

        if not google and not apple:
            raise NoContactsFoundError(
                "No contacts found in either export.",
                details={"google_provided": bool(google_vcf), "apple_provided": bool(apple_vcf)},
            )

        # ── Step 2: Combine, Google first ───────────────────────────
        combined = google + apple
        stats.combined_total = len(combined)
        logger.info("Combined total: %d contacts", stats.combined_total)

        # ── Step 3: Filter ──────────────────────────────────────────
        kept, discarded = self._filter(combined)
        stats.kept = len(kept)
        stats.filtered_out = len(discarded)
        stats.filter_reasons = dict(Counter(d.reason for d in discarded))
        logger.info("Kept %d, filtered out %d", stats.kept, stats.filtered_out)

        # ── Step 4: Deduplicate ─────────────────────────────────────
        unique, merge_count = deduplicate(kept)
        stats.duplicates_merged = merge_count
        stats.final_count = len(unique)
        logger.info("Merged %d duplicates, %d unique contacts", merge_count, len(unique))

        # ── Step 5: Encode per destination ──────────────────────────
        return ReconciliationResult(
            google_vcf=contacts_to_vcf(unique, OutputFormat.GOOGLE),
            apple_vcf=contacts_to_vcf(unique, OutputFormat.APPLE),
            stats=stats,
            contacts=unique,
            discarded=discarded,
        )

    # ─── Stages ──────────────────────────────────────────────────────

    def _decode(self, content: str | None, source: ContactSource) -> list[Contact]:
        if not content:
            logger.info("No %s export provided", source.value)
            return []
        logger.info("Decoding %s contacts...", source.value)
        contacts = parse_vcf(content, source)
        logger.info("Found %d %s contacts", len(contacts), source.value)
        return contacts

    def _filter(
        self, contacts: list[Contact]
    ) -> tuple[list[Contact], list[DiscardedContact]]:
        kept: list[Contact] = []
        discarded: list[DiscardedContact] = []

        for contact in contacts:
            decision = classify(contact)
            if decision.keep:
                kept.append(contact)
                continue
            logger.debug("Discarding %r: %s", contact.full_name, decision.reason)
            discarded.append(
                DiscardedContact(contact=contact, code=decision.code, reason=decision.reason)
            )

        return kept, discarded
