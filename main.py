#!/usr/bin/env python3
"""
Contact Reconciler — Entry Point
=================================

Combines a Google and an Apple vCard export, drops junk, merges duplicates
and writes one cleaned export per destination.

Usage:
    python main.py                                  # public/google_contacts.vcf + public/apple_contacts.vcf
    python main.py --dir exports --output-dir out   # Custom locations
    CONTACTS_LOG_LEVEL=DEBUG python main.py         # Log every discard and merge
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

from dotenv import load_dotenv

from contact_reconciler.config import ReconcilerSettings
from contact_reconciler.exceptions import ContactFileError, NoContactsFoundError
from contact_reconciler.models import ReconciliationResult
from contact_reconciler.pipeline import ContactReconciliationPipeline

logger = logging.getLogger("contact_reconciler.cli")


# ─── ANSI Color Constants ───────────────────────────────────────────

_RED = "\033[91m"
_YELLOW = "\033[93m"
_GREEN = "\033[92m"
_CYAN = "\033[96m"
_DIM = "\033[2m"
_BOLD = "\033[1m"
_RESET = "\033[0m"
_WIDTH = 60


# ─── File Helpers ───────────────────────────────────────────────────


def read_export(path: Path) -> str | None:
    """Read one export. A missing file means no contacts from that source."""
    if not path.exists():
        print(f"  {_YELLOW}Not found:{_RESET} {path}")
        return None
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ContactFileError(
            f"Export '{path}' is not valid UTF-8 text.",
            details={"path": str(path), "error": str(exc)},
        ) from exc


def write_outputs(result: ReconciliationResult, output_dir: Path) -> tuple[Path, Path]:
    """Write the two cleaned exports, date-stamped."""
    output_dir.mkdir(parents=True, exist_ok=True)
    stamp = date.today().isoformat()

    google_path = output_dir / f"cleaned-google-contacts-{stamp}.vcf"
    apple_path = output_dir / f"cleaned-apple-contacts-{stamp}.vcf"

    # newline="" keeps the CRLF terminators exactly as encoded
    with google_path.open("w", encoding="utf-8", newline="") as f:
        f.write(result.google_vcf)
    with apple_path.open("w", encoding="utf-8", newline="") as f:
        f.write(result.apple_vcf)

    return google_path, apple_path


# ─── Pretty Printer ─────────────────────────────────────────────────


def print_summary(result: ReconciliationResult, sample_size: int) -> None:
    """Pretty-print run statistics and a sample of removed contacts."""
    stats = result.stats

    print(f"\n{'=' * _WIDTH}")
    print(f"{_BOLD}{_CYAN}  SUMMARY{_RESET}")
    print(f"{'=' * _WIDTH}")
    print(f"  Google contacts read:    {stats.google_total}")
    print(f"  Apple contacts read:     {stats.apple_total}")
    print(f"  Combined total:          {stats.combined_total}")
    print(f"  Filtered out:            {_RED}{stats.filtered_out}{_RESET}")
    print(f"  Duplicates merged:       {_YELLOW}{stats.duplicates_merged}{_RESET}")
    print(f"  Final unique contacts:   {_GREEN}{_BOLD}{stats.final_count}{_RESET}")

    if stats.filter_reasons:
        print(f"\n  {_BOLD}Filter reasons:{_RESET}")
        ranked = sorted(stats.filter_reasons.items(), key=lambda kv: kv[1], reverse=True)
        for reason, count in ranked:
            print(f"    {count:>5} - {reason}")

    if result.discarded and sample_size:
        print(f"\n  {_BOLD}Sample of removed contacts (first {sample_size}):{_RESET}")
        print(f"{'─' * _WIDTH}")
        for item in result.discarded[:sample_size]:
            c = item.contact
            email = f" <{c.emails[0]}>" if c.emails else ""
            phone = f" ({c.phones[0]})" if c.phones else ""
            print(f"    {c.full_name or '(no name)'}{email}{phone}")
            print(f"      {_DIM}Reason: {item.reason}{_RESET}")

    print(f"{'=' * _WIDTH}\n")


# ─── Main ────────────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Clean and merge Google + Apple contact exports.")
    parser.add_argument("--dir", type=Path, help="Directory holding the two exports")
    parser.add_argument("--google", help="Google export file name")
    parser.add_argument("--apple", help="Apple export file name")
    parser.add_argument("--output-dir", type=Path, help="Where cleaned exports are written")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the reconciliation and write both cleaned exports."""
    load_dotenv()
    settings = ReconcilerSettings.from_env()

    args = build_parser().parse_args(argv)
    overrides = {
        "contacts_dir": args.dir,
        "google_file": args.google,
        "apple_file": args.apple,
        "output_dir": args.output_dir,
    }
    settings = settings.model_copy(update={k: v for k, v in overrides.items() if v is not None})

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    print(f"\n{'=' * _WIDTH}")
    print(f"{_BOLD}  Contact Reconciler{_RESET}")
    print(f"{'=' * _WIDTH}")

    try:
        google_text = read_export(settings.google_path)
        apple_text = read_export(settings.apple_path)
        result = ContactReconciliationPipeline().run(google_text, apple_text)
    except NoContactsFoundError:
        print(f"\n  {_RED}No contacts found. Add VCF exports to '{settings.contacts_dir}'.{_RESET}\n")
        return 1
    except ContactFileError as exc:
        logger.error("[%s] %s", exc.code, exc)
        return 1

    google_out, apple_out = write_outputs(result, settings.resolved_output_dir)
    print(f"  Google format: {google_out}")
    print(f"  Apple format:  {apple_out}")

    print_summary(result, settings.sample_size)
    return 0


if __name__ == "__main__":
    sys.exit(main())
