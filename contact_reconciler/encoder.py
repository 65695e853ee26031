"""
vCard 3.0 encoder — Contact records back to export text.

The two destinations differ only in what they tolerate:
  - Apple: PRODID line, embedded PHOTO, vendor extension lines re-emitted
  - Google: none of the above (photos and X-* lines break its importer)

Lines longer than 75 characters are folded; everything is CRLF-terminated.
"""

from __future__ import annotations

from .models import Contact, OutputFormat

VCARD_VERSION = "3.0"
APPLE_PRODID = "-//Apple Inc.//macOS 15.5//EN"
FALLBACK_NAME = "Unknown Contact"
FOLD_WIDTH = 75
CRLF = "\r\n"


def escape_value(value: str) -> str:
    """Inverse of the decoder's unescape for backslash, ';', ',', LF and CR."""
    return (
        value.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )


def fold_line(line: str) -> str:
    """First physical line holds 75 chars, each continuation ' ' + 74 chars."""
    if len(line) <= FOLD_WIDTH:
        return line

    folded = [line[:FOLD_WIDTH]]
    rest = line[FOLD_WIDTH:]
    step = FOLD_WIDTH - 1
    while rest:
        folded.append(" " + rest[:step])
        rest = rest[step:]

    return CRLF.join(folded)


def _structured(parts: list[str]) -> str:
    return ";".join(escape_value(p) for p in parts)


def _name_components(contact: Contact, fn: str) -> list[str]:
    """N components, synthesized from the full name when absent."""
    if contact.name is not None:
        n = contact.name
        return [n.family, n.given, n.additional, n.prefix, n.suffix]

    tokens = fn.split()
    if len(tokens) >= 2:
        return [tokens[-1], tokens[0], " ".join(tokens[1:-1]), "", ""]
    return ["", fn, "", "", ""]


def contact_to_vcard(contact: Contact, fmt: OutputFormat) -> str:
    """Serialize one contact as a CRLF-joined card (no trailing CRLF)."""
    apple = fmt == OutputFormat.APPLE
    fn = contact.full_name or FALLBACK_NAME

    lines = ["BEGIN:VCARD", f"VERSION:{VCARD_VERSION}"]
    if apple:
        lines.append(f"PRODID:{APPLE_PRODID}")

    lines.append(f"UID:{escape_value(contact.uid)}")
    lines.append(f"FN:{escape_value(fn)}")
    lines.append(f"N:{_structured(_name_components(contact, fn))}")

    lines.extend(f"EMAIL;TYPE=INTERNET:{escape_value(e)}" for e in contact.emails)
    lines.extend(f"TEL:{escape_value(p)}" for p in contact.phones)
    lines.extend(f"URL:{escape_value(u)}" for u in contact.urls)

    if contact.organizations:
        lines.append(f"ORG:{_structured(contact.organizations)}")
    if contact.title:
        lines.append(f"TITLE:{escape_value(contact.title)}")
    if contact.note:
        lines.append(f"NOTE:{escape_value(contact.note)}")
    if contact.birthday:
        lines.append(f"BDAY:{contact.birthday}")

    for address in contact.addresses:
        types = f";TYPE={','.join(address.types)}" if address.types else ""
        lines.append(f"ADR{types}:{_structured(address.components())}")

    if apple and contact.photo:
        params = f";{contact.photo_params}" if contact.photo_params else ""
        lines.append(f"PHOTO{params}:{contact.photo}")

    if apple:
        for raw_lines in contact.extra_properties.values():
            lines.extend(raw_lines)

    lines.append("END:VCARD")
    return CRLF.join(fold_line(line) for line in lines)


def contacts_to_vcf(contacts: list[Contact], fmt: OutputFormat) -> str:
    """Serialize a whole collection; empty collection → empty string."""
    if not contacts:
        return ""
    return CRLF.join(contact_to_vcard(c, fmt) for c in contacts) + CRLF
