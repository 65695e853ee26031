"""
Record repair — fix the two kinds of corruption real exports ship with.

1. Mangled names: an exporter serialized a whole CSV row into FN, leaving
   a trail of literal '\\,' markers. We salvage emails and phones from the
   row and derive a readable name from the email.
2. Structured notes: "Email: foo@bar.com\\nPhone: 555-1234" sitting in NOTE.
   We lift labeled values into real fields and keep only the free text.

Both repairs are pure: they return a new Contact and never touch their input.

Philosophy: extract conservatively. A note line we don't understand stays
in the note, word for word.
"""

from __future__ import annotations

import re

from .models import Contact, StructuredName
from .normalize import (
    EMAIL_PATTERN,
    append_unique,
    is_email,
    normalize_email,
    normalize_phone,
)

# ─── Mangled Name Constants ─────────────────────────────────────────

CSV_MARKER = "\\,"
MANGLED_MARKER_THRESHOLD = 5

# ─── Note Patterns ──────────────────────────────────────────────────
# Trigger: does the note look like labeled data at all?

_NOTE_LABEL_RE = re.compile(
    r"(?:e-?mail|courriel|correo"
    r"|phone|tel(?:ephone)?|mobile|cell|fax|work|home"
    r"|web(?:site)?|url|homepage|home page|site"
    r"|company|organization|org|employer"
    r"|title|position|role|job"
    r"|first name|last name|name|given name|family name|surname)\s*[:\-]",
    re.IGNORECASE,
)
_KEY_VALUE_RE = re.compile(r"^[A-Za-z\s]+[:\-]\s*.+$", re.MULTILINE)

# Per-line labels, checked in this order; the first match decides the branch.
_EMAIL_LABEL_RE = re.compile(r"(?:e-?mail|courriel|correo)\s*[:\-]", re.IGNORECASE)
_PHONE_LABEL_RE = re.compile(r"(?:phone|tel(?:ephone)?|mobile|cell|fax)\s*[:\-]", re.IGNORECASE)
_URL_LABEL_RE = re.compile(r"(?:web(?:site)?|url|homepage|home page|site)\s*[:\-]", re.IGNORECASE)
_ORG_LABEL_RE = re.compile(r"(?:company|organization|org|employer)\s*[:\-]", re.IGNORECASE)
_TITLE_LABEL_RE = re.compile(r"(?:title|position|role|job)\s*[:\-]", re.IGNORECASE)
_FIRST_NAME_LABEL_RE = re.compile(r"first\s*name\s*[:\-]", re.IGNORECASE)
_LAST_NAME_LABEL_RE = re.compile(r"(?:last\s*name|surname|family\s*name)\s*[:\-]", re.IGNORECASE)

_LABEL_PREFIX_RE = re.compile(r"^[^:\-]+[:\-]\s*")
_EMAIL_RE = re.compile(EMAIL_PATTERN)
_PHONE_RUN_RE = re.compile(r"\+?[\d\s()\-.]{7,20}")
_URL_RE = re.compile(r"https?://[^\s,]+", re.IGNORECASE)


# ─── Mangled Names ──────────────────────────────────────────────────


def is_mangled_name(full_name: str) -> bool:
    """Five or more literal '\\,' markers means a CSV row landed in FN."""
    return full_name.count(CSV_MARKER) >= MANGLED_MARKER_THRESHOLD


def repair_mangled_name(contact: Contact) -> Contact:
    """Salvage emails and phones from a CSV-in-FN name.

    Example:
        FN 'Smith\\, John\\, john@email.com\\, 555-1234\\, \\, '
        → emails ['john@email.com'], phones ['5551234'], FN 'John'

    If no email is recovered the garbage name is left for the filter.
    """
    repaired = contact.model_copy(deep=True)
    recovered_emails: list[str] = []

    for token in (t.strip() for t in repaired.full_name.split(CSV_MARKER)):
        if not token:
            continue

        if is_email(token):
            email = normalize_email(token)
            recovered_emails.append(email)
            append_unique(repaired.emails, [email])
            continue

        if _looks_like_phone(token):
            append_unique(repaired.phones, [normalize_phone(token)])

    if recovered_emails:
        derived = name_from_email(recovered_emails[0])
        if derived:
            repaired.full_name = derived

    return repaired


def _looks_like_phone(token: str) -> bool:
    digit_count = len(re.sub(r"\D", "", token))
    if not 7 <= digit_count <= 15:
        return False
    foreign = re.sub(r"[\d\s()\-+.]", "", token)
    return len(foreign) <= 2


def name_from_email(email: str) -> str:
    """'jane.doe@x.com' → 'Jane Doe', 'jdoe@x.com' → 'Jdoe', '42@x.com' → ''."""
    local = email.split("@", 1)[0]

    for separator in (".", "_"):
        if separator in local:
            return " ".join(part.capitalize() for part in local.split(separator))

    if len(local) > 2 and not local.isdigit():
        return local[0].upper() + local[1:]

    return ""


# ─── Structured Notes ───────────────────────────────────────────────


def note_looks_structured(note: str) -> bool:
    return bool(_NOTE_LABEL_RE.search(note) or _KEY_VALUE_RE.search(note))


def extract_note_data(contact: Contact) -> Contact:
    """Move labeled data out of NOTE into proper fields.

    Returns the input unchanged when the note is empty, looks like genuine
    free text, or yields nothing. Otherwise returns a copy with the
    extracted values merged in (existing values always win) and the note
    reduced to the lines that were not consumed.
    """
    if not contact.note or not contact.note.strip():
        return contact
    if not note_looks_structured(contact.note):
        return contact

    emails: list[str] = []
    phones: list[str] = []
    urls: list[str] = []
    orgs: list[str] = []
    title = ""
    first_name = ""
    last_name = ""
    remaining: list[str] = []
    found = False

    lines = [ln.strip() for ln in re.split(r"[\r\n]+", contact.note) if ln.strip()]

    for line in lines:
        extracted = False

        if _EMAIL_LABEL_RE.search(line):
            hits = [normalize_email(e) for e in _EMAIL_RE.findall(line)]
            emails.extend(hits)
            extracted = bool(hits)

        elif _PHONE_LABEL_RE.search(line):
            value = _LABEL_PREFIX_RE.sub("", line, count=1)
            hits = [normalize_phone(p) for p in _PHONE_RUN_RE.findall(value)]
            hits = [p for p in hits if p]
            phones.extend(hits)
            extracted = bool(hits)

        elif _URL_LABEL_RE.search(line):
            hits = _URL_RE.findall(line)
            urls.extend(hits)
            extracted = bool(hits)

        elif _ORG_LABEL_RE.search(line):
            value = _LABEL_PREFIX_RE.sub("", line, count=1).strip()
            if len(value) > 1:
                orgs.append(value)
                extracted = True

        elif _TITLE_LABEL_RE.search(line):
            value = _LABEL_PREFIX_RE.sub("", line, count=1).strip()
            if len(value) > 1:
                title = title or value
                extracted = True

        elif _FIRST_NAME_LABEL_RE.search(line):
            value = _LABEL_PREFIX_RE.sub("", line, count=1).strip()
            if value:
                first_name = first_name or value
                extracted = True

        elif _LAST_NAME_LABEL_RE.search(line):
            value = _LABEL_PREFIX_RE.sub("", line, count=1).strip()
            if value:
                last_name = last_name or value
                extracted = True

        else:
            hits = [normalize_email(e) for e in _EMAIL_RE.findall(line)]
            links = _URL_RE.findall(line)
            emails.extend(hits)
            urls.extend(links)
            extracted = bool(hits or links)

        found = found or extracted
        if not extracted:
            remaining.append(line)

    if not found:
        return contact

    updated = contact.model_copy(deep=True)
    append_unique(updated.emails, emails)
    append_unique(updated.phones, phones)
    append_unique(updated.urls, urls)
    append_unique(updated.organizations, orgs)

    if title and not updated.title:
        updated.title = title

    if first_name or last_name:
        if updated.name is None:
            updated.name = StructuredName(family=last_name, given=first_name)
        else:
            if first_name and not updated.name.given:
                updated.name.given = first_name
            if last_name and not updated.name.family:
                updated.name.family = last_name

    updated.note = "\n".join(remaining)
    return updated
