"""
vCard decoder — raw export text to Contact records.

Steps per document:
  1. Normalize line endings and unfold continuation lines.
  2. Split the logical line stream into blocks at each BEGIN:VCARD.
  3. Parse every property line (group prefix, parameters, escaped value).
  4. Assign known properties to Contact fields; keep unknown ones verbatim.
  5. Run mangled-name repair and note extraction on the finished record.

Philosophy: a bad line never costs us the card, a bad card never costs us
the file. Anything we cannot parse is skipped, not raised.
"""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass, field

from .models import Contact, ContactSource, PostalAddress, StructuredName
from .normalize import append_unique, normalize_email, normalize_phone
from .repair import extract_note_data, is_mangled_name, repair_mangled_name

logger = logging.getLogger(__name__)

BEGIN_MARKER = "BEGIN:VCARD"
END_MARKER = "END:VCARD"

# Regenerated by the encoder, never carried over from the input.
_ENVELOPE_PROPERTIES: frozenset[str] = frozenset({"VERSION", "PRODID"})

_UNESCAPES: dict[str, str] = {
    "n": "\n",
    "r": "\r",
    ":": ":",
    ";": ";",
    ",": ",",
    '"': '"',
    "\\": "\\",
}
_ESCAPE_RE = re.compile(r"\\([nNrR:;,\"\\])")


# ─── Data Structures ────────────────────────────────────────────────


@dataclass
class PropertyLine:
    """One parsed content line, e.g. 'item1.TEL;TYPE=CELL:+1 555 0100'."""

    name: str  # Uppercased, group prefix removed
    value: str  # Unescaped
    raw_value: str  # As written, still escaped
    param_text: str = ""  # Raw ';'-joined parameter segment
    params: dict[str, str] = field(default_factory=dict)
    line: str = ""  # The full logical line


# ─── Line Level ─────────────────────────────────────────────────────


def unfold_lines(content: str) -> list[str]:
    """Join folded continuation lines and drop blank ones.

    A physical line starting with a space or tab continues the previous
    logical line; exactly one leading whitespace character is removed.
    """
    normalized = content.replace("\r\n", "\n").replace("\r", "\n")
    logical: list[str] = []
    current: str | None = None

    for physical in normalized.split("\n"):
        if physical[:1] in (" ", "\t") and current is not None:
            current += physical[1:]
            continue
        if current is not None and current.strip():
            logical.append(current.strip())
        current = physical

    if current is not None and current.strip():
        logical.append(current.strip())

    return logical


def unescape_value(value: str) -> str:
    """Decode \\n, \\r, \\:, \\;, \\,, \\" and \\\\ in a single pass."""
    return _ESCAPE_RE.sub(lambda m: _UNESCAPES[m.group(1).lower()], value)


def split_components(raw_value: str, separator: str = ";") -> list[str]:
    """Split a structured value on unescaped separators, then unescape each part.

    'Doe;Jane\\;Ann;;;' → ['Doe', 'Jane;Ann', '', '', '']
    """
    parts: list[str] = []
    current: list[str] = []
    escaped = False

    for ch in raw_value:
        if escaped:
            current.append("\\" + ch)
            escaped = False
        elif ch == "\\":
            escaped = True
        elif ch == separator:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)

    if escaped:
        current.append("\\")
    parts.append("".join(current))

    return [unescape_value(p) for p in parts]


def parse_property_line(line: str) -> PropertyLine | None:
    """Parse 'GROUP.NAME;KEY=VALUE;FLAG:value'. Returns None without a colon."""
    colon = line.find(":")
    if colon == -1:
        return None

    name_segment = line[:colon]
    raw_value = line[colon + 1 :]

    # Drop an item-group prefix ("item1.EMAIL") but never a dot inside a parameter
    dot = name_segment.find(".")
    semicolon = name_segment.find(";")
    if dot != -1 and (semicolon == -1 or dot < semicolon):
        name_segment = name_segment[dot + 1 :]

    name, _, param_text = name_segment.partition(";")
    params: dict[str, str] = {}
    for param in param_text.split(";") if param_text else []:
        key, sep, val = param.partition("=")
        if not sep:
            params[key.upper()] = ""
            continue
        if len(val) >= 2 and val.startswith('"') and val.endswith('"'):
            val = val[1:-1]
        params[key.upper()] = val

    return PropertyLine(
        name=name.upper(),
        value=unescape_value(raw_value),
        raw_value=raw_value,
        param_text=param_text,
        params=params,
        line=line,
    )


# ─── Card Level ─────────────────────────────────────────────────────


def parse_vcard(block: str, source: ContactSource) -> Contact | None:
    """Decode a single card block. Returns None if it lacks BEGIN:VCARD."""
    return _build_contact(unfold_lines(block), source)


def parse_vcf(content: str, source: ContactSource) -> list[Contact]:
    """Decode every card in an export, in document order."""
    contacts: list[Contact] = []
    for block in _split_blocks(unfold_lines(content)):
        contact = _build_contact(block, source)
        if contact is not None:
            contacts.append(contact)
    return contacts


def _split_blocks(lines: list[str]) -> list[list[str]]:
    """Cut the logical line stream at every BEGIN:VCARD line."""
    blocks: list[list[str]] = []
    current: list[str] = []

    for line in lines:
        if line.upper().startswith(BEGIN_MARKER) and current:
            blocks.append(current)
            current = []
        current.append(line)

    if current:
        blocks.append(current)

    return blocks


def _build_contact(lines: list[str], source: ContactSource) -> Contact | None:
    if not lines or not lines[0].upper().startswith(BEGIN_MARKER):
        if lines:
            logger.debug("Skipping block without %s: %r", BEGIN_MARKER, lines[0][:40])
        return None

    contact = Contact(uid=f"{source.value}-{uuid.uuid4().hex}", source=source)

    for line in lines[1:]:
        if line.upper() == END_MARKER:
            break

        prop = parse_property_line(line)
        if prop is None:
            logger.debug("Skipping line without ':' separator: %r", line[:40])
            continue

        _assign_property(contact, prop)

    if is_mangled_name(contact.full_name):
        logger.debug("Repairing mangled name on %s", contact.uid)
        contact = repair_mangled_name(contact)

    return extract_note_data(contact)


def _assign_property(contact: Contact, prop: PropertyLine) -> None:
    """Route one property onto its Contact field."""
    name = prop.name
    value = prop.value

    if name == "FN":
        contact.full_name = value
    elif name == "N":
        parts = split_components(prop.raw_value) + [""] * 5
        contact.name = StructuredName(
            family=parts[0],
            given=parts[1],
            additional=parts[2],
            prefix=parts[3],
            suffix=parts[4],
        )
    elif name == "TEL":
        append_unique(contact.phones, [normalize_phone(value)])
    elif name == "EMAIL":
        append_unique(contact.emails, [normalize_email(value)])
    elif name == "URL":
        append_unique(contact.urls, [value])
    elif name == "ORG":
        orgs = [o for o in split_components(prop.raw_value) if o.strip()]
        append_unique(contact.organizations, orgs)
    elif name == "TITLE":
        contact.title = value
    elif name == "NOTE":
        contact.note = value
    elif name == "PHOTO":
        contact.photo = value
        contact.photo_params = prop.param_text
    elif name == "BDAY":
        contact.birthday = value
    elif name == "ADR":
        parts = split_components(prop.raw_value) + [""] * 7
        types = [t for t in prop.params.get("TYPE", "").split(",") if t]
        contact.addresses.append(
            PostalAddress(
                types=types,
                po_box=parts[0],
                extended=parts[1],
                street=parts[2],
                locality=parts[3],
                region=parts[4],
                postal_code=parts[5],
                country=parts[6],
            )
        )
    elif name == "UID":
        if value:
            contact.uid = value
    elif name in _ENVELOPE_PROPERTIES:
        return
    else:
        contact.extra_properties.setdefault(name, []).append(prop.line)
