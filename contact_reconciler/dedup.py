"""
Identity resolution and merge.

Two contacts are the same person only on a STRONG signal:
  1. A shared email address
  2. A shared phone number
  3. Identical normalized full names of two or more words
  4. Identical normalized given + family names (both present on both sides)

No fuzzy matching. A false merge silently destroys a contact; a missed
merge only leaves a duplicate the user can clean up by hand.

Grouping is greedy and left-to-right: the first unabsorbed contact becomes
an accumulator that swallows every later match in one forward pass. A
match can be made on data the accumulator picked up from an earlier merge
in the same pass, but records already passed over are not revisited.
"""

from __future__ import annotations

import logging

from .models import Contact
from .normalize import append_unique, normalize_name

logger = logging.getLogger(__name__)


# ─── Equivalence ─────────────────────────────────────────────────────


def are_same_person(a: Contact, b: Contact) -> bool:
    """True if any strong signal links the two contacts."""
    if set(a.emails) & set(b.emails):
        return True

    if set(a.phones) & set(b.phones):
        return True

    a_name = normalize_name(a.full_name)
    b_name = normalize_name(b.full_name)
    if len(a_name.split()) >= 2 and len(b_name.split()) >= 2 and a_name == b_name:
        return True

    if a.name is not None and b.name is not None:
        a_given, a_family = normalize_name(a.name.given), normalize_name(a.name.family)
        b_given, b_family = normalize_name(b.name.given), normalize_name(b.name.family)
        if a_given and a_family and (a_given, a_family) == (b_given, b_family):
            return True

    return False


# ─── Merge ───────────────────────────────────────────────────────────


def merge_contacts(primary: Contact, secondary: Contact) -> Contact:
    """Fold `secondary` into a copy of `primary`.

    Policy: first/longest wins, gaps filled.
      - emails, phones, urls, organizations: union, primary's order first
      - addresses: appended unless (street, locality, postal code) already present
      - structured name: taken whole if primary has none, else empty
        given/family slots are filled
      - full name: the strictly longer one (ties keep primary's)
      - title, note, photo, birthday: only filled when primary's is empty
      - extra properties: only names primary does not have yet
    """
    merged = primary.model_copy(deep=True)
    other = secondary.model_copy(deep=True)

    append_unique(merged.emails, other.emails)
    append_unique(merged.phones, other.phones)
    append_unique(merged.urls, other.urls)
    append_unique(merged.organizations, other.organizations)

    seen = {(a.street, a.locality, a.postal_code) for a in merged.addresses}
    for address in other.addresses:
        key = (address.street, address.locality, address.postal_code)
        if key not in seen:
            merged.addresses.append(address)
            seen.add(key)

    if merged.name is None:
        merged.name = other.name
    elif other.name is not None:
        if not merged.name.given and other.name.given:
            merged.name.given = other.name.given
        if not merged.name.family and other.name.family:
            merged.name.family = other.name.family

    if len(other.full_name) > len(merged.full_name):
        merged.full_name = other.full_name

    if not merged.title and other.title:
        merged.title = other.title
    if not merged.note and other.note:
        merged.note = other.note
    if not merged.photo and other.photo:
        merged.photo = other.photo
        merged.photo_params = other.photo_params
    if not merged.birthday and other.birthday:
        merged.birthday = other.birthday

    for key, lines in other.extra_properties.items():
        if key not in merged.extra_properties:
            merged.extra_properties[key] = lines

    return merged


# ─── Grouping ────────────────────────────────────────────────────────


def deduplicate(contacts: list[Contact]) -> tuple[list[Contact], int]:
    """Collapse duplicate groups. Returns (unique contacts, records absorbed).

    Invariant: len(contacts) == len(unique) + absorbed.
    """
    absorbed = [False] * len(contacts)
    unique: list[Contact] = []
    merge_count = 0

    for i, contact in enumerate(contacts):
        if absorbed[i]:
            continue
        absorbed[i] = True
        current = contact

        for j in range(i + 1, len(contacts)):
            if absorbed[j] or not are_same_person(current, contacts[j]):
                continue
            logger.debug(
                "Merging %s (%r) into %s (%r)",
                contacts[j].uid, contacts[j].full_name, current.uid, current.full_name,
            )
            current = merge_contacts(current, contacts[j])
            absorbed[j] = True
            merge_count += 1

        unique.append(current)

    return unique, merge_count
