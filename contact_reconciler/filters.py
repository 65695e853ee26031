"""
Quality filter — the "is this a real person?" layer.

Rules run as an ordered cascade: the first rule that fires decides the
contact's fate and supplies the reason. Order matters for diagnostics only;
every rule is a pure discard predicate, so no later rule can rescue a
contact an earlier one rejected.

Each rule:
  - Reads a precomputed ContactFacts snapshot (never the raw Contact)
  - Has a machine-readable code and a human-readable reason
  - Is independently testable via FILTER_RULES

classify() is a pure function: same contact in, same decision out.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from .models import Contact, FilterDecision

# ─── Constants ───────────────────────────────────────────────────────

MAX_NAME_LENGTH = 50
SHORT_NAME_LENGTH = 3
SHORT_SINGLE_NAME_LENGTH = 6
REASON_NAME_WIDTH = 40

GARBAGE_PREFIXES: tuple[str, ...] = (
    "Work:", "Home:", "Email:", "E-mail", "Organization:",
    "Note:", "Home Page:", "First Name:", "Research",
    "SOURCE:", 'US-"', "android-", "Normal", "My Contacts",
)

GENERIC_NAMES: frozenset[str] = frozenset({
    "help", "hello", "admin", "support", "info", "contact", "service",
    "team", "sales", "marketing", "noreply", "no-reply", "donotreply",
    "test", "demo", "example", "sample", "default", "user", "guest",
    "anonymous", "unknown", "temp", "temporary",
})

CORPORATE_DOMAINS: frozenset[str] = frozenset({
    "google.com", "twitter.com", "x.com", "googlegroups.com",
    "facebook.com", "meta.com", "microsoft.com", "amazon.com",
    "apple.com", "netflix.com", "uber.com", "airbnb.com",
    "linkedin.com", "salesforce.com", "oracle.com",
})

SERVICE_EMAIL_PATTERNS: tuple[str, ...] = (
    "noreply", "no-reply", "donotreply", "notification", "alert",
    "info@", "support@", "admin@", "webmaster@", "newsletter",
    "updates@", "news@", "mailer@", "daemon@", "postmaster@",
)

_GARBAGE_CHARS_RE = re.compile(r"[\\{}\[\]<>]")
_PHONE_PUNCTUATION_RE = re.compile(r"[\s\-.()+]")
_ALNUM_RE = re.compile(r"[a-zA-Z0-9]+")
_USERNAME_RE = re.compile(r"[a-zA-Z]+\d{1,4}")
_PAREN_NUMBER_RE = re.compile(r"\(\d+\)")
_TLD_SUFFIX_RE = re.compile(r"\.(com|org|net|io|co|uk|de|nl)$", re.IGNORECASE)


# ─── Facts Snapshot ─────────────────────────────────────────────────


@dataclass(frozen=True)
class ContactFacts:
    """Everything the rules need to know, computed once per contact."""

    fn: str
    given: str
    family: str
    emails: tuple[str, ...]
    urls: tuple[str, ...]
    has_phone: bool
    has_email: bool
    has_url: bool
    has_org: bool
    has_title: bool
    has_note: bool
    has_address: bool
    has_photo: bool
    has_birthday: bool
    has_telegram_label: bool

    @classmethod
    def of(cls, contact: Contact) -> ContactFacts:
        name = contact.name
        return cls(
            fn=contact.full_name.strip(),
            given=name.given.strip() if name else "",
            family=name.family.strip() if name else "",
            emails=tuple(contact.emails),
            urls=tuple(contact.urls),
            has_phone=bool(contact.phones),
            has_email=bool(contact.emails),
            has_url=bool(contact.urls),
            has_org=any(o.strip() for o in contact.organizations),
            has_title=bool(contact.title.strip()),
            has_note=bool(contact.note.strip()),
            has_address=any(a.is_populated() for a in contact.addresses),
            has_photo=bool(contact.photo),
            has_birthday=bool(contact.birthday),
            has_telegram_label=any(
                "LABEL" in key and any("telegram" in line.lower() for line in lines)
                for key, lines in contact.extra_properties.items()
            ),
        )

    @property
    def has_full_name(self) -> bool:
        """Verified first + last pair from the structured name."""
        return bool(self.given and self.family)

    @property
    def has_single_name_only(self) -> bool:
        return bool(self.given or self.family) and not self.has_full_name

    @property
    def is_single_word(self) -> bool:
        return len(self.fn.split()) == 1

    @property
    def has_only_email(self) -> bool:
        return (
            self.has_email
            and not self.has_phone
            and not self.has_org
            and not self.has_title
            and not self.has_address
            and not self.has_birthday
        )

    @property
    def short(self) -> str:
        return self.fn[:REASON_NAME_WIDTH]


# ─── Rule Type ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class FilterRule:
    """One discard rule: fires when `applies` is true, explains via `reason`."""

    code: str
    applies: Callable[[ContactFacts], bool]
    reason: Callable[[ContactFacts], str]


# ─── Predicates (only the ones too long for a lambda) ───────────────


def _is_gibberish(f: ContactFacts) -> bool:
    """Random alphanumeric token like 'D7k5wt3q46'; 'john123' is a username."""
    if not _ALNUM_RE.fullmatch(f.fn) or " " in f.fn:
        return False
    if not (re.search(r"\d", f.fn) and re.search(r"[a-zA-Z]", f.fn)):
        return False
    return not _USERNAME_RE.fullmatch(f.fn)


def _is_initials_only(f: ContactFacts) -> bool:
    words = f.fn.split()
    return len(words) >= 2 and all(len(w) <= 2 for w in words)


def _garbage_prefix(f: ContactFacts) -> str | None:
    return next((p for p in GARBAGE_PREFIXES if f.fn.startswith(p)), None)


def _is_generic(f: ContactFacts) -> bool:
    return (
        f.fn.lower() in GENERIC_NAMES
        or f.given.lower() in GENERIC_NAMES
        or f.family.lower() in GENERIC_NAMES
    )


def _is_duplicated_token(f: ContactFacts) -> bool:
    if not f.has_full_name:
        return False
    first, last = f.given.lower(), f.family.lower()
    return first == last and " " not in first


def _has_nothing_but_name(f: ContactFacts) -> bool:
    return not any((
        f.has_phone, f.has_email, f.has_url, f.has_address, f.has_org,
        f.has_title, f.has_note, f.has_photo, f.has_birthday,
    ))


def _email_domain(email: str) -> str:
    return email.rsplit("@", 1)[-1].lower()


def _all_corporate(f: ContactFacts) -> bool:
    return f.has_email and all(_email_domain(e) in CORPORATE_DOMAINS for e in f.emails)


def _is_service_email(email: str) -> bool:
    local = email.split("@", 1)[0].lower()
    full = email.lower()
    return any(p in local or p in full for p in SERVICE_EMAIL_PATTERNS)


# ─── The Cascade ─────────────────────────────────────────────────────

FILTER_RULES: tuple[FilterRule, ...] = (
    FilterRule(
        "NO_NAME",
        lambda f: not f.fn,
        lambda f: "No name (FN empty)",
    ),
    FilterRule(
        "EMAIL_AS_NAME",
        lambda f: "@" in f.fn and "." in f.fn,
        lambda f: f"Email as name: '{f.short}'",
    ),
    FilterRule(
        "GARBAGE_CHARACTERS",
        lambda f: bool(_GARBAGE_CHARS_RE.search(f.fn)),
        lambda f: f"Mangled/garbage name: '{f.short}'",
    ),
    FilterRule(
        "QUOTES_IN_NAME",
        lambda f: '"' in f.fn,
        lambda f: f"Quotes in name (address data): '{f.short}'",
    ),
    FilterRule(
        "NAME_TOO_LONG",
        lambda f: len(f.fn) > MAX_NAME_LENGTH,
        lambda f: f"Name too long ({len(f.fn)} chars)",
    ),
    FilterRule(
        "PHONE_AS_NAME",
        lambda f: bool(re.fullmatch(r"\d{7,}", _PHONE_PUNCTUATION_RE.sub("", f.fn))),
        lambda f: f"Phone number as name: '{f.fn}'",
    ),
    FilterRule(
        "GIBBERISH_NAME",
        _is_gibberish,
        lambda f: f"Gibberish name: '{f.fn}'",
    ),
    FilterRule(
        "NAME_TOO_SHORT",
        lambda f: 1 <= len(f.fn) <= SHORT_NAME_LENGTH and not f.has_phone,
        lambda f: f"Very short name ({len(f.fn)} chars): '{f.fn}'",
    ),
    FilterRule(
        "LOWERCASE_HANDLE",
        lambda f: bool(re.match(r"[a-z]", f.fn)) and " " not in f.fn and not f.has_phone,
        lambda f: f"Lowercase single word: '{f.fn}'",
    ),
    FilterRule(
        "INITIALS_ONLY",
        _is_initials_only,
        lambda f: f"Initials only: '{f.fn}'",
    ),
    FilterRule(
        "PARENTHETICAL_NUMBER",
        lambda f: bool(_PAREN_NUMBER_RE.search(f.fn)),
        lambda f: f"Parenthetical number in name: '{f.fn}'",
    ),
    FilterRule(
        "DOMAIN_AS_NAME",
        lambda f: bool(_TLD_SUFFIX_RE.search(f.fn)),
        lambda f: f"Name ends with TLD: '{f.fn}'",
    ),
    FilterRule(
        "METADATA_PREFIX",
        lambda f: _garbage_prefix(f) is not None,
        lambda f: f"Metadata garbage: starts with '{_garbage_prefix(f)}'",
    ),
    FilterRule(
        "GENERIC_NAME",
        _is_generic,
        lambda f: f"Generic name: '{f.fn}'",
    ),
    FilterRule(
        "SHORT_NAME_EMAIL_ONLY",
        lambda f: (
            f.is_single_word
            and len(f.fn) <= SHORT_SINGLE_NAME_LENGTH
            and f.has_only_email
            and not f.has_full_name
        ),
        lambda f: f"Short single name '{f.fn}' with only email",
    ),
    FilterRule(
        "SINGLE_NAME_EMAIL_ONLY",
        lambda f: f.is_single_word and not f.has_full_name and f.has_only_email and not f.has_url,
        lambda f: f"Single word name '{f.fn}' with only email",
    ),
    FilterRule(
        "DUPLICATED_NAME",
        _is_duplicated_token,
        lambda f: f"Duplicate name: '{f.given.lower()}' = '{f.family.lower()}'",
    ),
    FilterRule(
        "NAME_ONLY",
        _has_nothing_but_name,
        lambda f: "Only has name, no contact info",
    ),
    FilterRule(
        "URL_ONLY",
        lambda f: f.has_url and not f.has_phone and not f.has_email and not f.has_org and not f.has_title,
        lambda f: "URL-only, no phone/email",
    ),
    FilterRule(
        "LINKEDIN_ONLY",
        lambda f: (
            f.has_url
            and all("linkedin" in u for u in f.urls)
            and not (f.has_phone or f.has_email or f.has_org or f.has_title)
        ),
        lambda f: "LinkedIn URL only, no contact info",
    ),
    FilterRule(
        "CORPORATE_EMAIL_ONLY",
        lambda f: _all_corporate(f) and not f.has_phone,
        lambda f: f"Corporate email ({f.emails[0]}) without phone",
    ),
    FilterRule(
        "SERVICE_EMAIL_ONLY",
        lambda f: (
            f.has_email
            and all(_is_service_email(e) for e in f.emails)
            and not f.has_phone
            and f.has_single_name_only
        ),
        lambda f: "Service email only with single name",
    ),
    FilterRule(
        "NO_NAME_NO_ORG",
        lambda f: not f.fn and not f.has_org,
        lambda f: "No name and no organization",
    ),
)


# ─── Public API ──────────────────────────────────────────────────────


def classify(contact: Contact) -> FilterDecision:
    """Decide keep/discard for one contact.

    A contact carrying a Telegram label is always kept; otherwise the first
    rule in FILTER_RULES that applies supplies the discard reason.
    """
    facts = ContactFacts.of(contact)

    if facts.has_telegram_label:
        return FilterDecision(keep=True)

    for rule in FILTER_RULES:
        if rule.applies(facts):
            return FilterDecision(keep=False, code=rule.code, reason=rule.reason(facts))

    return FilterDecision(keep=True)
