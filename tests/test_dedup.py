"""
Tests for identity resolution and merging.
"""

from __future__ import annotations

from itertools import combinations
from typing import Any

from contact_reconciler.dedup import are_same_person, deduplicate, merge_contacts
from contact_reconciler.models import Contact, ContactSource, PostalAddress, StructuredName

_counter = 0


def _make_contact(**overrides: Any) -> Contact:
    global _counter  # noqa: PLW0603
    _counter += 1
    kwargs: dict[str, Any] = {"uid": f"test-{_counter}", "source": ContactSource.GOOGLE}
    kwargs.update(overrides)
    return Contact(**kwargs)


# ═══════════════════════════════════════════════════════════════════════
# EQUIVALENCE
# ═══════════════════════════════════════════════════════════════════════


class TestAreSamePerson:
    def test_shared_email(self):
        a = _make_contact(full_name="Jane", emails=["x@y.io", "jane@doe.org"])
        b = _make_contact(full_name="Someone Else", emails=["jane@doe.org"])
        assert are_same_person(a, b)

    def test_shared_phone(self):
        a = _make_contact(phones=["5551234567"])
        b = _make_contact(phones=["+15550000000", "5551234567"])
        assert are_same_person(a, b)

    def test_same_two_word_name(self):
        a = _make_contact(full_name="Jane  Doe", emails=["a@x.com"])
        b = _make_contact(full_name="jane doe!", phones=["5551234567"])
        assert are_same_person(a, b)

    def test_same_single_word_name_not_enough(self):
        a = _make_contact(full_name="Jane", emails=["a@x.com"])
        b = _make_contact(full_name="Jane", emails=["b@x.com"])
        assert not are_same_person(a, b)

    def test_structured_names_match(self):
        a = _make_contact(full_name="JD", name=StructuredName(given="Jane", family="Doe"))
        b = _make_contact(full_name="Dr J", name=StructuredName(given="jane", family="DOE"))
        assert are_same_person(a, b)

    def test_structured_name_needs_both_parts(self):
        a = _make_contact(full_name="Jane", name=StructuredName(given="Jane"))
        b = _make_contact(full_name="Jane", name=StructuredName(given="Jane"))
        assert not are_same_person(a, b)

    def test_different_people(self):
        a = _make_contact(full_name="Jane Doe", emails=["jane@doe.org"])
        b = _make_contact(full_name="John Doe", emails=["john@doe.org"])
        assert not are_same_person(a, b)


# ═══════════════════════════════════════════════════════════════════════
# MERGE POLICY
# ═══════════════════════════════════════════════════════════════════════


class TestMergeContacts:
    def test_sets_are_unioned_in_order(self):
        a = _make_contact(emails=["a@x.com"], phones=["1111111"], urls=["u1"], organizations=["Acme"])
        b = _make_contact(
            emails=["b@x.com", "a@x.com"], phones=["2222222"], urls=["u1", "u2"], organizations=["Globex"]
        )
        m = merge_contacts(a, b)
        assert m.emails == ["a@x.com", "b@x.com"]
        assert m.phones == ["1111111", "2222222"]
        assert m.urls == ["u1", "u2"]
        assert m.organizations == ["Acme", "Globex"]

    def test_addresses_deduplicated_on_street_city_zip(self):
        home = PostalAddress(types=["HOME"], street="1 Main", locality="Town", postal_code="1000")
        same_home = PostalAddress(types=["WORK"], street="1 Main", locality="Town", postal_code="1000")
        office = PostalAddress(street="9 Side", locality="Town", postal_code="1000")
        m = merge_contacts(_make_contact(addresses=[home]), _make_contact(addresses=[same_home, office]))
        assert [a.street for a in m.addresses] == ["1 Main", "9 Side"]
        assert m.addresses[0].types == ["HOME"]

    def test_longer_full_name_wins(self):
        m = merge_contacts(_make_contact(full_name="Jane Doe"), _make_contact(full_name="Jane Q. Doe"))
        assert m.full_name == "Jane Q. Doe"

    def test_tie_keeps_primary_name(self):
        m = merge_contacts(_make_contact(full_name="Jane Doe"), _make_contact(full_name="JANE DOE"))
        assert m.full_name == "Jane Doe"

    def test_structured_name_taken_when_missing(self):
        b = _make_contact(name=StructuredName(given="Jane", family="Doe"))
        assert merge_contacts(_make_contact(), b).name == StructuredName(given="Jane", family="Doe")

    def test_structured_name_gaps_filled(self):
        a = _make_contact(name=StructuredName(given="Jane", additional="Q"))
        b = _make_contact(name=StructuredName(given="Janet", family="Doe"))
        m = merge_contacts(a, b)
        assert m.name == StructuredName(given="Jane", family="Doe", additional="Q")

    def test_scalars_fill_only_gaps(self):
        a = _make_contact(title="CTO", birthday="")
        b = _make_contact(title="CEO", birthday="1990-01-01", note="hi", photo="P", photo_params="ENCODING=b")
        m = merge_contacts(a, b)
        assert m.title == "CTO"
        assert m.birthday == "1990-01-01"
        assert m.note == "hi"
        assert (m.photo, m.photo_params) == ("P", "ENCODING=b")

    def test_extra_properties_only_new_names(self):
        a = _make_contact(extra_properties={"X-A": ["X-A:1"]})
        b = _make_contact(extra_properties={"X-A": ["X-A:2"], "X-B": ["X-B:3"]})
        m = merge_contacts(a, b)
        assert m.extra_properties == {"X-A": ["X-A:1"], "X-B": ["X-B:3"]}

    def test_inputs_not_mutated(self):
        a = _make_contact(emails=["a@x.com"])
        b = _make_contact(emails=["b@x.com"])
        merge_contacts(a, b)
        assert a.emails == ["a@x.com"]
        assert b.emails == ["b@x.com"]

    def test_merged_sets_are_supersets(self):
        a = _make_contact(emails=["a@x.com"], phones=["1111111"], organizations=["Acme"])
        b = _make_contact(emails=["b@x.com"], urls=["u"], organizations=["Acme", "Globex"])
        m = merge_contacts(a, b)
        for field in ("emails", "phones", "urls", "organizations"):
            assert set(getattr(a, field)) <= set(getattr(m, field))
            assert set(getattr(b, field)) <= set(getattr(m, field))


# ═══════════════════════════════════════════════════════════════════════
# GROUPING
# ═══════════════════════════════════════════════════════════════════════


class TestDeduplicate:
    def test_name_match_merges_email_and_phone(self):
        a = _make_contact(full_name="Jane Doe", emails=["a@x.com"])
        b = _make_contact(full_name="Jane Doe", phones=["5551234567"])
        unique, merged = deduplicate([a, b])
        assert merged == 1
        assert len(unique) == 1
        assert unique[0].emails == ["a@x.com"]
        assert unique[0].phones == ["5551234567"]

    def test_transitive_match_through_accumulator(self):
        a = _make_contact(full_name="Jane Doe", emails=["jane@a.com"])
        b = _make_contact(full_name="J", emails=["jane@a.com"], phones=["5550001111"])
        c = _make_contact(full_name="Janey", phones=["5550001111"])
        unique, merged = deduplicate([a, b, c])
        assert merged == 2
        assert len(unique) == 1

    def test_single_forward_pass(self):
        a = _make_contact(uid="a", full_name="Ann Lee", emails=["ann@lee.io"])
        b = _make_contact(uid="b", full_name="Annie", phones=["5557654321"])
        c = _make_contact(uid="c", full_name="A. Lee", emails=["ann@lee.io"], phones=["5557654321"])
        unique, merged = deduplicate([a, b, c])
        # b is passed over before c contributes the phone, and is not revisited
        assert [u.uid for u in unique] == ["a", "b"]
        assert merged == 1
        assert unique[0].phones == ["5557654321"]
        assert unique[1].phones == ["5557654321"]

    def test_order_preserved_and_totals_hold(self):
        contacts = [
            _make_contact(full_name="Jane Doe", emails=["jane@doe.org"]),
            _make_contact(full_name="John Roe", emails=["john@roe.org"]),
            _make_contact(full_name="Jane Doe", phones=["5551112222"]),
            _make_contact(full_name="Max Mustermann", phones=["5553334444"]),
            _make_contact(full_name="John Roe", emails=["john@roe.org"]),
        ]
        unique, merged = deduplicate(contacts)
        assert [c.full_name for c in unique] == ["Jane Doe", "John Roe", "Max Mustermann"]
        assert len(contacts) == len(unique) + merged

    def test_no_residual_duplicates_when_matches_run_forward(self):
        contacts = [
            _make_contact(full_name="Ann Lee", emails=["ann@lee.io"]),
            _make_contact(full_name="Bob Stone", phones=["5550000001"]),
            _make_contact(full_name="Ann Lee", phones=["5550000002"]),
            _make_contact(full_name="Annie", phones=["5550000002"]),
            _make_contact(full_name="Robert Stone", phones=["5550000001"], emails=["bob@stone.io"]),
        ]
        unique, merged = deduplicate(contacts)
        assert (len(unique), merged) == (2, 3)
        for a, b in combinations(unique, 2):
            assert not are_same_person(a, b)

    def test_empty_input(self):
        assert deduplicate([]) == ([], 0)
