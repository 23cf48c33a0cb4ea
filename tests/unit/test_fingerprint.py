"""Unit tests for content fingerprints."""

import hashlib

from Assessments.generation.fingerprint import FINGERPRINT_LENGTH, fingerprint, fingerprint_item


class TestFingerprint:

    def test_deterministic(self):
        a = fingerprint("Ledger gaps", "Review the ledger", "Reconcile accounts")
        b = fingerprint("Ledger gaps", "Review the ledger", "Reconcile accounts")
        assert a == b

    def test_fixed_length_hex(self):
        fp = fingerprint("T", "D", "A")
        assert len(fp) == FINGERPRINT_LENGTH
        int(fp, 16)

    def test_matches_sha256_of_normalized_fields(self):
        expected = hashlib.sha256("t\x1fd\x1fa".encode("utf-8")).hexdigest()[:32]
        assert fingerprint("T", "D", "A") == expected

    def test_normalization_ignores_case_and_outer_whitespace(self):
        assert fingerprint(" Title ", "d", "c") == fingerprint("title", "d", "c")
        assert fingerprint("TITLE", "  D\n", "C\t") == fingerprint("title", "d", "c")

    def test_each_field_changes_fingerprint(self):
        base = fingerprint("title", "description", "answer")
        assert fingerprint("title2", "description", "answer") != base
        assert fingerprint("title", "description2", "answer") != base
        assert fingerprint("title", "description", "answer2") != base

    def test_field_boundaries_matter(self):
        assert fingerprint("ab", "c", "d") != fingerprint("a", "bc", "d")

    def test_field_order_matters(self):
        assert fingerprint("x", "y", "z") != fingerprint("y", "x", "z")

    def test_none_fields_treated_as_empty(self):
        assert fingerprint("t", None, None) == fingerprint("t", "", "")

    def test_not_reversible_encoding(self):
        fp = fingerprint("secret answer title", "d", "a")
        assert "secret" not in fp

    def test_fingerprint_item(self, item_factory):
        item = item_factory("T", "D", "A", difficulty="beginner")
        assert fingerprint_item(item) == fingerprint("T", "D", "A")
