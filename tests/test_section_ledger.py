"""
Tests for the section ledger.

Run with: pytest tests/test_section_ledger.py -v
"""

import random

import pytest

from fir_schemas import Section
from keyword_matcher import KeywordRule
from section_ledger import SectionLedger

A = Section(name="Physical Assault", description="slapped", ipc="IPC Section 351")
A2 = Section(name="Physical Assault", description="predicted", ipc="BNS 115")
B = Section(name="Theft", description="inverter taken", ipc="IPC Section 379")
C = Section(name="Criminal Trespass", description="entered farm", ipc="IPC Section 447")


class TestAddRemove:
    def test_add_is_idempotent(self):
        ledger = SectionLedger()
        assert ledger.add(A) is True
        assert ledger.add(A) is False
        assert ledger.to_list() == [A]

    def test_add_same_name_keeps_existing_entry(self):
        ledger = SectionLedger([A])
        ledger.add(A2)
        assert ledger.get("Physical Assault") == A

    def test_add_preserves_insertion_order(self):
        ledger = SectionLedger()
        for s in (B, A, C):
            ledger.add(s)
        assert ledger.names() == ["Theft", "Physical Assault", "Criminal Trespass"]

    def test_remove(self):
        ledger = SectionLedger([A, B])
        assert ledger.remove("Physical Assault") is True
        assert ledger.names() == ["Theft"]

    def test_remove_absent_is_noop(self):
        ledger = SectionLedger([A])
        assert ledger.remove("Nope") is False
        assert ledger.to_list() == [A]

    def test_contains_by_name(self):
        ledger = SectionLedger([A])
        assert "Physical Assault" in ledger
        assert "Theft" not in ledger


class TestReplaceAll:
    def test_replace_is_destructive(self):
        """[A, B] replaced by [A', C] is exactly [A', C]; B is gone."""
        ledger = SectionLedger([A])
        ledger.add(B)
        ledger.replace_all([A2, C])
        assert ledger.to_list() == [A2, C]

    def test_replace_dedupes_keeping_last_occurrence(self):
        ledger = SectionLedger()
        ledger.replace_all([A, B, A2])
        assert ledger.to_list() == [B, A2]

    def test_replace_with_empty(self):
        ledger = SectionLedger([A, B])
        ledger.replace_all([])
        assert len(ledger) == 0

    def test_caller_union_preserves_manual_section(self):
        ledger = SectionLedger([A, B])
        predicted = [A2, C]
        ledger.replace_all(predicted + [s for s in ledger if s.name not in {p.name for p in predicted}])
        assert ledger.names() == ["Physical Assault", "Criminal Trespass", "Theft"]


class TestUniqueness:
    @pytest.mark.parametrize("seed", range(5))
    def test_names_unique_under_random_operations(self, seed):
        rng = random.Random(seed)
        pool = [A, A2, B, C]
        ledger = SectionLedger()
        for _ in range(200):
            op = rng.choice(["add", "remove", "replace"])
            if op == "add":
                ledger.add(rng.choice(pool))
            elif op == "remove":
                ledger.remove(rng.choice(pool).name)
            else:
                ledger.replace_all(rng.choices(pool, k=rng.randint(0, 6)))
            names = ledger.names()
            assert len(names) == len(set(names))


class TestKeywordSuggestion:
    def test_selection_adds_physical_assault(self):
        ledger = SectionLedger([B])
        added = ledger.suggest_from_keyword_match("फरियादी के साथ मारपीट की गई")
        assert added is not None
        assert ledger.get("Physical Assault").ipc == "IPC Section 351"
        assert ledger.names() == ["Theft", "Physical Assault"]

    def test_existing_name_is_not_overwritten(self):
        ledger = SectionLedger([A2])
        assert ledger.suggest_from_keyword_match("मारपीट") is None
        assert ledger.to_list() == [A2]

    def test_no_match_leaves_ledger(self):
        ledger = SectionLedger([B])
        assert ledger.suggest_from_keyword_match("nothing relevant") is None
        assert ledger.to_list() == [B]

    def test_custom_table(self):
        table = [KeywordRule("abc", B), KeywordRule("abcd", C)]
        ledger = SectionLedger()
        assert ledger.suggest_from_keyword_match("xxabcdxx", table) == B
