"""
Tests for the keyword -> section lookup.

Run with: pytest tests/test_keyword_matcher.py -v
"""

from fir_schemas import Section
from keyword_matcher import SECTION_KEYWORDS, KeywordRule, match

S1 = Section(name="S1", ipc="IPC Section 1")
S2 = Section(name="S2", ipc="IPC Section 2")


class TestMatch:
    """First-match substring lookup."""

    def test_first_entry_wins_over_longer_match(self):
        """The table order decides, not the length of the keyword."""
        table = [KeywordRule("abc", S1), KeywordRule("abcd", S2)]
        assert match("xxabcdxx", table) == S1

    def test_later_entry_when_first_absent(self):
        table = [KeywordRule("zzz", S1), KeywordRule("abcd", S2)]
        assert match("xxabcdxx", table) == S2

    def test_no_match_returns_none(self):
        table = [KeywordRule("abc", S1)]
        assert match("nothing here", table) is None

    def test_empty_selection_never_matches(self):
        assert match("") is None

    def test_case_sensitive(self):
        table = [KeywordRule("Assault", S1)]
        assert match("assault", table) is None
        assert match("an Assault", table) == S1

    def test_default_table_hindi_assault(self):
        found = match("उसने मेरे साथ मारपीट की")
        assert found is not None
        assert found.name == "Physical Assault"
        assert found.ipc == "IPC Section 351"

    def test_default_table_order(self):
        """A selection with both 'गाली' and 'समूह' resolves to the earlier rule."""
        found = match("समूह ने गाली दी")
        assert found.name == "Verbal Abuse and Threat"

    def test_default_table_has_three_rules(self):
        assert [r.keyword for r in SECTION_KEYWORDS] == ["मारपीट", "गाली", "समूह"]
