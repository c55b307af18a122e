"""
keyword_matcher.py -- FIR Drafting Backend
Maps a span of report text selected by the officer onto a candidate section.

This is a plain substring lookup over an ordered table, not NLP. The table is
scanned in declaration order and the first keyword contained in the selection
wins, even when a later keyword would match more of it. Matching is exact:
no case folding, no Unicode normalization.
"""

from typing import NamedTuple, Optional, Sequence

from fir_schemas import Section


class KeywordRule(NamedTuple):
    keyword: str
    section: Section


SECTION_KEYWORDS: tuple[KeywordRule, ...] = (
    KeywordRule(
        "मारपीट",
        Section(name="Physical Assault", ipc="IPC Section 351",
                description="The complainant was assaulted."),
    ),
    KeywordRule(
        "गाली",
        Section(name="Verbal Abuse and Threat", ipc="IPC Section 115(2)",
                description="Abusive and threatening language was used."),
    ),
    KeywordRule(
        "समूह",
        Section(name="Group Conspiracy", ipc="IPC Section 3(5)",
                description="Attackers acted as a group."),
    ),
)


def match(selected_text: str, table: Sequence[KeywordRule] = SECTION_KEYWORDS) -> Optional[Section]:
    """Return the section of the first rule whose keyword occurs in the text."""
    if not selected_text:
        return None
    for rule in table:
        if rule.keyword and rule.keyword in selected_text:
            return rule.section
    return None
