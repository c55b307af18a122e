"""
section_ledger.py -- FIR Drafting Backend
The ordered, name-unique list of legal sections attached to a draft FIR.

Sections arrive three ways: the prediction service (bulk replace), the officer
typing one in (add), and keyword suggestions from selected report text.
A section's identity is its name; description and citation may differ
between two sections of the same name and they are still the same entry.
"""

import logging
from typing import Iterable, Iterator, Optional, Sequence

import keyword_matcher
from fir_schemas import Section

logger = logging.getLogger("fir.section_ledger")


class SectionLedger:
    def __init__(self, sections: Iterable[Section] = ()):
        self._sections: list[Section] = []
        for section in sections:
            self.add(section)

    # -- read access ---------------------------------------------------------

    def __iter__(self) -> Iterator[Section]:
        return iter(list(self._sections))

    def __len__(self) -> int:
        return len(self._sections)

    def __contains__(self, name: object) -> bool:
        return any(s.name == name for s in self._sections)

    def __repr__(self) -> str:
        return f"SectionLedger({self.names()!r})"

    def get(self, name: str) -> Optional[Section]:
        for section in self._sections:
            if section.name == name:
                return section
        return None

    def names(self) -> list[str]:
        return [s.name for s in self._sections]

    def to_list(self) -> list[Section]:
        return list(self._sections)

    # -- mutation ------------------------------------------------------------

    def add(self, section: Section) -> bool:
        """Append a section. An existing entry with the same name is left as is."""
        if section.name in self:
            logger.debug("Section %r already present; add ignored", section.name)
            return False
        self._sections.append(section)
        return True

    def remove(self, name: str) -> bool:
        for i, section in enumerate(self._sections):
            if section.name == name:
                del self._sections[i]
                return True
        return False

    def replace_all(self, new_sections: Sequence[Section]) -> None:
        """
        Make the ledger exactly ``new_sections``.

        Duplicated names keep their last occurrence, at that occurrence's
        position. Anything not in ``new_sections`` is dropped, including
        sections the officer added by hand; callers that want to keep those
        must merge them in first.
        """
        last_index = {s.name: i for i, s in enumerate(new_sections)}
        self._sections = [s for i, s in enumerate(new_sections) if last_index[s.name] == i]
        logger.info("Ledger replaced: %d sections", len(self._sections))

    def suggest_from_keyword_match(
        self,
        selected_text: str,
        table: Sequence[keyword_matcher.KeywordRule] = keyword_matcher.SECTION_KEYWORDS,
    ) -> Optional[Section]:
        """Append the keyword-matched section for ``selected_text``; returns it if added."""
        found = keyword_matcher.match(selected_text, table)
        if found is None or not self.add(found):
            return None
        logger.info("Suggested %r from selected text", found.name)
        return found
