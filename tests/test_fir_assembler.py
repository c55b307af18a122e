"""
Tests for FIR document assembly.

Run with: pytest tests/test_fir_assembler.py -v
"""

from datetime import date

from fir_assembler import assemble, reference_line, section_citation
from fir_schemas import Complainant, DocumentFormat, Incident, Section
from section_ledger import SectionLedger

ISSUED = date(2025, 4, 2)

COMPLAINANT = Complainant(name="Rajesh Kumar", age=32, phone="9876543210", address="Harda")
INCIDENT = Incident(
    date="2025-03-30",
    time="21:00",
    location="Old Bus Stand, Harda",
    description="रात 9 बजे समूह ने मेरे साथ मारपीट की और गाली दी।",
)
SECTIONS = [
    Section(name="Physical Assault", description="assaulted", ipc="IPC Section 351"),
    Section(name="Verbal Abuse and Threat", description="abuse", ipc="IPC Section 115(2)"),
    Section(name="Group Conspiracy", description="group", ipc="IPC Section 3(5)"),
]


class TestCitations:
    def test_section_citation_strips_prefix(self):
        assert section_citation("IPC Section 115(2)") == "115(2)"
        assert section_citation("IPC Section 304B") == "304B"
        assert section_citation("BNS 115") == "BNS 115"

    def test_reference_line_lists_sections(self):
        line = reference_line(SECTIONS, ISSUED)
        assert line == "कार्यवाही अपराध क्रमांक /25 थाना 351, 115(2), 3(5) आईपीसी, द्वारा"

    def test_reference_line_without_sections(self):
        assert "थाना - आईपीसी" in reference_line([], ISSUED)


class TestLetterFormat:
    def test_letter_contains_fields_and_body(self):
        doc = assemble(COMPLAINANT, INCIDENT, SECTIONS, DocumentFormat.LETTER, issued_on=ISSUED)
        assert doc.title == "First Information Report"
        assert ("नाम फरियादी", "Rajesh Kumar") in doc.header_fields
        assert ("घटना दिनांक समय", "2025-03-30 के 21:00 बजे करीब") in doc.header_fields
        assert INCIDENT.description in doc.text
        assert "Place: Mumbai" in doc.text
        assert doc.signature[-1] == "(Rajesh Kumar)"
        assert doc.sections == SECTIONS

    def test_custom_place(self):
        doc = assemble(COMPLAINANT, INCIDENT, SECTIONS, issued_on=ISSUED, place="Betul")
        assert "Place: Betul" in doc.closing

    def test_narrative_override(self):
        doc = assemble(COMPLAINANT, Incident(), [], issued_on=ISSUED, narrative="transcript text")
        assert doc.body == "transcript text"


class TestPlainFormat:
    def test_plain_is_body_only(self):
        doc = assemble(COMPLAINANT, INCIDENT, SECTIONS, DocumentFormat.PLAIN, issued_on=ISSUED)
        assert doc.text == INCIDENT.description
        assert doc.header_fields == []

    def test_format_accepts_string(self):
        doc = assemble(COMPLAINANT, INCIDENT, SECTIONS, "plain")
        assert doc.format is DocumentFormat.PLAIN


class TestPurity:
    def test_identical_inputs_identical_output(self):
        first = assemble(COMPLAINANT, INCIDENT, SECTIONS, issued_on=ISSUED)
        second = assemble(COMPLAINANT, INCIDENT, SECTIONS, issued_on=ISSUED)
        assert first.text.encode("utf-8") == second.text.encode("utf-8")
        assert first == second

    def test_inputs_not_mutated(self):
        sections = list(SECTIONS)
        complainant = COMPLAINANT.model_copy()
        assemble(complainant, INCIDENT, sections, issued_on=ISSUED)
        assert sections == SECTIONS
        assert complainant == COMPLAINANT

    def test_reflects_ledger_removal(self):
        ledger = SectionLedger(SECTIONS)
        before = assemble(COMPLAINANT, INCIDENT, ledger.to_list(), issued_on=ISSUED)
        ledger.remove("Verbal Abuse and Threat")
        after = assemble(COMPLAINANT, INCIDENT, ledger.to_list(), issued_on=ISSUED)
        assert "115(2)" in before.reference_line
        assert "115(2)" not in after.reference_line
        assert [s.name for s in after.sections] == ["Physical Assault", "Group Conspiracy"]
