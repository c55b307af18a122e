"""
fir_assembler.py -- FIR Drafting Backend
Builds the renderable FIR from form data and the current section ledger.

assemble() is a pure function of its arguments: it copies what it needs,
never mutates its inputs, and keeps no cache, so the preview always reflects
the ledger as it is right now.

Two layouts:
  letter -- case reference line, letterhead fields, narrative, date/place and
            the complainant's signature block
  plain  -- the narrative only
"""

import re
from datetime import date
from typing import Iterable, Optional

from fir_schemas import Complainant, DocumentFormat, Incident, RenderableDocument, Section

DEFAULT_PLACE = "Mumbai"
TITLE = "First Information Report"

_citation_re = re.compile(r"(?:section|sec\.?|§)\s*([0-9][0-9A-Za-z()]*)", re.IGNORECASE)


def section_citation(ipc: str) -> str:
    """'IPC Section 115(2)' -> '115(2)'. Unrecognised citations pass through."""
    found = _citation_re.search(ipc)
    return found.group(1) if found else ipc.strip()


def reference_line(sections: Iterable[Section], issued_on: date) -> str:
    cites = [section_citation(s.ipc) for s in sections if s.ipc.strip()]
    joined = ", ".join(cites) if cites else "-"
    return f"कार्यवाही अपराध क्रमांक /{issued_on:%y} थाना {joined} आईपीसी, द्वारा"


def _letter_text(doc_fields: dict) -> str:
    lines = [doc_fields["reference_line"], "", doc_fields["title"], ""]
    lines += [f"{label}: {value}" for label, value in doc_fields["header_fields"]]
    lines += ["", "विवरण - फरियादी:", "", doc_fields["body"], ""]
    lines += doc_fields["closing"]
    lines += [""] + doc_fields["signature"]
    return "\n".join(lines)


def assemble(
    complainant: Complainant,
    incident: Incident,
    sections: Iterable[Section],
    fmt: DocumentFormat = DocumentFormat.LETTER,
    *,
    narrative: Optional[str] = None,
    issued_on: Optional[date] = None,
    place: str = DEFAULT_PLACE,
) -> RenderableDocument:
    """
    Compose the FIR.

    ``narrative`` overrides ``incident.description`` as the body (the session
    passes the transcript when no description was typed). ``issued_on``
    defaults to today; pass it explicitly for reproducible output.
    """
    fmt = DocumentFormat(fmt)
    body = incident.description if narrative is None else narrative
    sections = list(sections)

    if fmt is DocumentFormat.PLAIN:
        return RenderableDocument(format=fmt, body=body, sections=sections, text=body)

    issued_on = issued_on or date.today()
    issued = issued_on.strftime("%d/%m/%Y")
    fields = {
        "title": TITLE,
        "reference_line": reference_line(sections, issued_on),
        "header_fields": [
            ("नाम फरियादी", complainant.name),
            ("आरोपी", "-"),
            ("घटना स्थल", incident.location),
            ("घटना दिनांक समय", f"{incident.date} के {incident.time} बजे करीब"),
            ("कार्यवाही दिनांक समय", issued),
            ("कार्यवाहीकर्ता", "प्रकार -"),
        ],
        "body": body,
        "closing": [f"Date: {issued}", f"Place: {place}"],
        "signature": ["Faithfully,", "Complainant's Signature", f"({complainant.name})"],
    }
    return RenderableDocument(format=fmt, sections=sections, text=_letter_text(fields), **fields)
