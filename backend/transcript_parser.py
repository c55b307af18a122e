"""
transcript_parser.py -- FIR Drafting Backend
Best-effort prefill of the complaint form from a transcribed statement.

Only two cues are recognised: the word after "मेरा नाम" ("my name is") and the
first ten-digit number. Everything else is left for the officer to fill in.
"""

import re

_NAME_RE = re.compile(r"मेरा नाम (\S+)")
_PHONE_RE = re.compile(r"(?<![0-9])([0-9]{10})(?![0-9])")


def parse_transcript(text: str) -> dict:
    """
    Return {"complainant": {...}, "incident": {...}} with only the fields
    that were found. The whole transcript becomes the incident description.
    """
    complainant: dict[str, str] = {}
    name = _NAME_RE.search(text)
    if name:
        complainant["name"] = name.group(1)
    phone = _PHONE_RE.search(text)
    if phone:
        complainant["phone"] = phone.group(1)
    return {"complainant": complainant, "incident": {"description": text}}
