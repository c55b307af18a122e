"""
reference_data.py -- FIR Drafting Backend
Loads the static data assets shipped next to the code:

  data/crime_scenarios.json -- canned complaints used to prefill a draft for demos
  data/master_data.json     -- the master-data catalogue of modality categories

Both files are read once per process and validated into pydantic models.
"""

import json
import logging
from functools import lru_cache
from pathlib import Path

from fir_schemas import CrimeScenario, MasterCategory

logger = logging.getLogger("fir.reference_data")

DATA_DIR = Path(__file__).parent / "data"


def _read(filename: str) -> dict:
    path = DATA_DIR / filename
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


@lru_cache()
def load_scenarios() -> dict[str, CrimeScenario]:
    raw = _read("crime_scenarios.json")
    scenarios = {key: CrimeScenario(key=key, **value) for key, value in raw.items()}
    logger.info("Loaded %d crime scenarios", len(scenarios))
    return scenarios


@lru_cache()
def load_master_data() -> list[MasterCategory]:
    raw = _read("master_data.json")
    return [MasterCategory(key=key, **value) for key, value in raw.items()]


def get_scenario(key: str) -> CrimeScenario:
    """Raises KeyError for an unknown scenario key."""
    return load_scenarios()[key]
