"""Fingerprint-based deduplication of normalized station records"""

import logging
from typing import List

from app.schemas.station import StationRecord

logger = logging.getLogger(__name__)

FINGERPRINT_DECIMALS = 4  # ~11 m


def _rounded(value: float) -> str:
    # + 0.0 folds -0.0 into 0.0 so both hemispheres' zero round the same way
    return f"{round(value, FINGERPRINT_DECIMALS) + 0.0:.{FINGERPRINT_DECIMALS}f}"


def fingerprint(record: StationRecord) -> str:
    """
    Rounded coordinate pair, plus the normalized name when there is one.

    Two bays at one address with different operator names keep distinct
    fingerprints; records further apart than the rounding never share one.
    """
    key = f"{_rounded(record.coordinates.lat)}_{_rounded(record.coordinates.lng)}"
    name = (record.name or "").strip().lower()
    if name:
        key = f"{key}_{name}"
    return key


def dedupe(records: List[StationRecord]) -> List[StationRecord]:
    """Keep the first record observed per fingerprint. Exact match, no clustering."""
    seen = set()
    unique: List[StationRecord] = []
    for record in records:
        key = fingerprint(record)
        if key in seen:
            logger.debug(f"Deduplicated {record.id} ({record.name}) at {key}")
            continue
        seen.add(key)
        unique.append(record)
    logger.info(f"Deduplication: {len(records)} -> {len(unique)} stations")
    return unique
