from __future__ import annotations

from typing import List, Tuple

# Tags which are checked when reading. All other labels are only required
# to be present; values are read in fixed order.
VERSION = "Version"
NUMBER_OF_SHOTS = "Number of Shots"
ATTEMPTS = "Attempts"
IMPACT_LOCATIONS = "Impact Locations"

# Index in this list is what gates the optional sections
SUPPORTED_VERSION_NUMBERS: List[str] = ["1.0", "1.1", "1.2"]
VERSION_1_1 = 1
VERSION_1_2 = 2

KEY_VALUE_SEPARATOR = "\t"
VECTOR_SEPARATOR = "|"
COMPONENT_SEPARATOR = ","

# Speed lines written by the 1.0 format; only aggregated values are stored,
# the raw speeds cannot be restored from them.
LEGACY_SPEED_LINES = 5

Vector = Tuple[float, float, float]


def version_index(version_number: str) -> int:
    """Index into SUPPORTED_VERSION_NUMBERS, or -1 for an unknown version."""
    try:
        return SUPPORTED_VERSION_NUMBERS.index(version_number)
    except ValueError:
        return -1
