"""
activity_table.py
=================
Star-allele activity values used to score diplotypes.

Activity model:
  Each allele carries a function value. The diplotype activity score is the
  sum of both alleles and is then mapped to a metabolizer phenotype.

Two policies are applied on lookup and are deliberate:
  - an allele that is not catalogued scores as normal function (1.0), which
    is an optimistic assumption rather than failing closed;
  - any duplication designation (*1xN, *2x2, *4x2 ...) scores 2.0 whatever
    its base allele, so a duplicated no-function allele is scored the same
    as a duplicated normal one.
"""
from __future__ import annotations

import re
from types import MappingProxyType
from typing import Mapping, Optional

from .models import REFERENCE_ALLELE

# ---------------------------------------------------------------------------
# Activity values per star allele
# ---------------------------------------------------------------------------
# Values: 0 = no function, 0.5 = reduced function, 1 = normal function,
#         2 = gene duplication (ultra-rapid)

NO_FUNCTION = 0.0
REDUCED_FUNCTION = 0.5
NORMAL_FUNCTION = 1.0
DUPLICATION_FUNCTION = 2.0

DEFAULT_TABLE_VERSION = "1.0"

DEFAULT_ALLELE_ACTIVITY: Mapping[str, float] = MappingProxyType({
    "*1":   NORMAL_FUNCTION,    # Reference
    "*2":   REDUCED_FUNCTION,
    "*3":   NO_FUNCTION,
    "*4":   NO_FUNCTION,        # Most common null allele in CYP2D6
    "*5":   NO_FUNCTION,        # Gene deletion (CYP2D6), SLCO1B1 *5
    "*6":   NO_FUNCTION,
    "*7":   NO_FUNCTION,
    "*8":   NO_FUNCTION,
    "*10":  REDUCED_FUNCTION,
    "*17":  REDUCED_FUNCTION,
    "*41":  REDUCED_FUNCTION,   # Splicing defect
    "*2A":  NO_FUNCTION,        # DPYD *2A
    "*3C":  REDUCED_FUNCTION,   # TPMT *3C
})

# "x" followed by N or a copy number of 2-6, e.g. *1xN, *2x2, *1X3
DUPLICATION_PATTERN = re.compile(r"x[n2-6]", re.IGNORECASE)


def is_duplication(allele: str) -> bool:
    return bool(DUPLICATION_PATTERN.search(allele))


class AlleleActivityTable:
    """Closed, versioned lookup from star allele to function value."""

    def __init__(
        self,
        activities: Optional[Mapping[str, float]] = None,
        version: str = DEFAULT_TABLE_VERSION,
        default_activity: float = NORMAL_FUNCTION,
        duplication_activity: float = DUPLICATION_FUNCTION,
    ):
        source = DEFAULT_ALLELE_ACTIVITY if activities is None else activities
        self._activities: Mapping[str, float] = MappingProxyType(dict(source))
        self.version = version
        self.default_activity = default_activity
        self.duplication_activity = duplication_activity

    def __contains__(self, allele: str) -> bool:
        return allele in self._activities

    def __len__(self) -> int:
        return len(self._activities)

    @property
    def activities(self) -> Mapping[str, float]:
        return self._activities

    def activity(self, allele: Optional[str]) -> float:
        """Function value for one allele designation."""
        if not allele:
            return self.activity(REFERENCE_ALLELE)
        if is_duplication(allele):
            return self.duplication_activity
        return self._activities.get(allele, self.default_activity)


_default_table: Optional[AlleleActivityTable] = None


def get_activity_table() -> AlleleActivityTable:
    """Shared instance of the default table."""
    global _default_table
    if _default_table is None:
        _default_table = AlleleActivityTable()
    return _default_table
