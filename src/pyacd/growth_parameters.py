"""
Parameter objects shared between the stand and its tree records.

ThinningEvent describes the single recorded thinning of a stand.
StandConditions is the read-only snapshot of stand aggregates that tree-level
equations consume during one pipeline step.
"""
from dataclasses import dataclass
from typing import Optional

from .exceptions import InvalidParameterError


@dataclass(frozen=True)
class ThinningEvent:
    """A recorded thinning.

    Attributes:
        year: Calendar year of the thinning
        percent_ba_removed: Fraction of basal area removed, in (0, 1]
        ba_pre_thin: Stand basal area before the thinning (m2/ha)
        qmd_ratio: Ratio of QMD after thinning to QMD before thinning
    """
    year: int
    percent_ba_removed: float
    ba_pre_thin: float
    qmd_ratio: float

    def __post_init__(self):
        if not 0.0 < self.percent_ba_removed <= 1.0:
            raise InvalidParameterError('percent_ba_removed', self.percent_ba_removed,
                                        "must be a fraction in (0, 1]")
        if self.ba_pre_thin < 0.0:
            raise InvalidParameterError('ba_pre_thin', self.ba_pre_thin, "must not be negative")
        if self.qmd_ratio < 0.0:
            raise InvalidParameterError('qmd_ratio', self.qmd_ratio, "must not be negative")

    def occurred_by(self, year: int) -> bool:
        """True if the thinning year is non-negative and not after ``year``."""
        return 0 <= self.year <= year

    def is_active(self, year: int) -> bool:
        """True if the thinning happened by ``year`` and its descriptors are usable."""
        return (self.occurred_by(year) and self.percent_ba_removed > 0.0
                and self.qmd_ratio > 0.0 and self.ba_pre_thin > 0.0)

    def years_since(self, year: int) -> int:
        return year - self.year


@dataclass(frozen=True)
class StandConditions:
    """Stand aggregates visible to the tree-level equations.

    Built by the Stand once per pipeline step; tree records never reach back
    into the Stand.
    """
    region: str
    region_indicator: int
    year: int
    csi: float
    cdef: float
    ba: float
    ccf: float
    topht: float
    average_dbh_10_sw: float
    average_height_sw: float
    thinning: Optional[ThinningEvent] = None
    use_sbw_mod: bool = False
    use_hw_mod: bool = False
    use_thin_mod: bool = False

    @property
    def sbw_active(self) -> bool:
        """Defoliation was supplied and the budworm modifiers are enabled."""
        return self.use_sbw_mod and self.cdef >= 0.0

    def active_thinning(self) -> Optional[ThinningEvent]:
        """The thinning event if thinning modifiers are enabled, else None."""
        if not self.use_thin_mod:
            return None
        return self.thinning
