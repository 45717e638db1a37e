"""
Rate table and notification preference models.

Both are process-wide settings owned by the queue engine and replaced
wholesale by an operator. They are frozen so the engine can hand out the
current instance without copying.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, asdict
from typing import Dict, Any

from core.exceptions import ValidationError


@dataclass(frozen=True)
class RateTable:
    """
    Prices used to cost new jobs.

    Multipliers are stored as factors, not percentages: a 10% double-sided
    discount is 0.9 and a 25% fast-order surcharge is 1.25.
    """

    bw_page_rate: float = 0.5
    """Currency per black & white page."""

    color_page_rate: float = 2.0
    """Currency per colour page."""

    duplex_multiplier: float = 0.9
    """Factor applied to double-sided jobs (at most 1)."""

    expedite_multiplier: float = 1.25
    """Factor for expedited jobs (at least 1)."""

    def __post_init__(self) -> None:
        for name in ("bw_page_rate", "color_page_rate", "duplex_multiplier", "expedite_multiplier"):
            if not math.isfinite(getattr(self, name)):
                raise ValidationError(f"{name} must be a finite number", name)
        if self.bw_page_rate < 0:
            raise ValidationError("Black & white page rate cannot be negative", "bw_page_rate")
        if self.color_page_rate < 0:
            raise ValidationError("Colour page rate cannot be negative", "color_page_rate")
        if not 0 <= self.duplex_multiplier <= 1:
            raise ValidationError("Double-sided discount must be between 0% and 100%", "duplex_multiplier")
        if self.expedite_multiplier < 1:
            raise ValidationError("Fast order surcharge cannot be negative", "expedite_multiplier")

    @property
    def discount_percent(self) -> int:
        """Double-sided discount as the whole percentage shown to operators."""
        return round((1 - self.duplex_multiplier) * 100)

    @property
    def surcharge_percent(self) -> int:
        """Expedite surcharge as the whole percentage shown to operators."""
        return round((self.expedite_multiplier - 1) * 100)

    @classmethod
    def from_percentages(
        cls,
        bw_page_rate: float,
        color_page_rate: float,
        discount_percent: float,
        surcharge_percent: float,
    ) -> "RateTable":
        """Build a table from the operator form, which edits percentages."""
        return cls(
            bw_page_rate=float(bw_page_rate),
            color_page_rate=float(color_page_rate),
            duplex_multiplier=1 - (float(discount_percent) / 100),
            expedite_multiplier=1 + (float(surcharge_percent) / 100),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["discount_percent"] = self.discount_percent
        data["surcharge_percent"] = self.surcharge_percent
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RateTable":
        """
        Create from a stored dictionary.

        Raises:
            KeyError, ValueError, TypeError: On malformed data
            ValidationError: On out-of-range values
        """
        return cls(
            bw_page_rate=float(data["bw_page_rate"]),
            color_page_rate=float(data["color_page_rate"]),
            duplex_multiplier=float(data["duplex_multiplier"]),
            expedite_multiplier=float(data["expedite_multiplier"]),
        )


@dataclass(frozen=True)
class NotificationPreferences:
    """Which events the engine forwards to the notifier."""

    notify_new_job: bool = True
    notify_job_ready: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NotificationPreferences":
        new_job = data["notify_new_job"]
        job_ready = data["notify_job_ready"]
        if not isinstance(new_job, bool) or not isinstance(job_ready, bool):
            raise ValueError("Notification preferences must be booleans")
        return cls(notify_new_job=new_job, notify_job_ready=job_ready)
