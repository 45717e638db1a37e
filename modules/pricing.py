"""Pricing for print jobs.

Pure functions: nothing here reads configuration or touches the queue.
Costs keep full float precision; rounding happens only in format_currency().
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from models.job import ColorMode, Job, JobStatus, PrintOptions
from models.settings import RateTable

# Minutes of wait attributed to each job ahead of a customer
MINUTES_PER_WAITING_JOB = 2

# "3", " 12,14" and "7abc" all start with a number
_LEADING_INT = re.compile(r"\s*(\d+)")


@dataclass(frozen=True)
class PriceQuote:
    """Breakdown of a price, as shown on the order summary."""

    page_count: int
    base: float
    surcharge: float

    @property
    def total(self) -> float:
        return max(self.base + self.surcharge, 0.0)

    def to_dict(self) -> dict:
        return {
            "page_count": self.page_count,
            "base": self.base,
            "surcharge": self.surcharge,
            "total": self.total,
            "display_total": format_currency(self.total),
        }


def resolve_page_count(selection: str, total_pages: int) -> int:
    """Turn a page selection into the number of pages to print.

    'all' and anything unparseable mean the whole document. A range 'a-b'
    needs b >= a. A list counts its elements once its first entry is a number,
    so '1,3,x' is three pages.
    """
    text = (selection or "").strip()
    if not text or text.lower() == "all":
        return total_pages

    if "-" in text:
        start, _, end = text.partition("-")
        try:
            first, last = int(start), int(end)
        except ValueError:
            return total_pages
        if last >= first:
            return last - first + 1
        return total_pages

    if _leading_int(text) is not None:
        return len(text.split(","))

    return total_pages


def quote(
    page_selection: str,
    total_pages: int,
    color_mode: ColorMode,
    duplex: bool,
    copies: int,
    expedited: bool,
    rates: RateTable,
) -> PriceQuote:
    page_count = resolve_page_count(page_selection, total_pages)
    page_rate = rates.bw_page_rate if color_mode is ColorMode.BW else rates.color_page_rate

    base = max(page_count, 0) * page_rate * max(copies, 0)
    if duplex:
        base *= rates.duplex_multiplier

    surcharge = base * (rates.expedite_multiplier - 1) if expedited else 0.0
    return PriceQuote(page_count=page_count, base=base, surcharge=surcharge)


def price(
    page_selection: str,
    total_pages: int,
    color_mode: ColorMode,
    duplex: bool,
    copies: int,
    expedited: bool,
    rates: RateTable,
) -> float:
    """Total cost of a print order; never negative."""
    return quote(
        page_selection, total_pages, color_mode, duplex, copies, expedited, rates
    ).total


def quote_options(options: PrintOptions, rates: RateTable) -> PriceQuote:
    return quote(
        options.pages,
        options.total_pages,
        options.color_mode,
        options.duplex,
        options.copies,
        options.is_expedited,
        rates,
    )


def format_currency(amount: float) -> str:
    return f"{amount:.2f}"


def estimated_wait_minutes(jobs: Iterable[Job]) -> int:
    """Rough wait for a new order: a fixed slice per queued or printing job."""
    waiting = sum(
        1 for job in jobs if job.status in (JobStatus.QUEUED, JobStatus.PRINTING)
    )
    return waiting * MINUTES_PER_WAITING_JOB


def _leading_int(text: str) -> Optional[int]:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else None
