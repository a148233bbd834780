"""
energyviz.processing — Derived views over the energy dataset.

Pure-computation module. Zero I/O. Zero global state.
Every function takes the data it works on as arguments and returns new
objects; the YearIndex and the raw dataset are never mutated.

Views:
    normalize       raw dataset        -> YearIndex
    format_stack    YearIndex, year    -> countries ranked by total
    build_series    YearIndex, select  -> one ConsumptionPoint per year
    average_range   YearIndex, range   -> per-country means, ranked
    map_data        raw / YearIndex    -> single-snapshot raw shape

Rounding happens once per value, at the point where it is finalized,
and always before that value enters a higher-level sum.
"""

from __future__ import annotations

import json
import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence

from energyviz.constants import ENERGY_TYPE_KEYS, ROUND_PRECISION
from energyviz.models import (
    ConsumptionPoint,
    CountryAverage,
    EnergyValues,
    NormalizedCountryRecord,
    RawYearRecord,
    YearIndex,
)
from energyviz.selection import SelectionContext

logger = logging.getLogger("energyviz.processing")

_QUANTUM = Decimal(1).scaleb(-ROUND_PRECISION)


def round_value(value: float) -> float:
    """Round half-up to ROUND_PRECISION places on the decimal repr of value.

    round_value(1.005) -> 1.01, where round(1.005, 2) gives 1.0 because
    the binary float lies just below the midpoint. Values with no digits
    beyond ROUND_PRECISION (including very large ones) are returned as-is.
    """
    exact = Decimal(repr(value))
    if exact.as_tuple().exponent >= -ROUND_PRECISION:
        return float(value)
    return float(exact.quantize(_QUANTUM, rounding=ROUND_HALF_UP))


# ---------------------------------------------------------------------------
# Normalizer
# ---------------------------------------------------------------------------

def normalize(raw: Sequence[RawYearRecord]) -> YearIndex:
    """Index the raw dataset by year with every energy type filled in.

    Country order within a year is kept from the feed. A year repeated in
    the feed is replaced by its later record.
    """
    index: YearIndex = {}
    for year_record in raw:
        index[year_record.year] = tuple(
            NormalizedCountryRecord(
                country=country.name,
                total=country.total,
                energy=EnergyValues.from_mapping(country.energy),
            )
            for country in year_record.countries
        )
    return index


# ---------------------------------------------------------------------------
# Stack Formatter
# ---------------------------------------------------------------------------

def format_stack(index: YearIndex, year: int) -> list[NormalizedCountryRecord]:
    """Countries of one year, descending by total.

    Returns [] for a year missing from the index. Equal totals keep
    their feed order.
    """
    countries = index.get(year)
    if not countries:
        return []
    return sorted(countries, key=lambda c: c.total, reverse=True)


# ---------------------------------------------------------------------------
# Series Aggregator
# ---------------------------------------------------------------------------

def build_series(
    index: YearIndex,
    selection: SelectionContext | Iterable[str] | None = None,
) -> list[ConsumptionPoint]:
    """Per-year consumption summed over the selected countries.

    An inactive selection means every country. Selected names missing
    from a year contribute nothing to that year.

    totalConsumption is the sum of the already-rounded per-type sums,
    not the rounded sum of the raw values.
    """
    if not isinstance(selection, SelectionContext):
        selection = SelectionContext.from_names(selection)

    series: list[ConsumptionPoint] = []
    for year, countries in index.items():
        chosen = selection.filter(countries)
        sums = {
            key: round_value(sum(getattr(c.energy, key) for c in chosen))
            for key in ENERGY_TYPE_KEYS
        }
        series.append(ConsumptionPoint(
            year=int(year),
            energy=EnergyValues(**sums),
            total_consumption=sum(sums.values()),
        ))

    series.sort(key=lambda p: p.year)
    return series


# ---------------------------------------------------------------------------
# Range Averager
# ---------------------------------------------------------------------------

def years_in_range(index: YearIndex, start_year: int, end_year: int) -> list[int]:
    """Years of the index inside [start_year, end_year], ascending."""
    return sorted(y for y in index if start_year <= y <= end_year)


def average_range(
    index: YearIndex,
    start_year: int,
    end_year: int,
) -> list[CountryAverage]:
    """Per-country means over the inclusive range, descending by total.

    The candidate countries are those of the first year in range. A
    country missing from that year is left out even if later years in
    the range report it.

    Raises:
        ValueError: if start_year > end_year.
    """
    if start_year > end_year:
        raise ValueError(
            f"Invalid year range: start {start_year} is after end {end_year}."
        )

    years = years_in_range(index, start_year, end_year)
    if not years:
        logger.warning(json.dumps({
            "event": "empty_range_warning",
            "start_year": start_year,
            "end_year": end_year,
        }))
        return []

    by_year = [{c.country: c for c in index[y]} for y in years]

    averages: list[CountryAverage] = []
    for candidate in index[years[0]]:
        name = candidate.country
        samples = [lookup[name] for lookup in by_year if name in lookup]
        if not samples:
            continue

        n = len(samples)
        energy = {
            key: round_value(sum(getattr(s.energy, key) for s in samples) / n)
            for key in ENERGY_TYPE_KEYS
        }
        averages.append(CountryAverage(
            country=name,
            total=round_value(sum(s.total for s in samples) / n),
            energy=EnergyValues(**energy),
        ))

    averages.sort(key=lambda c: c.total, reverse=True)
    return averages


# ---------------------------------------------------------------------------
# Map Adapter
# ---------------------------------------------------------------------------

def map_data(
    raw: Sequence[RawYearRecord],
    index: YearIndex,
    year_range: tuple[int, int] | None = None,
) -> Sequence[RawYearRecord]:
    """Data in the shape the map renderer consumes.

    Without a range the raw dataset is returned as-is. With a range the
    averages are wrapped in one synthetic record dated at the range end,
    so the renderer treats a range like a single year.
    """
    if year_range is None:
        return raw

    start_year, end_year = year_range
    averages = average_range(index, start_year, end_year)
    return [
        RawYearRecord(
            year=end_year,
            countries=[c.to_raw() for c in averages],
        )
    ]
