"""
energyviz.engine — Engine facade queried by the rendering collaborators.

Holds the loaded dataset, its YearIndex, the active country selection and
the consumption series derived from it. All derivations are delegated to
energyviz.processing; this module owns state, nothing else.

Lifecycle:
    engine = EnergyDataEngine("data/energy_data.json")
    engine.load()                              # LoadError on failure
    engine.get_year_data(2020)                 # stack view
    engine.get_year_data((2010, 2015))         # range averages
    engine.set_selected_countries(["Japan"])   # -> new series
    engine.get_map_data((2010, 2015))          # single synthetic year

The selection is changed only through set_selected_countries(). Derived
structures are recomputed wholesale on load and on selection change.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from numbers import Integral
from pathlib import Path
from typing import Iterable, Sequence

from energyviz.loader import load_dataset
from energyviz.models import (
    ConsumptionPoint,
    CountryAverage,
    NormalizedCountryRecord,
    RawYearRecord,
    YearIndex,
)
from energyviz.processing import (
    average_range,
    build_series,
    format_stack,
    map_data,
    normalize,
)
from energyviz.selection import SelectionContext

logger = logging.getLogger("energyviz.engine")


class DataNotLoadedError(RuntimeError):
    """Raised when the engine is queried before a successful load()."""


@dataclass(frozen=True, slots=True)
class LoadResult:
    raw: list[RawYearRecord]
    index: YearIndex
    series: list[ConsumptionPoint]


def _as_range(year_range: Sequence[int]) -> tuple[int, int]:
    if (
        not isinstance(year_range, Sequence)
        or isinstance(year_range, (str, bytes))
        or len(year_range) != 2
        or not all(isinstance(y, Integral) for y in year_range)
    ):
        raise ValueError(
            f"Year range must be a (start, end) pair of integers, got {year_range!r}."
        )
    start_year, end_year = (int(y) for y in year_range)
    return start_year, end_year


class EnergyDataEngine:
    """Stateful front for the derived energy views."""

    def __init__(self, source: str | Path) -> None:
        self.source = source
        self._raw: list[RawYearRecord] | None = None
        self._index: YearIndex | None = None
        self._series: list[ConsumptionPoint] = []
        self._selection = SelectionContext()

    # -- loading ------------------------------------------------------------

    def load(self) -> LoadResult:
        """Fetch the dataset and derive the index and series.

        On failure the previous state is kept and the LoadError propagates.
        """
        raw = load_dataset(self.source)
        index = normalize(raw)
        series = build_series(index, self._selection)

        self._raw, self._index, self._series = raw, index, series
        logger.info(json.dumps({
            "event": "engine_loaded",
            "years": len(index),
            "first_year": min(index) if index else None,
            "last_year": max(index) if index else None,
        }))
        return LoadResult(raw=raw, index=index, series=series)

    @property
    def is_loaded(self) -> bool:
        return self._index is not None

    def _require_index(self) -> YearIndex:
        if self._index is None:
            raise DataNotLoadedError("Energy data has not been loaded. Call load() first.")
        return self._index

    @property
    def index(self) -> YearIndex:
        return self._require_index()

    @property
    def years(self) -> list[int]:
        return sorted(self._require_index())

    def get_raw_data(self) -> list[RawYearRecord]:
        self._require_index()
        return self._raw

    # -- views --------------------------------------------------------------

    def get_year_data(
        self,
        year_or_range: int | Sequence[int],
    ) -> list[NormalizedCountryRecord] | list[CountryAverage]:
        """Stack view for a single year, range averages for a (start, end) pair."""
        index = self._require_index()
        if isinstance(year_or_range, Integral):
            stack = format_stack(index, int(year_or_range))
            if not stack:
                logger.warning(json.dumps({
                    "event": "empty_range_warning",
                    "year": int(year_or_range),
                }))
            return stack

        start_year, end_year = _as_range(year_or_range)
        return average_range(index, start_year, end_year)

    def get_consumption_data(self) -> list[ConsumptionPoint]:
        self._require_index()
        return self._series

    def get_map_data(
        self,
        year_range: Sequence[int] | None = None,
    ) -> Sequence[RawYearRecord]:
        index = self._require_index()
        if year_range is None:
            return map_data(self._raw, index)
        return map_data(self._raw, index, _as_range(year_range))

    # -- selection ----------------------------------------------------------

    def set_selected_countries(
        self,
        names: Iterable[str] | None,
    ) -> list[ConsumptionPoint]:
        """Replace the selection and return the recomputed series.

        None or an empty sequence selects every country.
        """
        index = self._require_index()
        selection = SelectionContext.from_names(names)
        self._selection = selection
        self._series = build_series(index, selection)
        logger.debug(json.dumps({
            "event": "selection_changed",
            "countries": list(selection.countries),
        }))
        return self._series

    def get_selected_countries(self) -> list[str]:
        return list(self._selection.countries)

    def has_selected_countries(self) -> bool:
        return self._selection.is_active
