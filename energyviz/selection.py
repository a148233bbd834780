"""
energyviz.selection — Country selection passed into the series aggregation.

A SelectionContext is an immutable value object. An empty selection means
"every country"; a non-empty one restricts the consumption series to the
named countries, even when it happens to name all of them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from energyviz.models import NormalizedCountryRecord


@dataclass(frozen=True, slots=True)
class SelectionContext:
    """Explicit country filter for build_series()."""

    countries: tuple[str, ...] = ()
    _lookup: frozenset[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_lookup", frozenset(self.countries))

    @classmethod
    def from_names(cls, names: Iterable[str] | None) -> SelectionContext:
        """Build from caller-supplied names. None or empty selects everything.

        Order is kept, duplicates dropped.

        Raises:
            TypeError: if names is a bare string or contains non-strings.
        """
        if names is None:
            return cls()
        if isinstance(names, str):
            raise TypeError("names must be a sequence of country names, not a string.")

        ordered: list[str] = []
        for name in names:
            if not isinstance(name, str):
                raise TypeError(f"Country name must be a string, got {name!r}.")
            if name not in ordered:
                ordered.append(name)
        return cls(countries=tuple(ordered))

    @property
    def is_active(self) -> bool:
        return bool(self.countries)

    def filter(
        self,
        records: Sequence[NormalizedCountryRecord],
    ) -> list[NormalizedCountryRecord]:
        if not self.is_active:
            return list(records)
        return [r for r in records if r.country in self._lookup]
