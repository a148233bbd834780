"""
energyviz.models — Raw payload schema and derived record types.

Raw records (RawYearRecord, RawCountryRecord) are pydantic models: they
are the validation gate for the ingested JSON document. Derived records
are frozen dataclasses produced by the pure functions in
energyviz.processing and never mutated afterwards.

Wire contract of the raw document:
    [
      {
        "year": int,
        "countries": [
          {"name": str, "total": float, "energy": {"<energy_type>": float}}
        ]
      }
    ]

    energy may omit any energy type; missing or null means 0.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping

from pydantic import BaseModel, Field, TypeAdapter, field_validator, model_validator

from energyviz.constants import (
    ENERGY_CATEGORIES,
    ENERGY_TYPE_KEYS,
    EnergyType,
)


# ---------------------------------------------------------------------------
# Raw payload — pydantic validation gate
# ---------------------------------------------------------------------------

class RawCountryRecord(BaseModel):
    """One country's entry in a raw year record.

    total is authoritative and independent of the energy breakdown;
    it is never checked against the per-type sum.
    """

    model_config = {"extra": "ignore", "allow_inf_nan": False}

    name: str
    total: float
    energy: Dict[str, float] = Field(default_factory=dict)

    @field_validator("name")
    @classmethod
    def _require_name(cls, v: str) -> str:
        if not v:
            raise ValueError("country name must not be empty.")
        return v

    @field_validator("energy", mode="before")
    @classmethod
    def _drop_null_values(cls, v: Any) -> Any:
        # null behaves like an absent key
        if v is None:
            return {}
        if isinstance(v, Mapping):
            return {key: val for key, val in v.items() if val is not None}
        return v


class RawYearRecord(BaseModel):
    """All countries reported for one year, in feed order."""

    model_config = {"extra": "ignore"}

    year: int
    countries: List[RawCountryRecord] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_country_names(self) -> RawYearRecord:
        seen: set[str] = set()
        for country in self.countries:
            if country.name in seen:
                raise ValueError(
                    f"Duplicate country '{country.name}' in year {self.year}."
                )
            seen.add(country.name)
        return self


DATASET_ADAPTER: TypeAdapter[List[RawYearRecord]] = TypeAdapter(List[RawYearRecord])


# ---------------------------------------------------------------------------
# Derived records
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class EnergyValues:
    """One value per energy type. Field names match EnergyType values."""

    oil: float = 0.0
    coal: float = 0.0
    gas: float = 0.0
    nuclear: float = 0.0
    hydro: float = 0.0
    wind: float = 0.0
    solar: float = 0.0
    biofuel: float = 0.0

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, float]) -> EnergyValues:
        """Build from a partial mapping; absent types default to 0."""
        return cls(**{key: mapping.get(key) or 0.0 for key in ENERGY_TYPE_KEYS})

    def get(self, energy_type: EnergyType | str) -> float:
        return getattr(self, EnergyType(energy_type).value)

    def to_dict(self) -> dict[str, float]:
        return {key: getattr(self, key) for key in ENERGY_TYPE_KEYS}

    def by_category(self) -> dict[str, dict[str, float]]:
        """Group values by category, for legend and stack rendering."""
        return {
            category.value: {t.value: self.get(t) for t in members}
            for category, members in ENERGY_CATEGORIES.items()
        }


@dataclass(frozen=True, slots=True)
class NormalizedCountryRecord:
    """A country's figures for one year with every energy type present."""

    country: str
    total: float
    energy: EnergyValues

    def to_dict(self) -> dict[str, Any]:
        """Flat form: {country, total, <energy_type>...}."""
        return {"country": self.country, "total": self.total, **self.energy.to_dict()}

    def to_raw(self) -> RawCountryRecord:
        """Reshape back into the raw per-country form."""
        return RawCountryRecord(
            name=self.country,
            total=self.total,
            energy=self.energy.to_dict(),
        )


@dataclass(frozen=True, slots=True)
class CountryAverage(NormalizedCountryRecord):
    """Per-country mean over a year range. Same shape as a normalized record."""


@dataclass(frozen=True, slots=True)
class ConsumptionPoint:
    """Aggregate consumption for one year across the selected countries."""

    year: int
    energy: EnergyValues
    total_consumption: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "energy": self.energy.to_dict(),
            "totalConsumption": self.total_consumption,
        }


YearIndex = Dict[int, tuple[NormalizedCountryRecord, ...]]
"""year -> countries of that year in feed order."""
