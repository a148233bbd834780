"""
energyviz.constants — Static configuration for the energy views.

The EnergyType set and its category membership are configuration, not
derived data. Every module that needs them imports from here.
"""

from __future__ import annotations

from enum import Enum

# ---------------------------------------------------------------------------
# Precision
# ---------------------------------------------------------------------------

ROUND_PRECISION: int = 2
"""Every per-type sum, average and consumption value is rounded to exactly
ROUND_PRECISION decimal places before any aggregation that consumes it.

Rounding rule: half-up on the shortest decimal representation of the
float (1.005 -> 1.01), see energyviz.processing.round_value.
"""

# ---------------------------------------------------------------------------
# Energy types and categories
# ---------------------------------------------------------------------------


class Category(str, Enum):
    FOSSIL_FUELS = "fossil_fuels"
    NUCLEAR = "nuclear"
    RENEWABLES = "renewables"


class EnergyType(str, Enum):
    OIL = "oil"
    COAL = "coal"
    GAS = "gas"
    NUCLEAR = "nuclear"
    HYDRO = "hydro"
    WIND = "wind"
    SOLAR = "solar"
    BIOFUEL = "biofuel"


ENERGY_CATEGORIES: dict[Category, tuple[EnergyType, ...]] = {
    Category.FOSSIL_FUELS: (EnergyType.OIL, EnergyType.COAL, EnergyType.GAS),
    Category.NUCLEAR: (EnergyType.NUCLEAR,),
    Category.RENEWABLES: (
        EnergyType.HYDRO,
        EnergyType.WIND,
        EnergyType.SOLAR,
        EnergyType.BIOFUEL,
    ),
}

ENERGY_TYPES: tuple[EnergyType, ...] = tuple(
    energy_type
    for members in ENERGY_CATEGORIES.values()
    for energy_type in members
)
"""All energy types in canonical (category-grouped) order."""

ENERGY_TYPE_KEYS: tuple[str, ...] = tuple(t.value for t in ENERGY_TYPES)

CATEGORY_OF: dict[EnergyType, Category] = {
    energy_type: category
    for category, members in ENERGY_CATEGORIES.items()
    for energy_type in members
}

ENERGY_LABELS: dict[EnergyType, str] = {
    EnergyType.OIL: "Oil",
    EnergyType.COAL: "Coal",
    EnergyType.GAS: "Natural Gas",
    EnergyType.NUCLEAR: "Nuclear",
    EnergyType.HYDRO: "Hydropower",
    EnergyType.WIND: "Wind",
    EnergyType.SOLAR: "Solar",
    EnergyType.BIOFUEL: "Biofuel",
}

ENERGY_COLORS: dict[EnergyType, str] = {
    EnergyType.OIL: "#8B4513",
    EnergyType.COAL: "#2F4F4F",
    EnergyType.GAS: "#696969",
    EnergyType.NUCLEAR: "#800080",
    EnergyType.HYDRO: "#4169E1",
    EnergyType.WIND: "#87CEEB",
    EnergyType.SOLAR: "#FFD700",
    EnergyType.BIOFUEL: "#228B22",
}

# ---------------------------------------------------------------------------
# Timeline defaults
# ---------------------------------------------------------------------------

DEFAULT_START_YEAR: int = 1965
DEFAULT_END_YEAR: int = 2023
"""Timeline bounds offered to the playback collaborators when the loaded
dataset does not narrow them."""
