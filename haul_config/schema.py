"""
Haul rule-set schema.

Defines the human-authored, reviewable source artifact for haul rule
configuration.  YAML files are parsed into these types by the loader,
checked by the validator and turned into the engines' ``HaulRulePolicy``
by ``haul_config.bridges``.

Numeric thresholds are kept as strings so that they reach ``Decimal``
without passing through float.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum, unique


@unique
class ConfigStatus(str, Enum):
    """Lifecycle status for a rule set."""

    DRAFT = "draft"
    PUBLISHED = "published"
    SUPERSEDED = "superseded"


@dataclass(frozen=True)
class ConfigScope:
    """Sites and dates a rule set applies to.  ``site_id`` may be ``*``."""

    site_id: str
    effective_from: date
    effective_to: date | None = None

    def covers(self, site_id: str, as_of_date: date) -> bool:
        site_matches = self.site_id in ("*", site_id)
        date_matches = self.effective_from <= as_of_date and (
            self.effective_to is None or self.effective_to >= as_of_date
        )
        return site_matches and date_matches


@dataclass(frozen=True)
class CapacityRulesDef:
    """Load thresholds, as ratios of truck capacity."""

    near_full_ratio: str = "0.95"
    low_load_ratio: str = "0.10"
    default_truck_capacity: str = "10"


@dataclass(frozen=True)
class TimestampRulesDef:
    max_age_hours: int = 24


@dataclass(frozen=True)
class RouteRuleDef:
    """Display-name aliases and forbidden direction for one haul type."""

    haul_type: str
    names: tuple[str, ...] = ()
    forbidden_direction: str | None = None


@dataclass(frozen=True)
class CompatibilityRulesDef:
    liquid_keywords: tuple[str, ...] = ("agua", "water")
    open_body_keywords: tuple[str, ...] = ("volteo", "dump")


@dataclass(frozen=True)
class AllocationRulesDef:
    match_carrier: bool = False


@dataclass(frozen=True)
class HaulRuleSet:
    """
    A complete, versioned haul rule set.

    ``checksum`` is the SHA-256 of the canonical JSON of the source YAML and
    identifies the exact rules a validation ran under.
    """

    config_id: str
    version: int
    status: ConfigStatus
    scope: ConfigScope
    capacity: CapacityRulesDef
    timestamps: TimestampRulesDef
    route_rules: tuple[RouteRuleDef, ...]
    compatibility: CompatibilityRulesDef
    allocation: AllocationRulesDef
    checksum: str = ""
    description: str = ""
