"""
Rule-Set Loader (``haul_config.loader``).

Responsibility
--------------
Loads a rule-set YAML file and parses it into the frozen dataclasses of
``haul_config.schema``.  The single runtime entry point for configuration
is ``haul_config.get_active_config()``; this module is its tooling.

Invariants enforced
-------------------
* Required keys (``config_id``, ``scope.effective_from``) raise
  ``KeyError`` when missing; optional sections fall back to the schema
  defaults.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the
  parsed YAML for configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Invalid date or status  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date
from pathlib import Path
from typing import Any

import yaml

from haul_config.schema import (
    AllocationRulesDef,
    CapacityRulesDef,
    CompatibilityRulesDef,
    ConfigScope,
    ConfigStatus,
    HaulRuleSet,
    RouteRuleDef,
    TimestampRulesDef,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file and return its contents as a dict."""
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def parse_date(value: Any) -> date:
    """Parse a date from YAML (string or date object)."""
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise ValueError(f"Cannot parse date from {value!r}")


def parse_scope(data: dict[str, Any]) -> ConfigScope:
    return ConfigScope(
        site_id=str(data.get("site_id", "*")),
        effective_from=parse_date(data["effective_from"]),
        effective_to=parse_date(data["effective_to"]) if data.get("effective_to") else None,
    )


def parse_route_rule(haul_type: str, data: dict[str, Any] | None) -> RouteRuleDef:
    """Parse one entry of the ``route_rules`` mapping."""
    data = data or {}
    return RouteRuleDef(
        haul_type=haul_type,
        names=tuple(str(n) for n in data.get("names", ())),
        forbidden_direction=data.get("forbidden_direction"),
    )


def parse_rule_set(data: dict[str, Any]) -> HaulRuleSet:
    """
    Parse a ``HaulRuleSet`` from a dict.

    Raises:
        KeyError: if ``config_id`` or ``scope.effective_from`` is missing.
        ValueError: if a date or the status cannot be parsed.
    """
    capacity = data.get("capacity") or {}
    timestamps = data.get("timestamps") or {}
    compatibility = data.get("compatibility") or {}
    allocation = data.get("allocation") or {}
    defaults = CompatibilityRulesDef()

    return HaulRuleSet(
        config_id=data["config_id"],
        version=int(data.get("version", 1)),
        status=ConfigStatus(data.get("status", ConfigStatus.DRAFT.value)),
        scope=parse_scope(data["scope"]),
        capacity=CapacityRulesDef(
            near_full_ratio=str(capacity.get("near_full_ratio", "0.95")),
            low_load_ratio=str(capacity.get("low_load_ratio", "0.10")),
            default_truck_capacity=str(capacity.get("default_truck_capacity", "10")),
        ),
        timestamps=TimestampRulesDef(
            max_age_hours=int(timestamps.get("max_age_hours", 24)),
        ),
        route_rules=tuple(
            parse_route_rule(str(haul_type), rule)
            for haul_type, rule in (data.get("route_rules") or {}).items()
        ),
        compatibility=CompatibilityRulesDef(
            liquid_keywords=tuple(compatibility.get("liquid_keywords", defaults.liquid_keywords)),
            open_body_keywords=tuple(
                compatibility.get("open_body_keywords", defaults.open_body_keywords)
            ),
        ),
        allocation=AllocationRulesDef(
            match_carrier=bool(allocation.get("match_carrier", False)),
        ),
        checksum=compute_checksum(data),
        description=data.get("description", ""),
    )


def load_rule_set(path: Path) -> HaulRuleSet:
    """Load and parse a rule-set YAML file."""
    return parse_rule_set(load_yaml_file(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
