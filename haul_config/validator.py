"""
Rule-Set Validator (``haul_config.validator``).

Responsibility
--------------
Checks a parsed ``HaulRuleSet`` for structural problems before it is
bridged into the engines' policy: ratio ranges, positive capacities and
ages, known haul types and directions, non-empty keyword lists.

Failure modes
-------------
* Validation errors  -> the rule set MUST NOT be used.
* Validation warnings  -> the rule set may be used but should be reviewed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from haul_config.schema import HaulRuleSet
from haul_kernel.domain.records import HaulDirection, HaulType


@dataclass
class ConfigValidationResult:
    """``is_valid`` is True only when ``errors`` is empty."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def validate_rule_set(rule_set: HaulRuleSet) -> ConfigValidationResult:
    """Validate a rule set; a set with errors MUST NOT be used."""
    result = ConfigValidationResult()

    _validate_capacity(rule_set, result)
    _validate_timestamps(rule_set, result)
    _validate_route_rules(rule_set, result)
    _validate_compatibility(rule_set, result)

    return result


def _parse_decimal(raw: str, name: str, result: ConfigValidationResult) -> Decimal | None:
    try:
        return Decimal(raw)
    except InvalidOperation:
        result.add_error(f"capacity.{name} is not a number: {raw!r}")
        return None


def _validate_capacity(rule_set: HaulRuleSet, result: ConfigValidationResult) -> None:
    near = _parse_decimal(rule_set.capacity.near_full_ratio, "near_full_ratio", result)
    low = _parse_decimal(rule_set.capacity.low_load_ratio, "low_load_ratio", result)
    default = _parse_decimal(
        rule_set.capacity.default_truck_capacity, "default_truck_capacity", result
    )

    for name, ratio in (("near_full_ratio", near), ("low_load_ratio", low)):
        if ratio is not None and not (Decimal("0") < ratio <= Decimal("1")):
            result.add_error(f"capacity.{name} must be in (0, 1], got {ratio}")
    if near is not None and low is not None and low >= near:
        result.add_error(
            f"capacity.low_load_ratio ({low}) must be below near_full_ratio ({near})"
        )
    if default is not None and default <= Decimal("0"):
        result.add_error(f"capacity.default_truck_capacity must be positive, got {default}")


def _validate_timestamps(rule_set: HaulRuleSet, result: ConfigValidationResult) -> None:
    if rule_set.timestamps.max_age_hours <= 0:
        result.add_error(
            f"timestamps.max_age_hours must be positive, got {rule_set.timestamps.max_age_hours}"
        )


def _validate_route_rules(rule_set: HaulRuleSet, result: ConfigValidationResult) -> None:
    known_types = {t.value for t in HaulType if t != HaulType.UNKNOWN}
    known_directions = {d.value for d in HaulDirection}
    seen: set[str] = set()

    for rule in rule_set.route_rules:
        if rule.haul_type not in known_types:
            result.add_error(f"route_rules: unknown haul type '{rule.haul_type}'")
            continue
        if rule.haul_type in seen:
            result.add_error(f"route_rules: duplicate haul type '{rule.haul_type}'")
        seen.add(rule.haul_type)

        if rule.forbidden_direction is not None:
            if rule.forbidden_direction not in known_directions:
                result.add_error(
                    f"route_rules.{rule.haul_type}: unknown direction "
                    f"'{rule.forbidden_direction}'"
                )
            elif rule.haul_type == HaulType.INTERNAL_MOVEMENT.value:
                result.add_error(
                    "route_rules.internal_movement cannot forbid a direction"
                )
        if not rule.names:
            result.add_warning(
                f"route_rules.{rule.haul_type}: no names; built-in aliases apply"
            )

    for missing in sorted(known_types - seen):
        result.add_warning(f"route_rules: '{missing}' not configured; defaults apply")


def _validate_compatibility(rule_set: HaulRuleSet, result: ConfigValidationResult) -> None:
    if not rule_set.compatibility.liquid_keywords:
        result.add_error("compatibility.liquid_keywords must not be empty")
    if not rule_set.compatibility.open_body_keywords:
        result.add_error("compatibility.open_body_keywords must not be empty")
