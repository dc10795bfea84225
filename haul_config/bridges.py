"""
Config -> Engine Bridges.

Converts a validated ``HaulRuleSet`` into the engines' ``HaulRulePolicy``.
Lives in haul_config (the producer) because the engines must never import
haul_config.

Usage:
    from haul_config import get_active_config
    from haul_config.bridges import build_rule_policy

    policy = build_rule_policy(get_active_config(site_id, as_of_date))
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from haul_config.schema import HaulRuleSet
from haul_engines.rules import DEFAULT_POLICY, HaulRulePolicy
from haul_kernel.domain.records import HaulDirection, HaulType


def build_rule_policy(rule_set: HaulRuleSet) -> HaulRulePolicy:
    """Build the engine policy for a rule set.

    Haul types the rule set does not mention keep the built-in aliases and
    forbidden direction.  A configured type replaces its aliases when it
    lists names, and its forbidden direction always (``null`` allows both
    directions).
    """
    forbidden = dict(DEFAULT_POLICY.forbidden_directions)
    aliases = dict(DEFAULT_POLICY.haul_type_aliases)

    for rule in rule_set.route_rules:
        haul_type = HaulType(rule.haul_type)
        if rule.names:
            aliases[haul_type] = rule.names
        if rule.forbidden_direction is None:
            forbidden.pop(haul_type, None)
        else:
            forbidden[haul_type] = HaulDirection(rule.forbidden_direction)

    return HaulRulePolicy(
        near_full_ratio=Decimal(rule_set.capacity.near_full_ratio),
        low_load_ratio=Decimal(rule_set.capacity.low_load_ratio),
        default_truck_capacity=Decimal(rule_set.capacity.default_truck_capacity),
        max_age=timedelta(hours=rule_set.timestamps.max_age_hours),
        forbidden_directions=forbidden,
        liquid_keywords=rule_set.compatibility.liquid_keywords,
        open_body_keywords=rule_set.compatibility.open_body_keywords,
        haul_type_aliases=aliases,
        match_carrier=rule_set.allocation.match_carrier,
    )
