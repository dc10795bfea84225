"""
haul_config -- single public entrypoint for haul rule configuration.

Responsibility:
    Provides the ONLY way to obtain a rule set at runtime through
    ``get_active_config()``.  Rule sets are YAML files under
    ``haul_config/sets/<name>/root.yaml``; loading them is internal tooling
    and never exposed to engines.

Architecture position:
    Configuration -- sits above ``haul_kernel`` and ``haul_engines`` and
    below ``haul_services``.  Engines MUST NEVER import from
    ``haul_config``; ``haul_config.bridges`` translates a rule set into the
    engines' ``HaulRulePolicy``.

Failure modes:
    - ``ConfigNotFoundError`` -- no rule set for the requested site / date.
    - ``InvalidConfigError`` -- the selected rule set fails validation.
    - ``yaml.YAMLError`` / ``KeyError`` -- malformed rule-set files.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``HAUL_CONFIG_TRACE`` log entry with the config id, version, status and
    checksum, tying each validation to the exact rules it ran under.
"""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

from haul_config.loader import load_rule_set
from haul_config.schema import ConfigStatus, HaulRuleSet
from haul_config.validator import validate_rule_set
from haul_kernel.exceptions import ConfigNotFoundError, InvalidConfigError

_logger = logging.getLogger("haul_kernel.config")

_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"


def get_active_config(
    site_id: str,
    as_of_date: date,
    config_dir: Path | None = None,
) -> HaulRuleSet:
    """The ONLY public configuration entrypoint.

    Selects the rule set whose scope covers ``site_id`` on ``as_of_date``,
    preferring PUBLISHED sets and then the highest version.  When nothing
    matches and exactly one set exists, that set is used (development
    convenience).

    Raises:
        ConfigNotFoundError: If no rule set matches.
        InvalidConfigError: If the selected rule set fails validation.
    """
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR
    rule_set = _find_matching_config(sets_dir, site_id, as_of_date)

    validation = validate_rule_set(rule_set)
    if not validation.is_valid:
        raise InvalidConfigError(rule_set.config_id, validation.errors)
    for warning in validation.warnings:
        _logger.warning("haul_config_validation_warning", extra={
            "config_id": rule_set.config_id,
            "warning": warning,
        })

    _logger.info(
        "HAUL_CONFIG_TRACE",
        extra={
            "trace_type": "HAUL_CONFIG_TRACE",
            "config_id": rule_set.config_id,
            "config_version": rule_set.version,
            "config_status": rule_set.status.value,
            "checksum": rule_set.checksum,
            "scope_site_id": rule_set.scope.site_id,
            "requested_site_id": site_id,
            "as_of_date": as_of_date.isoformat(),
        },
    )
    return rule_set


def _load_all(sets_dir: Path) -> list[HaulRuleSet]:
    if not sets_dir.is_dir():
        raise ConfigNotFoundError("*", "*", str(sets_dir))
    return [
        load_rule_set(subdir / "root.yaml")
        for subdir in sorted(sets_dir.iterdir())
        if subdir.is_dir() and (subdir / "root.yaml").exists()
    ]


def _find_matching_config(sets_dir: Path, site_id: str, as_of_date: date) -> HaulRuleSet:
    all_sets = _load_all(sets_dir)
    candidates = [rs for rs in all_sets if rs.scope.covers(site_id, as_of_date)]

    if not candidates:
        if len(all_sets) == 1:
            return all_sets[0]
        raise ConfigNotFoundError(site_id, as_of_date.isoformat(), str(sets_dir))

    published = [rs for rs in candidates if rs.status == ConfigStatus.PUBLISHED]
    return max(published or candidates, key=lambda rs: rs.version)


__all__ = [
    "get_active_config",
    "HaulRuleSet",
    "ConfigStatus",
]
