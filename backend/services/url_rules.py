"""
URL parsing rules: presets and loading from plain configuration records.

Records use the same shape as the stored settings, e.g.::

    {"name": "Generic Lat,Lng", "regExp": "...", "ruleType": "latLng", "preset": True}

Fetch rules additionally carry ``contentParsingRegExp`` and ``contentType``.
"""
from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from domain.errors import ConfigurationError
from domain.models import ContentType, CoordinateOrder, PatternRule, RuleKind

logger = logging.getLogger(__name__)

DEFAULT_URL_PARSING_RULES: List[Dict[str, Any]] = [
    {
        "name": "OpenStreetMap Show Address",
        "regExp": r"https://www.openstreetmap.org\S*query=([0-9\.\-]+)%2C([0-9\.\-]+)\S*",
        "ruleType": "latLng",
        "preset": True,
    },
    {
        "name": "Generic Lat,Lng",
        "regExp": r"([0-9\.\-]+),\s*([0-9\.\-]+)",
        "ruleType": "latLng",
        "preset": True,
    },
    {
        "name": "Geolocation Link",
        "regExp": r"\[.*\]\(geo:([0-9\.\-]+),([0-9\.\-]+)\)",
        "ruleType": "latLng",
        "preset": True,
    },
]

_LEGACY_ORDER = {"latFirst": "latLng", "lngFirst": "lngLat"}


def _compile(pattern: Any, rule_name: str, field_name: str) -> "re.Pattern[str]":
    if not isinstance(pattern, str) or not pattern:
        raise ConfigurationError(f"Rule '{rule_name}' is missing {field_name}", rule_name)
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise ConfigurationError(
            f"Rule '{rule_name}' has an invalid {field_name}: {exc}", rule_name
        ) from exc


def convert_legacy_rule(record: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``record`` with a legacy ``order`` field turned into ``ruleType``."""
    converted = dict(record)
    legacy_order = converted.pop("order", None)
    if legacy_order:
        if legacy_order not in _LEGACY_ORDER:
            raise ConfigurationError(
                f"Rule '{converted.get('name')}' has unknown order '{legacy_order}'",
                converted.get("name"),
            )
        converted["ruleType"] = _LEGACY_ORDER[legacy_order]
    return converted


def rule_from_config(record: Dict[str, Any]) -> PatternRule:
    """Validate and compile a single rule record."""
    record = convert_legacy_rule(record)
    name = record.get("name")
    if not name:
        raise ConfigurationError("URL parsing rule without a name")

    pattern = _compile(record.get("regExp"), name, "regExp")
    rule_type = record.get("ruleType")
    preset = bool(record.get("preset", False))

    if rule_type in (CoordinateOrder.LAT_FIRST.value, CoordinateOrder.LNG_FIRST.value):
        if pattern.groups < 2:
            raise ConfigurationError(
                f"Rule '{name}' must capture two numeric groups", name
            )
        return PatternRule(
            name=name,
            pattern=pattern,
            kind=RuleKind.DIRECT,
            order=CoordinateOrder(rule_type),
            preset=preset,
        )

    if rule_type == RuleKind.INDIRECT_FETCH.value:
        if pattern.groups < 1:
            raise ConfigurationError(f"Rule '{name}' must capture the URL to fetch", name)
        content_pattern = _compile(
            record.get("contentParsingRegExp"), name, "contentParsingRegExp"
        )
        try:
            content_type = ContentType(record.get("contentType"))
        except ValueError as exc:
            raise ConfigurationError(
                f"Rule '{name}' has missing or unknown contentType "
                f"'{record.get('contentType')}'",
                name,
            ) from exc
        needed = 1 if content_type == ContentType.PLACE_NAME else 2
        if content_pattern.groups < needed:
            raise ConfigurationError(
                f"Rule '{name}' content pattern must capture {needed} group(s)", name
            )
        return PatternRule(
            name=name,
            pattern=pattern,
            kind=RuleKind.INDIRECT_FETCH,
            content_pattern=content_pattern,
            content_type=content_type,
            preset=preset,
        )

    raise ConfigurationError(f"Rule '{name}' has unknown ruleType '{rule_type}'", name)


def rules_from_config(records: Optional[Iterable[Dict[str, Any]]]) -> Tuple[PatternRule, ...]:
    """Compile an ordered list of rule records.

    Raises ConfigurationError for the first invalid record; list order is kept
    since it defines evaluation precedence.
    """
    if records is None:
        records = DEFAULT_URL_PARSING_RULES
    rules = tuple(rule_from_config(record) for record in records)
    logger.debug("Loaded %d URL parsing rules", len(rules))
    return rules


def rules_to_config(rules: Iterable[PatternRule]) -> List[Dict[str, Any]]:
    """Serialize rules back into plain records."""
    records: List[Dict[str, Any]] = []
    for rule in rules:
        record: Dict[str, Any] = {"name": rule.name, "regExp": rule.pattern.pattern, "preset": rule.preset}
        if rule.kind == RuleKind.DIRECT:
            record["ruleType"] = rule.order.value if rule.order else None
        else:
            record["ruleType"] = RuleKind.INDIRECT_FETCH.value
            record["contentParsingRegExp"] = (
                rule.content_pattern.pattern if rule.content_pattern else None
            )
            record["contentType"] = rule.content_type.value if rule.content_type else None
        records.append(record)
    return records


def load_rules_file(path: str | Path) -> Tuple[PatternRule, ...]:
    """Load rule records from a JSON file containing a list of records."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Cannot read URL parsing rules from {path}: {exc}") from exc
    if not isinstance(data, list):
        raise ConfigurationError(f"URL parsing rules file {path} must contain a JSON list")
    return rules_from_config(data)
