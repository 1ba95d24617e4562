"""
Match user text against the ordered URL parsing rules.

The first rule (in list order) that yields something usable wins: either a
parsed coordinate or a link that still needs to be fetched.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from domain.errors import ConfigurationError
from domain.models import (
    ContentType,
    LineMatch,
    MatchResult,
    Pending,
    PatternRule,
    PendingFetch,
    Resolved,
    RuleKind,
)
from services.coordinates import parse_coordinate_pair

logger = logging.getLogger(__name__)


def _check_rule(rule: PatternRule) -> None:
    if rule.kind == RuleKind.DIRECT:
        if rule.order is None:
            raise ConfigurationError(f"Rule '{rule.name}' has no coordinate order", rule.name)
        if rule.pattern.groups < 2:
            raise ConfigurationError(f"Rule '{rule.name}' must capture two numeric groups", rule.name)
        return

    if rule.content_pattern is None or rule.content_type is None:
        raise ConfigurationError(
            f"Rule '{rule.name}' needs a content pattern and content type", rule.name
        )
    if rule.pattern.groups < 1:
        raise ConfigurationError(f"Rule '{rule.name}' must capture the URL to fetch", rule.name)
    needed = 1 if rule.content_type == ContentType.PLACE_NAME else 2
    if rule.content_pattern.groups < needed:
        raise ConfigurationError(
            f"Rule '{rule.name}' content pattern must capture {needed} group(s)", rule.name
        )


class RuleMatcher:
    def __init__(self, rules: Iterable[PatternRule]):
        self.rules = tuple(rules)
        for rule in self.rules:
            _check_rule(rule)

    def match(self, line: str) -> Optional[LineMatch]:
        """Find the first usable match in ``line``.

        Returns Resolved for direct rules, Pending for fetch rules (the URL is
        not fetched here) and None when nothing matched.
        """
        for rule in self.rules:
            for m in rule.pattern.finditer(line):
                if rule.kind == RuleKind.INDIRECT_FETCH:
                    url = m.group(1)
                    if not url:
                        continue
                    return Pending(
                        PendingFetch(
                            url=url,
                            rule=rule,
                            match_index=m.start(),
                            match_length=len(m.group(0)),
                        )
                    )

                coordinate = parse_coordinate_pair(m.group(1), m.group(2), rule.order)
                if coordinate is None:
                    logger.debug("Rule %s matched %r but it is not a coordinate", rule.name, m.group(0))
                    continue
                return Resolved(
                    MatchResult(
                        coordinate=coordinate,
                        source_index=m.start(),
                        match_length=len(m.group(0)),
                        rule_name=rule.name,
                    )
                )
        return None

    def has_match(self, line: str) -> bool:
        return self.match(line) is not None
