"""
Default check registry.

Builds the ordered list of check units for a run from the configuration
gates. Order matters only for readability of event streams: checks are
independent and each restores any page state it touches.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from a11y_auditor.app.checks.axe_checks import axe_checks
from a11y_auditor.app.checks.axe_engine import AxeRuleEngine, RuleEngine
from a11y_auditor.app.checks.base import CheckUnit
from a11y_auditor.app.checks.content import content_checks
from a11y_auditor.app.checks.input_modality import input_modality_checks
from a11y_auditor.app.checks.keyboard import keyboard_checks
from a11y_auditor.app.checks.manual_flags import manual_flags_check
from a11y_auditor.app.checks.media import media_checks
from a11y_auditor.app.checks.navigation import consistent_navigation_check
from a11y_auditor.app.checks.predictability import predictability_checks
from a11y_auditor.app.checks.responsive import layout_checks
from a11y_auditor.app.checks.structure import structure_checks
from a11y_auditor.app.checks.wcag22 import wcag22_checks
from a11y_auditor.app.config import AuditorConfig
from a11y_auditor.app.schemas.criteria import Level

logger = logging.getLogger(__name__)


def build_default_checks(
    config: AuditorConfig,
    rule_engine: Optional[RuleEngine] = None,
) -> List[CheckUnit]:
    thresholds = config.HEURISTICS
    checks: List[CheckUnit] = []

    if config.ENABLE_AXE_CHECKS:
        engine = rule_engine or AxeRuleEngine.from_config(config)
        checks.extend(axe_checks(engine, Level(config.WCAG_LEVEL)))

    # DOM structure queries are cheap and always run.
    checks.extend(structure_checks())

    if config.ENABLE_KEYBOARD_CHECKS:
        checks.extend(keyboard_checks(thresholds))

    if config.ENABLE_LAYOUT_CHECKS:
        checks.extend(layout_checks(thresholds, config.SETTLE_DELAY_MS))

    if config.ENABLE_WCAG22_CHECKS:
        checks.extend(wcag22_checks(thresholds))

    if config.ENABLE_CONTENT_CHECKS:
        checks.extend(media_checks(thresholds))
        checks.extend(predictability_checks(thresholds))
        checks.extend(content_checks(thresholds))
        checks.extend(input_modality_checks(thresholds))

    if config.ENABLE_NAVIGATION_CHECKS and config.CRAWL_DEPTH > 0:
        checks.append(
            consistent_navigation_check(config.CRAWL_DEPTH, config.NAVIGATION_TIMEOUT_MS)
        )

    if config.ENABLE_MANUAL_FLAGS:
        checks.append(manual_flags_check())

    logger.debug("Registered %d check unit(s)", len(checks))
    return checks
