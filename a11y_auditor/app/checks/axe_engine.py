"""
DOM rule-analysis collaborator (axe-core).

axe-core is injected into the audited page with ``add_script_tag`` and run
with ``page.evaluate``. The engine returns axe's raw result payload; the
adapter checks in ``axe_checks`` translate it into issues and verdicts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence

from a11y_auditor.app.config import AuditorConfig
from a11y_auditor.app.page import scripts
from a11y_auditor.app.page.handle import PageHandle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuleResults:
    violations: List[Dict[str, Any]] = field(default_factory=list)
    incomplete: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_axe(cls, payload: Optional[Dict[str, Any]]) -> "RuleResults":
        payload = payload or {}
        return cls(
            violations=list(payload.get("violations") or []),
            incomplete=list(payload.get("incomplete") or []),
        )


class RuleEngine(Protocol):
    async def analyze(
        self,
        page: PageHandle,
        *,
        tags: Optional[Sequence[str]] = None,
        rules: Optional[Sequence[str]] = None,
    ) -> RuleResults:
        ...


class AxeRuleEngine:
    """Runs axe-core inside the page."""

    def __init__(
        self,
        *,
        script_url: Optional[str] = None,
        script_path: Optional[Path] = None,
    ) -> None:
        if script_url is None and script_path is None:
            raise ValueError("AxeRuleEngine requires a script URL or path")
        self._script_url = script_url
        self._script_path = script_path

    @classmethod
    def from_config(cls, config: AuditorConfig) -> "AxeRuleEngine":
        if config.AXE_SCRIPT_PATH is not None:
            return cls(script_path=config.AXE_SCRIPT_PATH)
        return cls(script_url=config.AXE_SCRIPT_URL)

    async def ensure_loaded(self, page: PageHandle) -> None:
        if await page.evaluate(scripts.AXE_PRESENT):
            return

        if self._script_path is not None:
            await page.add_script_tag(path=str(self._script_path))
        else:
            await page.add_script_tag(url=self._script_url)

        if not await page.evaluate(scripts.AXE_PRESENT):
            raise RuntimeError("axe-core did not load into the page")

        logger.debug("axe-core injected into %s", page.url)

    async def analyze(
        self,
        page: PageHandle,
        *,
        tags: Optional[Sequence[str]] = None,
        rules: Optional[Sequence[str]] = None,
    ) -> RuleResults:
        await self.ensure_loaded(page)

        options: Dict[str, Any] = {"resultTypes": ["violations"]}
        if rules:
            options["runOnly"] = {"type": "rule", "values": list(rules)}
        elif tags:
            options["runOnly"] = {"type": "tag", "values": list(tags)}

        payload = await page.evaluate(scripts.AXE_RUN, options)
        results = RuleResults.from_axe(payload)

        logger.debug(
            "axe-core run (%s) returned %d violation(s)",
            ",".join(rules or tags or ["all"]),
            len(results.violations),
        )
        return results
