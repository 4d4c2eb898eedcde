"""
Runtime configuration for the accessibility auditor.

This module centralizes environment-driven configuration, execution gates,
resource limits, and every heuristic threshold used by the detectors
(focus walker, layout probe, element locator, evidence binder).

Configuration is read-only at runtime. Heuristic thresholds are tunable;
they are not correctness contracts.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class HeuristicThresholds(BaseModel):
    """
    Named heuristic constants shared by all detectors.

    Keeping them in one place prevents each component from re-deriving
    its own size, timing and position deltas.
    """

    # ------------------------------------------------------------------
    # Focus walker
    # ------------------------------------------------------------------

    TRAP_MAX_STEPS: int = Field(20, ge=1, description="Forward steps inspected for traps")
    TRAP_ESCAPE_ATTEMPTS: int = Field(5, ge=1, description="Escape presses per position")
    TRAP_CYCLE_SIZE: int = Field(
        2,
        ge=1,
        description="Maximum distinct elements a focus cycle may span and still count as a trap",
    )
    FOCUS_ORDER_MAX_STEPS: int = Field(50, ge=1)
    FOCUS_ORDER_DELTA_X: float = Field(
        50.0, ge=0, description="Leftward jump (px) that counts as out of reading order"
    )
    FOCUS_ORDER_DELTA_Y: float = Field(
        50.0, ge=0, description="Upward jump (px) that counts as out of reading order"
    )
    FOCUS_VISIBLE_SAMPLE: int = Field(15, ge=1)
    KEYBOARD_SAMPLE: int = Field(20, ge=1)

    # ------------------------------------------------------------------
    # Layout probe
    # ------------------------------------------------------------------

    OVERFLOW_TOLERANCE_PX: int = Field(2, ge=0)
    VERTICAL_SCROLL_ALLOWANCE_PX: int = Field(40, ge=0)
    MAX_OVERFLOW_OFFENDERS: int = Field(5, ge=1)
    REFLOW_VIEWPORT_WIDTH: int = Field(320, ge=1)
    REFLOW_ZOOM_FACTOR: float = Field(2.0, gt=0)
    ANIMATION_SAMPLE: int = Field(200, ge=1)

    # ------------------------------------------------------------------
    # Element locator
    # ------------------------------------------------------------------

    MOBILE_VIEWPORT_WIDTH: int = Field(375, ge=1)
    MOBILE_VIEWPORT_HEIGHT: int = Field(667, ge=1)
    CONTAINER_MAX_WIDTH: float = Field(1000.0, gt=0)
    CONTAINER_MAX_HEIGHT: float = Field(800.0, gt=0)
    CONTAINER_VIEWPORT_RATIO: float = Field(0.4, gt=0, le=1)
    CONTAINER_MIN_CHILDREN: int = Field(5, ge=0)
    MARKUP_PREFIX_LENGTH: int = Field(300, ge=1)
    TEXT_SIMILARITY_LENGTH: int = Field(100, ge=1)
    TEXT_SIMILARITY_MIN: float = Field(
        0.6,
        ge=0,
        le=1,
        description="Minimum leading-text similarity for a bare-tag structural match",
    )
    LOCATOR_CANDIDATE_LIMIT: int = Field(25, ge=1)

    # ------------------------------------------------------------------
    # Evidence and WCAG 2.2 heuristics
    # ------------------------------------------------------------------

    EVIDENCE_PADDING_PX: int = Field(16, ge=0)
    MIN_TARGET_SIZE_PX: float = Field(24.0, gt=0)
    WCAG22_SAMPLE: int = Field(30, ge=1)

    # ------------------------------------------------------------------
    # Content heuristics
    # ------------------------------------------------------------------

    CONTENT_SAMPLE: int = Field(50, ge=1)
    MOVING_CONTENT_MAX_SECONDS: float = Field(
        5.0, gt=0, description="Longest animation that needs no pause control"
    )
    MIN_NAVIGATION_METHODS: int = Field(2, ge=1)
    HANDLER_SOURCE_LIMIT: int = Field(
        200_000, ge=1, description="Characters of inline script scanned for input handlers"
    )

    model_config = ConfigDict(frozen=True, extra="forbid")


class AuditorConfig(BaseModel):
    """
    Runtime configuration for the accessibility auditor.

    Environment-driven, read-only at runtime.
    """

    # ------------------------------------------------------------------
    # Execution gates
    # ------------------------------------------------------------------

    ENABLE_AXE_CHECKS: bool = Field(True, description="Run axe-core rule analysis")
    ENABLE_KEYBOARD_CHECKS: bool = Field(True, description="Run focus traversal checks")
    ENABLE_LAYOUT_CHECKS: bool = Field(True, description="Run reflow/zoom/spacing checks")
    ENABLE_WCAG22_CHECKS: bool = Field(True, description="Run WCAG 2.2 heuristics")
    ENABLE_CONTENT_CHECKS: bool = Field(
        True, description="Run media, predictability and input-modality heuristics"
    )
    ENABLE_NAVIGATION_CHECKS: bool = Field(
        False,
        description="Open auxiliary pages to compare navigation across the site",
    )
    ENABLE_MANUAL_FLAGS: bool = Field(True, description="Emit manual-required verdicts")
    ENABLE_EVIDENCE_CAPTURE: bool = Field(True, description="Capture screenshots for failures")

    WCAG_LEVEL: Literal["A", "AA", "AAA"] = Field(
        "AA",
        description="Conformance level used to select axe-core tags",
    )

    # ------------------------------------------------------------------
    # Time limits
    # ------------------------------------------------------------------

    CHECK_TIMEOUT_SECONDS: float = Field(
        60.0,
        gt=0,
        description="Per-check time budget; exceeding it degrades the check to a warning",
    )
    NAVIGATION_TIMEOUT_MS: int = Field(30_000, gt=0)
    SETTLE_DELAY_MS: int = Field(
        300,
        ge=0,
        description="Delay after a page-state perturbation before measuring",
    )

    # ------------------------------------------------------------------
    # Rule engine (axe-core)
    # ------------------------------------------------------------------

    AXE_SCRIPT_URL: Optional[str] = Field(
        "https://cdnjs.cloudflare.com/ajax/libs/axe-core/4.9.1/axe.min.js",
        description="URL of the axe-core bundle injected into audited pages",
    )
    AXE_SCRIPT_PATH: Optional[Path] = Field(
        None,
        description="Local axe-core bundle; takes precedence over AXE_SCRIPT_URL",
    )

    # ------------------------------------------------------------------
    # Evidence
    # ------------------------------------------------------------------

    EVIDENCE_DIR: Optional[Path] = Field(
        None,
        description="Directory for PNG evidence; evidence is kept in memory when unset",
    )
    MAX_EVIDENCE_PER_VERDICT: int = Field(3, ge=1)

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------

    STREAM_MAX_PENDING_EVENTS: int = Field(
        500,
        ge=1,
        description="Progress events buffered for a slow SSE client before the oldest is dropped",
    )

    # ------------------------------------------------------------------
    # Cross-page analysis
    # ------------------------------------------------------------------

    CRAWL_DEPTH: int = Field(3, ge=0)

    HEURISTICS: HeuristicThresholds = Field(default_factory=HeuristicThresholds)

    # ------------------------------------------------------------------
    # Validators (Pydantic v2)
    # ------------------------------------------------------------------

    @field_validator("AXE_SCRIPT_PATH")
    @classmethod
    def axe_script_must_exist(cls, v: Optional[Path]) -> Optional[Path]:
        if v is None:
            return v
        if not v.is_file():
            raise ValueError(f"Configured AXE_SCRIPT_PATH is not a file: {v}")
        return v

    @field_validator("EVIDENCE_DIR")
    @classmethod
    def evidence_dir_not_a_file(cls, v: Optional[Path]) -> Optional[Path]:
        if v is not None and v.exists() and not v.is_dir():
            raise ValueError(f"Configured EVIDENCE_DIR is not a directory: {v}")
        return v

    @model_validator(mode="after")
    def axe_source_configured(self) -> "AuditorConfig":
        # Runs on defaults too; field validators do not.
        if (
            self.ENABLE_AXE_CHECKS
            and not self.AXE_SCRIPT_URL
            and self.AXE_SCRIPT_PATH is None
        ):
            raise ValueError(
                "ENABLE_AXE_CHECKS is true but neither AXE_SCRIPT_URL "
                "nor AXE_SCRIPT_PATH is configured."
            )
        return self

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls) -> "AuditorConfig":
        """
        Load configuration from environment variables.

        Unset variables fall back to the field defaults.
        """

        def env_bool(name: str, default: bool) -> bool:
            raw = os.getenv(name)
            if raw is None:
                return default
            return raw.lower() in {"1", "true", "yes", "on"}

        axe_path_env = os.getenv("A11Y_AUDITOR_AXE_SCRIPT_PATH")
        evidence_dir_env = os.getenv("A11Y_AUDITOR_EVIDENCE_DIR")

        return cls(
            ENABLE_AXE_CHECKS=env_bool("A11Y_AUDITOR_ENABLE_AXE_CHECKS", True),
            ENABLE_KEYBOARD_CHECKS=env_bool("A11Y_AUDITOR_ENABLE_KEYBOARD_CHECKS", True),
            ENABLE_LAYOUT_CHECKS=env_bool("A11Y_AUDITOR_ENABLE_LAYOUT_CHECKS", True),
            ENABLE_WCAG22_CHECKS=env_bool("A11Y_AUDITOR_ENABLE_WCAG22_CHECKS", True),
            ENABLE_CONTENT_CHECKS=env_bool("A11Y_AUDITOR_ENABLE_CONTENT_CHECKS", True),
            ENABLE_NAVIGATION_CHECKS=env_bool(
                "A11Y_AUDITOR_ENABLE_NAVIGATION_CHECKS", False
            ),
            ENABLE_MANUAL_FLAGS=env_bool("A11Y_AUDITOR_ENABLE_MANUAL_FLAGS", True),
            ENABLE_EVIDENCE_CAPTURE=env_bool(
                "A11Y_AUDITOR_ENABLE_EVIDENCE_CAPTURE", True
            ),
            WCAG_LEVEL=os.getenv("A11Y_AUDITOR_WCAG_LEVEL", "AA"),
            CHECK_TIMEOUT_SECONDS=float(
                os.getenv("A11Y_AUDITOR_CHECK_TIMEOUT_SECONDS", "60")
            ),
            NAVIGATION_TIMEOUT_MS=int(
                os.getenv("A11Y_AUDITOR_NAVIGATION_TIMEOUT_MS", "30000")
            ),
            SETTLE_DELAY_MS=int(os.getenv("A11Y_AUDITOR_SETTLE_DELAY_MS", "300")),
            AXE_SCRIPT_URL=os.getenv(
                "A11Y_AUDITOR_AXE_SCRIPT_URL",
                "https://cdnjs.cloudflare.com/ajax/libs/axe-core/4.9.1/axe.min.js",
            ),
            AXE_SCRIPT_PATH=Path(axe_path_env) if axe_path_env else None,
            EVIDENCE_DIR=Path(evidence_dir_env) if evidence_dir_env else None,
            MAX_EVIDENCE_PER_VERDICT=int(
                os.getenv("A11Y_AUDITOR_MAX_EVIDENCE_PER_VERDICT", "3")
            ),
            CRAWL_DEPTH=int(os.getenv("A11Y_AUDITOR_CRAWL_DEPTH", "3")),
            STREAM_MAX_PENDING_EVENTS=int(
                os.getenv("A11Y_AUDITOR_STREAM_MAX_PENDING_EVENTS", "500")
            ),
        )

    model_config = ConfigDict(frozen=True)
