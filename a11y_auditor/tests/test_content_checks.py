import pytest

from a11y_auditor.app.checks.content import (
    multiple_ways_check,
    navigation_methods_found,
    orientation_check,
    orientation_lock,
    status_messages_check,
)
from a11y_auditor.app.checks.input_modality import (
    character_shortcuts_check,
    gesture_signals,
    motion_actuation_check,
    pointer_gestures_check,
    single_key_shortcuts,
)
from a11y_auditor.app.checks.media import (
    animation_seconds,
    audio_control_check,
    captions_check,
    media_alternative_check,
    moving_content_check,
    needs_pause_control,
)
from a11y_auditor.app.checks.predictability import (
    changes_context,
    consistent_identification_check,
    distinct_labels,
    on_focus_check,
    on_input_check,
)
from a11y_auditor.app.checks.wcag22 import (
    accessible_authentication_check,
    authentication_problems,
)
from a11y_auditor.app.config import HeuristicThresholds
from a11y_auditor.app.page import scripts
from a11y_auditor.app.schemas.findings import Severity
from a11y_auditor.app.schemas.verdicts import VerdictStatus
from a11y_auditor.tests.fixtures.fake_page import FakePage, describe

pytestmark = pytest.mark.anyio

T = HeuristicThresholds()


def video(ref, **extra):
    return describe(ref, "video", kind="video", hasSource=True, **extra)


def audio(ref, **extra):
    return describe(ref, "audio", kind="audio", hasSource=True, **extra)


# ---------------------------------------------------------------------------
# Media
# ---------------------------------------------------------------------------


async def test_video_without_captions_fails():
    page = FakePage(
        handlers={
            scripts.MEDIA_ELEMENTS: {
                "media": [
                    video("a11y-1", captionTracks=0),
                    video("a11y-2", captionTracks=1),
                    describe("a11y-3", "video", kind="video", hasSource=False, captionTracks=0),
                ],
                "pauseControl": False,
            }
        }
    )

    verdict = await captions_check(T).run(page)

    assert verdict.status == VerdictStatus.FAIL
    assert len(verdict.issues) == 1
    assert verdict.issues[0].severity == Severity.CRITICAL
    assert page.calls[0] == (scripts.MEDIA_ELEMENTS, {"limit": T.CONTENT_SAMPLE})


async def test_page_without_media_passes_captions():
    page = FakePage(handlers={scripts.MEDIA_ELEMENTS: {"media": [], "pauseControl": False}})

    assert (await captions_check(T).run(page)).status == VerdictStatus.PASS


async def test_audio_without_transcript_is_a_warning():
    page = FakePage(
        handlers={
            scripts.MEDIA_ELEMENTS: {
                "media": [
                    audio("a11y-1", describedBy=False, transcriptNearby=False),
                    audio("a11y-2", describedBy=False, transcriptNearby=True),
                ],
                "pauseControl": False,
            }
        }
    )

    verdict = await media_alternative_check(T).run(page)

    assert verdict.status == VerdictStatus.WARNING
    assert len(verdict.issues) == 1
    assert "<audio>" in verdict.issues[0].description


async def test_autoplaying_audio_needs_a_control():
    media = [
        audio("a11y-1", autoplay=True, muted=False, controls=False),
        video("a11y-2", autoplay=True, muted=True, controls=False),
    ]
    page = FakePage(handlers={scripts.MEDIA_ELEMENTS: {"media": media, "pauseControl": False}})

    verdict = await audio_control_check(T).run(page)

    assert verdict.status == VerdictStatus.FAIL
    assert len(verdict.issues) == 1
    assert "<audio>" in verdict.issues[0].description

    with_button = FakePage(handlers={scripts.MEDIA_ELEMENTS: {"media": media, "pauseControl": True}})
    assert (await audio_control_check(T).run(with_button)).status == VerdictStatus.PASS


def test_animation_duration_parsing():
    assert animation_seconds("10s") == 10.0
    assert animation_seconds("500ms") == 0.5
    assert animation_seconds("1s, 7.5s") == 7.5
    assert animation_seconds("") == 0.0
    assert animation_seconds(None) == 0.0

    assert needs_pause_control({"animationIterationCount": "infinite", "animationDuration": "1s"}, 5.0)
    assert not needs_pause_control({"animationIterationCount": "1", "animationDuration": "2s"}, 5.0)
    assert needs_pause_control({"animationIterationCount": "1", "animationDuration": "6s"}, 5.0)


async def test_marquee_and_endless_animation_fail():
    page = FakePage(
        handlers={
            scripts.MOVING_CONTENT: {
                "legacy": [describe("a11y-1", "marquee")],
                "animated": [
                    describe("a11y-2", "div", animationDuration="1s", animationIterationCount="infinite"),
                    describe("a11y-3", "div", animationDuration="0.3s", animationIterationCount="1"),
                ],
                "blinking": [],
                "pauseControl": False,
            }
        }
    )

    verdict = await moving_content_check(T).run(page)

    assert verdict.status == VerdictStatus.FAIL
    assert [i.severity for i in verdict.issues] == [Severity.CRITICAL, Severity.SERIOUS]


async def test_pause_control_allows_long_animation():
    page = FakePage(
        handlers={
            scripts.MOVING_CONTENT: {
                "legacy": [],
                "animated": [
                    describe("a11y-1", "div", animationDuration="1s", animationIterationCount="infinite")
                ],
                "blinking": [],
                "pauseControl": True,
            }
        }
    )

    assert (await moving_content_check(T).run(page)).status == VerdictStatus.PASS


# ---------------------------------------------------------------------------
# Predictability
# ---------------------------------------------------------------------------


def test_context_change_detection():
    assert changes_context("window.location='/next'")
    assert changes_context("this.form.submit()")
    assert not changes_context("updateTotal(this)")
    assert not changes_context("next.focus()")
    assert changes_context("next.focus()", on_focus=True)


async def test_focus_handler_opening_a_window_fails():
    page = FakePage(
        handlers={
            scripts.FOCUS_HANDLERS: [
                describe("a11y-1", "input", handler="window.open('/help')"),
                describe("a11y-2", "input", handler="this.select()"),
            ]
        }
    )

    verdict = await on_focus_check(T).run(page)

    assert verdict.status == VerdictStatus.FAIL
    assert len(verdict.issues) == 1
    assert "window.open" in verdict.issues[0].description


async def test_select_submitting_on_change_fails():
    page = FakePage(
        handlers={
            scripts.INPUT_HANDLERS: {
                "controls": [
                    describe("a11y-1", "select", handler="this.form.submit() "),
                    describe("a11y-2", "input", handler="updateTotal() "),
                ],
                "forms": [describe("a11y-3", "form")],
            }
        }
    )

    verdict = await on_input_check(T).run(page)

    assert verdict.status == VerdictStatus.FAIL
    assert len(verdict.issues) == 2
    assert "<select>" in verdict.issues[0].description
    assert "no submit button" in verdict.issues[1].description


def test_distinct_labels_ignore_case_and_spacing():
    assert distinct_labels(["Search", "search ", "Go"]) == ["Search", "Go"]
    assert distinct_labels(["", "  "]) == []


async def test_inconsistent_search_labels_fail():
    page = FakePage(
        handlers={scripts.IDENTIFICATION_LABELS: {"search": ["Search", "Find"], "home": ["Home", "home"]}}
    )

    verdict = await consistent_identification_check().run(page)

    assert verdict.status == VerdictStatus.FAIL
    assert len(verdict.issues) == 1
    assert verdict.issues[0].description == 'Search is labelled inconsistently: "Search", "Find"'
    assert verdict.issues[0].is_page_wide


async def test_no_labelled_functions_pass():
    page = FakePage(handlers={scripts.IDENTIFICATION_LABELS: {"search": [], "home": []}})

    assert (await consistent_identification_check().run(page)).status == VerdictStatus.PASS


# ---------------------------------------------------------------------------
# Page content
# ---------------------------------------------------------------------------


def test_orientation_lock_rules():
    assert orientation_lock({"css": "@media (orientation: portrait) { body { display: none; } }"}) == "hides the page"
    assert orientation_lock({"css": "@media (orientation: landscape) { html { transform: rotate(-90deg); } }"}) == "rotates content"
    assert orientation_lock({"css": "@media (orientation: portrait) { .sidebar { display: none; } }"}) is None


async def test_locked_orientation_fails():
    page = FakePage(
        handlers={
            scripts.ORIENTATION_RULES: {
                "viewport": "width=device-width, orientation=portrait",
                "rules": [
                    {
                        "media": "(orientation: landscape)",
                        "css": "@media (orientation: landscape) { html { transform: rotate(-90deg); } }",
                    },
                    {
                        "media": "(orientation: portrait)",
                        "css": "@media (orientation: portrait) { .sidebar { display: none; } }",
                    },
                ],
            }
        }
    )

    verdict = await orientation_check(T).run(page)

    assert verdict.status == VerdictStatus.FAIL
    assert [i.severity for i in verdict.issues] == [Severity.SERIOUS, Severity.MODERATE]
    assert verdict.issues[1].description == "@media (orientation: landscape) rotates content"
    assert page.calls[0] == (scripts.ORIENTATION_RULES, T.CONTENT_SAMPLE)


async def test_unlocked_orientation_passes():
    page = FakePage(
        handlers={scripts.ORIENTATION_RULES: {"viewport": "width=device-width, initial-scale=1", "rules": []}}
    )

    assert (await orientation_check(T).run(page)).status == VerdictStatus.PASS


def test_navigation_methods_are_listed_in_order():
    assert navigation_methods_found({"footer": True, "search": True, "menu": False}) == [
        "search",
        "footer navigation",
    ]


async def test_single_way_to_find_pages_fails():
    page = FakePage(handlers={scripts.NAVIGATION_METHODS: {"menu": True}})

    verdict = await multiple_ways_check(T).run(page)

    assert verdict.status == VerdictStatus.FAIL
    assert "Only 1 way(s)" in verdict.issues[0].description
    assert "navigation menu" in verdict.issues[0].description

    both = FakePage(handlers={scripts.NAVIGATION_METHODS: {"menu": True, "search": True}})
    assert (await multiple_ways_check(T).run(both)).status == VerdictStatus.PASS


async def test_missing_live_regions_warn():
    page = FakePage(handlers={scripts.STATUS_REGIONS: {"roles": 0, "live": 0, "output": 0}})

    verdict = await status_messages_check().run(page)

    assert verdict.status == VerdictStatus.WARNING
    assert verdict.issues[0].severity == Severity.MINOR
    assert verdict.issues[0].is_page_wide


async def test_live_region_passes_status_messages():
    page = FakePage(handlers={scripts.STATUS_REGIONS: {"roles": 0, "live": 2, "output": 0}})

    assert (await status_messages_check().run(page)).status == VerdictStatus.PASS


# ---------------------------------------------------------------------------
# Input modalities
# ---------------------------------------------------------------------------


def test_single_key_shortcut_detection():
    assert single_key_shortcuts("if (e.key === 's') save(); if (e.key == \"/\") focusSearch();") == ["s", "/"]
    assert single_key_shortcuts("if (e.ctrlKey && e.key === 's') save();") == []
    assert single_key_shortcuts("if (e.key === 'Escape') close();") == []


async def test_single_key_shortcut_warns():
    source = "document.addEventListener('keydown', e => { if (e.key === 'j') next(); })"
    page = FakePage(handlers={scripts.INLINE_HANDLER_SOURCE: source})

    verdict = await character_shortcuts_check(T).run(page)

    assert verdict.status == VerdictStatus.WARNING
    assert '"j"' in verdict.issues[0].description
    assert page.calls[0] == (scripts.INLINE_HANDLER_SOURCE, T.HANDLER_SOURCE_LIMIT)


def test_gesture_signals():
    assert gesture_signals("if (e.touches.length > 1) zoom(); swipe.init();") == [
        "swipe",
        "touches.length > 1",
    ]
    assert gesture_signals("button.onclick = go;") == []


async def test_draggable_without_buttons_warns():
    page = FakePage(
        handlers={
            scripts.INLINE_HANDLER_SOURCE: "",
            scripts.DRAGGABLE_ELEMENTS: [describe("a11y-1", "li")],
        }
    )

    verdict = await pointer_gestures_check(T).run(page)

    assert verdict.status == VerdictStatus.WARNING
    assert len(verdict.issues) == 1
    assert not verdict.issues[0].is_page_wide


async def test_no_gestures_pass():
    page = FakePage(handlers={scripts.INLINE_HANDLER_SOURCE: "", scripts.DRAGGABLE_ELEMENTS: []})

    assert (await pointer_gestures_check(T).run(page)).status == VerdictStatus.PASS


async def test_device_motion_warns():
    page = FakePage(
        handlers={scripts.INLINE_HANDLER_SOURCE: "window.addEventListener('devicemotion', onShake)"}
    )

    verdict = await motion_actuation_check(T).run(page)

    assert verdict.status == VerdictStatus.WARNING
    assert "devicemotion" in verdict.issues[0].description

    quiet = FakePage(handlers={scripts.INLINE_HANDLER_SOURCE: ""})
    assert (await motion_actuation_check(T).run(quiet)).status == VerdictStatus.PASS


# ---------------------------------------------------------------------------
# Accessible authentication
# ---------------------------------------------------------------------------


def test_authentication_problem_rules():
    assert authentication_problems(
        {"autocomplete": "current-password", "usernameAutocomplete": "username", "pasteBlocked": False}
    ) == []
    assert authentication_problems(
        {"autocomplete": "off", "usernameAutocomplete": None, "pasteBlocked": True}
    ) == [
        "Pasting into the password field is blocked",
        "Password field missing proper autocomplete (found: off)",
    ]
    assert authentication_problems({"autocomplete": "", "usernameAutocomplete": ""}) == [
        "Password field missing proper autocomplete (found: none)",
        "Username field missing proper autocomplete (found: none)",
    ]


async def test_blocked_paste_on_login_warns():
    page = FakePage(
        handlers={
            scripts.AUTH_FIELDS: [
                describe("a11y-1", "input", autocomplete="off", usernameAutocomplete=None, pasteBlocked=True)
            ]
        }
    )

    verdict = await accessible_authentication_check(T).run(page)

    assert verdict.status == VerdictStatus.WARNING
    assert len(verdict.issues) == 2
