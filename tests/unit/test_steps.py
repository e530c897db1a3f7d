import random

import pytest

from careercoach.core.steps import (
    ALL_STEPS,
    PRACTICE_STEPS,
    Navigator,
    can_navigate,
    progress_display,
    progress_fraction,
)
from careercoach.errors import NavigationError

CANONICAL_PATH = ["landing", "upload", "job-description", "analysis", "dashboard"]


def test_go_back_reverses_most_recent_navigation() -> None:
    nav = Navigator()
    nav.navigate_to("upload")
    nav.navigate_to("job-description")
    nav.navigate_to("analysis")

    nav.go_back()
    assert nav.current == "job-description"
    nav.go_back()
    assert nav.current == "upload"


def test_go_back_on_empty_stack_is_noop() -> None:
    nav = Navigator()
    nav.go_back()
    nav.go_back()
    assert nav.current == "landing"
    assert nav.back_stack == []


def test_random_walks_are_reversible() -> None:
    rng = random.Random(7)
    nav = Navigator()
    for _ in range(200):
        options = [step for step in ALL_STEPS if can_navigate(nav.current, step)]
        before = (nav.current, list(nav.back_stack))
        nav.navigate_to(rng.choice(options))
        nav.go_back()
        assert (nav.current, nav.back_stack) == before
        nav.navigate_to(rng.choice(options))


def test_disallowed_edge_raises_and_keeps_state() -> None:
    nav = Navigator()
    with pytest.raises(NavigationError):
        nav.navigate_to("mock-interview")
    assert nav.current == "landing"
    assert nav.back_stack == []


def test_unknown_step_is_rejected() -> None:
    with pytest.raises(NavigationError):
        Navigator().navigate_to("settings")  # type: ignore[arg-type]


def test_dashboard_reaches_every_practice_module() -> None:
    for step in PRACTICE_STEPS:
        assert can_navigate("dashboard", step)
        assert can_navigate(step, "dashboard")
        assert can_navigate(step, "summary")


def test_global_targets_reachable_from_everywhere() -> None:
    for step in ALL_STEPS:
        assert can_navigate(step, "landing")
        assert can_navigate(step, "history")
        assert can_navigate(step, "upload")


def test_progress_is_monotonic_along_canonical_path() -> None:
    for module in PRACTICE_STEPS:
        path = CANONICAL_PATH + [module, "summary"]
        values = [progress_fraction(step) for step in path]
        assert values == sorted(values)
        assert values[-1] == 100


def test_progress_bounds() -> None:
    for step in ALL_STEPS:
        assert 0 <= progress_fraction(step) <= 100
    assert progress_fraction("history") == 0
    assert progress_fraction("landing") == 0
    assert progress_fraction("upload") >= 5


def test_progress_display_suppressed_for_landing_and_history() -> None:
    assert progress_display("landing") is None
    assert progress_display("history") is None
    assert progress_display("analysis") == progress_fraction("analysis")
