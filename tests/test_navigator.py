from __future__ import annotations

import pytest
from playwright.sync_api import Error as PlaywrightError

from fakes import FakeElement, FakeLotteryPage, FakePage
from scraper.errors import NavigationError
from scraper.navigator import DrawNavigator, NavigatorState, parse_draw_number


def build_navigator(page, test_settings) -> DrawNavigator:
    return DrawNavigator.from_settings(page, test_settings)


def test_parse_draw_number():
    assert parse_draw_number("Lottery\nDraw # 64\nJackpot") == 64
    assert parse_draw_number("draw #7") == 7
    assert parse_draw_number("No draws yet") is None
    assert parse_draw_number(None) is None


def test_position_reads_current_draw(test_settings):
    page = FakeLotteryPage(latest=64)
    navigator = build_navigator(page, test_settings)

    assert navigator.position() == 64
    assert navigator.state is NavigatorState.POSITIONED
    assert page.visited == [str(test_settings.lottery_results_url)]


def test_navigate_to_current_draw_needs_no_interaction(test_settings):
    page = FakeLotteryPage(latest=64)
    navigator = build_navigator(page, test_settings)

    assert navigator.navigate_to(64) == 64
    assert navigator.interactions == 0
    assert navigator.state is NavigatorState.ON_TARGET


def test_interaction_count_matches_distance(test_settings):
    page = FakeLotteryPage(latest=64)
    navigator = build_navigator(page, test_settings)

    assert navigator.navigate_to(60) == 60
    assert navigator.interactions == 4
    assert page.previous_button.clicks == 4
    assert page.next_button.clicks == 0


def test_navigator_keeps_position_between_targets(test_settings):
    page = FakeLotteryPage(latest=64)
    navigator = build_navigator(page, test_settings)

    navigator.navigate_to(63)
    navigator.navigate_to(61)
    navigator.navigate_to(62)

    assert navigator.current_draw == 62
    assert len(page.visited) == 1
    assert navigator.interactions == 4
    assert page.previous_button.clicks == 3
    assert page.next_button.clicks == 1


def test_missing_control_raises_navigation_error(test_settings):
    page = FakeLotteryPage(latest=64, with_controls=False)
    navigator = build_navigator(page, test_settings)

    with pytest.raises(NavigationError, match="previous"):
        navigator.navigate_to(63)
    assert navigator.state is NavigatorState.UNPOSITIONED


def test_disabled_controls_are_ignored(test_settings):
    page = FakeLotteryPage(latest=64)
    page.previous_button.attributes["aria-disabled"] = "true"
    navigator = build_navigator(page, test_settings)

    with pytest.raises(NavigationError):
        navigator.navigate_to(63)


def test_visible_text_is_used_when_no_accessible_name(test_settings):
    page = FakeLotteryPage(latest=10)
    page.controls = [FakeElement(text="Previous", on_click=page._previous)]
    navigator = build_navigator(page, test_settings)

    assert navigator.navigate_to(9) == 9


def test_stuck_page_fails_arrival_check(test_settings):
    page = FakeLotteryPage(latest=64)
    page.previous_button.on_click = None
    navigator = build_navigator(page, test_settings)

    with pytest.raises(NavigationError, match="Expected draw 63 but page shows draw 64"):
        navigator.navigate_to(63)


def test_load_failure_raises_navigation_error(test_settings):
    page = FakeLotteryPage(latest=64, goto_error=PlaywrightError("net::ERR_TIMED_OUT"))
    navigator = build_navigator(page, test_settings)

    with pytest.raises(NavigationError, match="Failed to load"):
        navigator.navigate_to(64)


def test_unrendered_draw_number_times_out(test_settings):
    page = FakePage(text="Loading...")
    navigator = build_navigator(page, test_settings)

    with pytest.raises(NavigationError, match="No draw number rendered"):
        navigator.position()
    # read_timeout 100ms / poll 50ms -> two reads, one wait in between
    assert page.waits.count(test_settings.poll_interval_ms) == 1


def test_invalid_target_is_rejected(test_settings):
    navigator = build_navigator(FakeLotteryPage(latest=5), test_settings)
    with pytest.raises(NavigationError):
        navigator.navigate_to(0)
