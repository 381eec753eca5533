"""Drive the rendered lottery results page to a specific draw."""

from __future__ import annotations

import re
from enum import Enum
from typing import Any

from loguru import logger
from playwright.sync_api import Error as PlaywrightError

from app.core.config import Settings

from .errors import NavigationError

_DRAW_NUMBER_RE = re.compile(r"Draw\s*#\s*(\d+)", re.IGNORECASE)

_CONTROL_SELECTOR = "button, [role='button'], a"

_PREVIOUS_HINTS = re.compile(r"\b(?:prev(?:ious)?|back|older|earlier)\b|[‹<←«]", re.IGNORECASE)
_NEXT_HINTS = re.compile(r"\b(?:next|forward|newer|later)\b|[›>→»]", re.IGNORECASE)


class NavigatorState(str, Enum):
    UNPOSITIONED = "unpositioned"
    POSITIONED = "positioned"
    ON_TARGET = "on_target"


class Direction(str, Enum):
    PREVIOUS = "previous"
    NEXT = "next"


def parse_draw_number(text: str | None) -> int | None:
    """Return ``N`` from the first ``Draw #N`` marker in ``text``."""

    if not text:
        return None
    match = _DRAW_NUMBER_RE.search(text)
    return int(match.group(1)) if match else None


class DrawNavigator:
    """Moves one page between draws with previous/next interactions.

    States run ``UNPOSITIONED`` -> ``POSITIONED`` (surface loaded, current draw
    read) -> ``ON_TARGET`` (displayed draw confirmed equal to the request).
    Any failure raises :class:`NavigationError`; nothing is retried.
    """

    def __init__(
        self,
        page: Any,
        *,
        url: str,
        navigation_timeout_ms: int = 60_000,
        read_timeout_ms: int = 30_000,
        settle_wait_ms: int = 3_000,
        interaction_wait_ms: int = 1_500,
        poll_interval_ms: int = 500,
    ) -> None:
        self.page = page
        self.url = url
        self.navigation_timeout_ms = navigation_timeout_ms
        self.read_timeout_ms = read_timeout_ms
        self.settle_wait_ms = settle_wait_ms
        self.interaction_wait_ms = interaction_wait_ms
        self.poll_interval_ms = poll_interval_ms
        self.state = NavigatorState.UNPOSITIONED
        self.current_draw: int | None = None
        self.interactions = 0

    @classmethod
    def from_settings(cls, page: Any, settings: Settings) -> "DrawNavigator":
        return cls(
            page,
            url=str(settings.lottery_results_url),
            navigation_timeout_ms=settings.navigation_timeout_ms,
            read_timeout_ms=settings.draw_read_timeout_ms,
            settle_wait_ms=settings.settle_wait_ms,
            interaction_wait_ms=settings.interaction_wait_ms,
            poll_interval_ms=settings.poll_interval_ms,
        )

    def position(self) -> int:
        """Load the results surface and read the currently displayed draw."""

        logger.info("Loading lottery results surface {}", self.url)
        try:
            self.page.goto(
                self.url, wait_until="networkidle", timeout=self.navigation_timeout_ms
            )
        except PlaywrightError as exc:
            self.state = NavigatorState.UNPOSITIONED
            raise NavigationError(f"Failed to load {self.url}: {exc}") from exc
        self.page.wait_for_timeout(self.settle_wait_ms)
        self.current_draw = self._await_draw_number()
        self.state = NavigatorState.POSITIONED
        logger.info("Results surface positioned on draw {}", self.current_draw)
        return self.current_draw

    def navigate_to(self, target: int) -> int:
        """Reach ``target`` and confirm the page displays it."""

        if target < 1:
            raise NavigationError(f"Draw {target} is not a valid draw number")
        if self.state is NavigatorState.UNPOSITIONED:
            current = self.position()
        else:
            current = self.current_draw = self._await_draw_number()
            self.state = NavigatorState.POSITIONED

        delta = current - target
        if delta:
            direction = Direction.PREVIOUS if delta > 0 else Direction.NEXT
            logger.info(
                "Moving from draw {} to {} ({} x {})",
                current,
                target,
                abs(delta),
                direction.value,
            )
            for _ in range(abs(delta)):
                self._interact(direction)

        arrived = self._await_draw_number(expected=target)
        self.current_draw = arrived
        self.state = NavigatorState.ON_TARGET
        return arrived

    def read_draw_number(self) -> int | None:
        try:
            text = self.page.inner_text("body", timeout=self.read_timeout_ms)
        except PlaywrightError as exc:
            logger.debug("Could not read page text: {}", exc)
            return None
        return parse_draw_number(text)

    def _await_draw_number(self, expected: int | None = None) -> int:
        attempts = max(1, self.read_timeout_ms // self.poll_interval_ms)
        last_seen: int | None = None
        for attempt in range(attempts):
            last_seen = self.read_draw_number()
            if last_seen is not None and (expected is None or last_seen == expected):
                return last_seen
            if attempt + 1 < attempts:
                self.page.wait_for_timeout(self.poll_interval_ms)

        self.state = NavigatorState.UNPOSITIONED
        if last_seen is None:
            raise NavigationError(
                f"No draw number rendered within {self.read_timeout_ms}ms"
            )
        raise NavigationError(f"Expected draw {expected} but page shows draw {last_seen}")

    def _interact(self, direction: Direction) -> None:
        control = self._find_control(direction)
        if control is None:
            self.state = NavigatorState.UNPOSITIONED
            raise NavigationError(f"No '{direction.value}' control found on results page")
        try:
            control.click(timeout=self.read_timeout_ms)
        except PlaywrightError as exc:
            self.state = NavigatorState.UNPOSITIONED
            raise NavigationError(f"'{direction.value}' interaction failed: {exc}") from exc
        self.interactions += 1
        self.page.wait_for_timeout(self.interaction_wait_ms)

    def _find_control(self, direction: Direction) -> Any | None:
        hints = _PREVIOUS_HINTS if direction is Direction.PREVIOUS else _NEXT_HINTS
        elements = [
            element
            for element in self.page.query_selector_all(_CONTROL_SELECTOR)
            if not _is_disabled(element)
        ]
        # Accessible names win over visible text.
        for element in elements:
            if any(hints.search(label) for label in _attribute_labels(element)):
                return element
        for element in elements:
            text = (element.inner_text() or "").strip()
            if text and hints.search(text):
                return element
        return None


def _is_disabled(element: Any) -> bool:
    if element.get_attribute("disabled") is not None:
        return True
    return (element.get_attribute("aria-disabled") or "").lower() == "true"


def _attribute_labels(element: Any) -> list[str]:
    labels = [element.get_attribute("aria-label"), element.get_attribute("title")]
    return [label.strip() for label in labels if label and label.strip()]


__all__ = ["Direction", "DrawNavigator", "NavigatorState", "parse_draw_number"]
