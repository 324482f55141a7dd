"""Tests for screen and overlay routing."""

from __future__ import annotations

import pytest

from relaycode.app.router import EXIT, Overlay, RouteChange, Router, Screen


def test_starts_on_splash() -> None:
    router = Router()

    assert router.screen is Screen.SPLASH
    assert router.overlay is Overlay.NONE


def test_show_closes_overlay() -> None:
    router = Router(Screen.DASHBOARD)
    router.open_overlay(Overlay.HELP)

    router.show(Screen.REVIEW)

    assert router.overlay is Overlay.NONE


def test_toggle_overlay() -> None:
    router = Router(Screen.DASHBOARD)

    router.toggle_overlay(Overlay.LOG)
    assert router.overlay is Overlay.LOG
    router.toggle_overlay(Overlay.DEBUG)
    assert router.overlay is Overlay.DEBUG
    router.toggle_overlay(Overlay.DEBUG)
    assert router.overlay is Overlay.NONE


@pytest.mark.parametrize("screen", [Screen.SPLASH, Screen.DASHBOARD])
def test_back_from_top_level_exits(screen: Screen) -> None:
    router = Router(screen)

    assert router.back() == EXIT
    assert router.exit_requested


@pytest.mark.parametrize(
    "screen",
    [
        Screen.REVIEW,
        Screen.REVIEW_PROCESSING,
        Screen.GIT_COMMIT,
        Screen.TRANSACTION_DETAIL,
        Screen.TRANSACTION_HISTORY,
    ],
)
def test_back_returns_to_dashboard(screen: Screen) -> None:
    router = Router(screen)

    assert router.back() is Screen.DASHBOARD
    assert router.screen is Screen.DASHBOARD
    assert not router.exit_requested


def test_listeners_see_changes_only() -> None:
    router = Router(Screen.DASHBOARD)
    changes: list[RouteChange] = []
    router.subscribe(changes.append)

    router.show(Screen.DASHBOARD)
    router.show(Screen.REVIEW)

    assert changes == [
        RouteChange(
            previous_screen=Screen.DASHBOARD,
            screen=Screen.REVIEW,
            previous_overlay=Overlay.NONE,
            overlay=Overlay.NONE,
        )
    ]
