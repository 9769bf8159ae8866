# tests/test_actions.py
"""
Tests for PageActions.
"""

import logging

import pytest

from mobileauto import context
from mobileauto.actions import PageActions, require_text
from mobileauto.descriptor import ElementDescriptor
from mobileauto.exceptions import (ActionError, ConditionTimeout, InvalidArgument,
                                   ResolutionFailure)
from mobileauto.resolver import Resolver
from tests.fakes import FakeElement, FakeSession

SEARCH_BOX = ElementDescriptor.by_id("org.wikipedia.alpha:id/preference_languages_filter", "Language Search Box")
SETTINGS = ElementDescriptor.by_id("org.wikipedia.alpha:id/explore_overflow_settings", "Settings Option")
ADD_PRIMARY = ElementDescriptor.by_uiautomator('new UiSelector().text("Add to Reading List")', "Add To Reading List")
ADD_FALLBACK = ElementDescriptor.by_xpath('//*[@text="Add to reading list"]', "Add To Reading List (fallback 1)")


class SwallowingSession(FakeSession):
    """Accepts input but never shows it."""

    def set_value(self, handle, text):
        pass


@pytest.fixture
def actions(resolver):
    return PageActions(resolver)


class TestRequireText:
    def test_strips(self):
        assert require_text("  Deutsch ") == "Deutsch"

    @pytest.mark.parametrize("value", ["", "   ", None, 42])
    def test_rejects(self, value):
        with pytest.raises(InvalidArgument):
            require_text(value)

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            require_text("")


class TestBasicActions:
    def test_click(self, session, actions):
        handle = session.add(SETTINGS.selector, FakeElement("settings"))
        actions.click(SETTINGS)
        assert session.clicks == [handle]

    def test_get_text(self, session, actions):
        handle = session.add(SETTINGS.selector, FakeElement("settings"))
        session.texts[handle] = "Settings"
        assert actions.get_text(SETTINGS) == "Settings"

    def test_resolution_failure_propagates_unwrapped(self, session):
        actions = PageActions(Resolver(session, diagnostics=lambda d: {}))
        with pytest.raises(ResolutionFailure):
            actions.click(SETTINGS)

    def test_unexpected_error_is_wrapped(self, session, actions):
        session.add(SETTINGS.selector, FakeElement("settings"))

        def broken_click(handle):
            raise RuntimeError("tap rejected")

        session.click = broken_click

        with pytest.raises(ActionError) as exc_info:
            actions.click(SETTINGS)

        assert exc_info.value.action == "click"
        assert exc_info.value.element_name == "Settings Option"
        assert isinstance(exc_info.value.cause, RuntimeError)
        assert "tap rejected" in exc_info.value.get_cause_traceback()

    def test_cause_traceback_logged_once_at_debug(self, session, actions, caplog):
        """The wrapped cause's traceback is logged by the innermost action only."""
        caplog.set_level(logging.DEBUG, logger="mobileauto.actions")
        session.add(SETTINGS.selector, FakeElement("settings"))

        def broken_click(handle):
            raise RuntimeError("tap rejected")

        session.click = broken_click

        with pytest.raises(ActionError):
            actions.navigate(SETTINGS)

        tracebacks = [r for r in caplog.records if "cause traceback" in r.getMessage()]
        assert len(tracebacks) == 1
        assert tracebacks[0].levelno == logging.DEBUG
        assert "RuntimeError: tap rejected" in tracebacks[0].getMessage()

    def test_no_cause_traceback_without_cause(self):
        error = ActionError("verify_text", element_name="Settings Option", details="mismatch")
        assert error.get_cause_traceback() == ""

    def test_action_outcome_logged(self, session, actions, caplog):
        caplog.set_level(logging.INFO, logger="mobileauto.actions")
        session.add(SETTINGS.selector, FakeElement("settings"))

        actions.click(SETTINGS)

        assert any(
            "action=click element=Settings Option status=ok" in r.getMessage()
            for r in caplog.records
        )


class TestSetValue:
    """Input validation happens before any lookup."""

    @pytest.mark.parametrize("text", ["", "   ", "\t\n"])
    def test_blank_text_rejected_before_lookup(self, session, actions, text):
        session.add(SEARCH_BOX.selector, FakeElement("search"))

        with pytest.raises(InvalidArgument):
            actions.set_value(SEARCH_BOX, text)

        assert session.locate_calls == []

    def test_clears_and_types_stripped_text(self, session, actions):
        handle = session.add(SEARCH_BOX.selector, FakeElement("search"))
        session.texts[handle] = "English"

        actions.set_value(SEARCH_BOX, "  Deutsch ")

        assert session.texts[handle] == "Deutsch"

    def test_verification_mismatch(self):
        session = SwallowingSession()
        session.add(SEARCH_BOX.selector, FakeElement("search"))
        actions = PageActions(Resolver(session, diagnostics=lambda d: {}))

        with pytest.raises(ActionError) as exc_info:
            actions.set_value(SEARCH_BOX, "Deutsch")

        assert exc_info.value.action == "set_value"
        assert "Expected: 'Deutsch'" in exc_info.value.details

    def test_verification_can_be_skipped(self):
        session = SwallowingSession()
        session.add(SEARCH_BOX.selector, FakeElement("search"))
        actions = PageActions(Resolver(session, diagnostics=lambda d: {}))

        actions.set_value(SEARCH_BOX, "Deutsch", verify=False)


class TestVerify:
    def test_verify_text_match(self, session, actions):
        handle = session.add(SETTINGS.selector, FakeElement("settings"))
        session.texts[handle] = " Settings \n"
        assert actions.verify_text(SETTINGS, "Settings") == "Settings"

    def test_verify_text_mismatch(self, session, actions):
        handle = session.add(SETTINGS.selector, FakeElement("settings"))
        session.texts[handle] = "Preferences"

        with pytest.raises(ActionError, match='Expected "Settings", but got "Preferences"'):
            actions.verify_text(SETTINGS, "Settings")

    def test_verify_displayed_after_element_hidden(self, session, actions):
        handle = session.add(SETTINGS.selector, FakeElement("settings"))
        actions.verify_displayed(SETTINGS)

        session.hidden.add(handle)
        with pytest.raises(ActionError, match="is not displayed") as exc_info:
            actions.verify_displayed(SETTINGS)
        assert exc_info.value.trace == "verify_displayed on 'Settings Option'"


class TestClickFirstVisible:
    def test_falls_back_to_second_selector(self, session, actions):
        fallback = session.add(ADD_FALLBACK.selector, FakeElement("fallback"))

        matched = actions.click_first_visible([ADD_PRIMARY, ADD_FALLBACK])

        assert matched == ADD_FALLBACK
        assert session.clicks == [fallback]
        assert session.locate_calls == [ADD_PRIMARY.selector, ADD_FALLBACK.selector]
        assert session.sleeps == []

    def test_does_not_cache(self, session, actions):
        session.add(ADD_PRIMARY.selector, FakeElement("primary"))
        actions.click_first_visible([ADD_PRIMARY, ADD_FALLBACK])
        assert actions.resolver.cached_count == 0

    def test_none_visible(self, session, actions):
        with pytest.raises(ActionError, match="none of 2 selectors"):
            actions.click_first_visible([ADD_PRIMARY, ADD_FALLBACK])
        assert session.clicks == []

    def test_requires_candidates(self, actions):
        with pytest.raises(InvalidArgument):
            actions.click_first_visible([])


class TestNavigate:
    def test_navigate_drops_cache(self, session, actions):
        session.add(SETTINGS.selector, FakeElement("settings"))
        session.add(SEARCH_BOX.selector, FakeElement("search"))
        actions.resolver.resolve(SEARCH_BOX)

        dropped = actions.navigate(SETTINGS)

        assert dropped == 2
        assert actions.resolver.cached_count == 0

    def test_click_failure_trace_includes_navigate(self, session, actions):
        session.add(SETTINGS.selector, FakeElement("settings"))

        def broken_click(handle):
            raise RuntimeError("tap rejected")

        session.click = broken_click

        with pytest.raises(ActionError) as exc_info:
            actions.navigate(SETTINGS)

        assert exc_info.value.trace == "navigate on 'Settings Option' > click on 'Settings Option'"
        assert context.current_frame() is None


class TestWaitForVisible:
    def test_appears_on_third_poll(self, session, actions):
        handle = FakeElement("header")
        session.add(SETTINGS.selector, None, None, handle)

        assert actions.wait_for_visible(SETTINGS) is handle
        assert session.sleeps == [0.5, 1.0]

    def test_never_appears(self, session, actions):
        with pytest.raises(ConditionTimeout, match="Settings Option to be displayed"):
            actions.wait_for_visible(SETTINGS, max_attempts=3)
        assert session.sleeps == [0.5, 1.0]
