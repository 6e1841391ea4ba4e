"""
Tests for AppStore: dispatch ordering, middleware handling, subscriptions and
effect completion.
"""

from __future__ import annotations

import asyncio
import threading
from dataclasses import replace
from unittest.mock import MagicMock

import pytest

from kwizkid.core.constants import CurrentTab, SubscriptionStatus
from kwizkid.core.dataclasses import DEFAULT_CATEGORIES
from kwizkid.store.actions import (
    AppLaunched,
    CategoriesLoadFailed,
    ClearError,
    LoadCategories,
    NavigateTo,
    PurchaseSubscription,
    SelectTab,
    SetLoading,
    SignIn,
    SignOut,
    StartQuiz,
)
from kwizkid.store.effects import Effect
from kwizkid.store.middleware import (
    AuthMiddleware,
    CategoryMiddleware,
    MiddlewareResult,
    QuizMiddleware,
    SubscriptionMiddleware,
)
from kwizkid.store.state import AppState, CategorySelectionScreen, QuizScreen, WelcomeScreen

# ============================================================================
# Test dispatch basics
# ============================================================================


class TestDispatch:
    """Tests for dispatch and subscriber notification."""

    def test_default_initial_state(self, make_store) -> None:
        assert make_store().state == AppState()

    def test_dispatch_updates_state(self, make_store) -> None:
        store = make_store()

        store.dispatch(SetLoading(True))

        assert store.state.is_loading is True

    def test_subscriber_receives_old_and_new_state(self, make_store) -> None:
        store = make_store()
        callback = MagicMock()
        store.subscribe(callback)
        old_state = store.state

        store.dispatch(SetLoading(True))

        callback.assert_called_once_with(old_state, store.state)

    def test_no_notification_when_state_unchanged(self, make_store) -> None:
        """ClearError on a clean state produces an equal state."""
        store = make_store()
        callback = MagicMock()
        store.subscribe(callback)

        store.dispatch(ClearError())

        callback.assert_not_called()

    def test_unsubscribe(self, make_store) -> None:
        store = make_store()
        callback = MagicMock()
        unsubscribe = store.subscribe(callback)

        unsubscribe()
        unsubscribe()  # second call is a no-op
        store.dispatch(SetLoading(True))

        callback.assert_not_called()

    def test_subscriber_error_does_not_stop_others(self, make_store) -> None:
        store = make_store()
        failing = MagicMock(side_effect=ValueError("boom"))
        working = MagicMock()
        store.subscribe(failing)
        store.subscribe(working)

        store.dispatch(SetLoading(True))

        working.assert_called_once()
        assert store.state.is_loading is True

    def test_not_dispatching_when_idle(self, make_store) -> None:
        store = make_store()
        store.dispatch(AppLaunched())

        assert store.is_dispatching is False


# ============================================================================
# Test serialization
# ============================================================================


class TestSerialization:
    """Dispatches are applied one at a time, in arrival order."""

    def test_dispatch_from_subscriber_is_queued(self, make_store) -> None:
        store = make_store()
        seen = []

        def on_change(old_state: AppState, new_state: AppState) -> None:
            seen.append(new_state.selected_tab)
            if new_state.selected_tab == CurrentTab.PROGRESS:
                store.dispatch(SelectTab(CurrentTab.PROFILE))
                # Queued, not applied re-entrantly
                assert store.state.selected_tab == CurrentTab.PROGRESS

        store.subscribe(on_change)
        store.dispatch(SelectTab(CurrentTab.PROGRESS))

        assert seen == [CurrentTab.PROGRESS, CurrentTab.PROFILE]
        assert store.state.selected_tab == CurrentTab.PROFILE

    def test_dispatch_from_middleware_runs_after_current_action(self, make_store) -> None:
        order = []

        def middleware(action, state, dispatch):
            order.append(type(action).__name__)
            if isinstance(action, AppLaunched):
                dispatch(SetLoading(True))
            return action

        store = make_store(middleware=[middleware])
        store.dispatch(AppLaunched())

        assert order == ["AppLaunched", "SetLoading"]
        assert store.state.is_loading is True

    def test_concurrent_dispatch_loses_nothing(self, make_store) -> None:
        """Every dispatch from many threads reaches the reducer exactly once."""
        counted = []

        def counting_reducer(state: AppState, action) -> AppState:
            counted.append(action)
            return state

        store = make_store()
        store._reducer = counting_reducer

        def worker() -> None:
            for _ in range(100):
                store.dispatch(SetLoading(True))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(counted) == 800
        assert store.is_dispatching is False

    def test_concurrent_dispatch_commits_in_one_order(self, make_store) -> None:
        """Each notification starts from the state the previous one committed."""

        def counting_reducer(state: AppState, action) -> AppState:
            return replace(state, error_message=str(int(state.error_message or 0) + 1))

        store = make_store()
        store._reducer = counting_reducer
        initial = store.state
        notifications = []
        store.subscribe(lambda old, new: notifications.append((old, new)))

        def worker() -> None:
            for _ in range(100):
                store.dispatch(SetLoading(True))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(notifications) == 800
        assert notifications[0][0] is initial
        for (_, previous_new), (old, new) in zip(notifications, notifications[1:]):
            assert old is previous_new
            assert int(new.error_message) == int(old.error_message) + 1
        assert store.state is notifications[-1][1]
        assert store.state.error_message == "800"

    def test_failed_action_keeps_queue_draining(self, make_store) -> None:
        """Actions queued behind a failing one are still applied."""

        def exploding(action, state, dispatch):
            if isinstance(action, AppLaunched):
                dispatch(SetLoading(True))
                msg = "middleware failed"
                raise ValueError(msg)
            return action

        store = make_store(middleware=[exploding])

        with pytest.raises(ValueError, match="middleware failed"):
            store.dispatch(AppLaunched())

        assert store.state.is_loading is True
        assert store.is_dispatching is False

    def test_queued_failure_is_logged_not_raised(self, make_store, caplog) -> None:
        def exploding(action, state, dispatch):
            if isinstance(action, AppLaunched):
                dispatch(SelectTab(CurrentTab.PROFILE))
                dispatch(SetLoading(True))
            if isinstance(action, SelectTab):
                msg = "tab middleware failed"
                raise ValueError(msg)
            return action

        store = make_store(middleware=[exploding])

        with caplog.at_level("ERROR", logger="kwizkid.store.store"):
            store.dispatch(AppLaunched())

        assert store.state.is_loading is True
        assert store.state.selected_tab == CurrentTab.HOME
        assert "Dispatch of queued select_tab failed" in caplog.text

    def test_reducer_error_propagates_and_resets(self, make_store) -> None:
        calls = []

        def broken_reducer(state: AppState, action) -> AppState:
            calls.append(action)
            msg = "reducer failed"
            raise ValueError(msg)

        store = make_store()
        store._reducer = broken_reducer

        with pytest.raises(ValueError, match="reducer failed"):
            store.dispatch(AppLaunched())

        assert store.is_dispatching is False
        with pytest.raises(ValueError):
            store.dispatch(AppLaunched())
        assert len(calls) == 2


# ============================================================================
# Test middleware handling
# ============================================================================


class TestMiddlewareHandling:
    def test_middleware_runs_in_order(self, make_store) -> None:
        order = []

        def first(action, state, dispatch):
            order.append("first")
            return action

        def second(action, state, dispatch):
            order.append("second")
            return action

        store = make_store(middleware=[first, second])
        store.dispatch(AppLaunched())

        assert order == ["first", "second"]

    def test_middleware_can_cancel(self, make_store) -> None:
        after = MagicMock(side_effect=lambda action, state, dispatch: action)

        def block_loading(action, state, dispatch):
            return None if isinstance(action, SetLoading) else action

        store = make_store(middleware=[block_loading, after])
        store.dispatch(SetLoading(True))

        assert store.state.is_loading is False
        after.assert_not_called()

    def test_middleware_can_rewrite(self, make_store) -> None:
        def to_profile(action, state, dispatch):
            return SelectTab(CurrentTab.PROFILE) if isinstance(action, SelectTab) else action

        store = make_store(middleware=[to_profile])
        store.dispatch(SelectTab(CurrentTab.SETTINGS))

        assert store.state.selected_tab == CurrentTab.PROFILE

    def test_middleware_sees_state_before_dispatch(self, make_store) -> None:
        seen = []

        def record(action, state, dispatch):
            seen.append(state.is_loading)
            return MiddlewareResult.forward(action)

        store = make_store(middleware=[record])
        store.dispatch(SetLoading(True))
        store.dispatch(SetLoading(False))

        assert seen == [False, True]

    def test_add_middleware(self, make_store) -> None:
        store = make_store()
        middleware = MagicMock(side_effect=lambda action, state, dispatch: action)

        store.add_middleware(middleware)
        store.dispatch(AppLaunched())

        middleware.assert_called_once()

    def test_cancel_keys_applied_even_when_cancelled(self, make_store, effect_runner) -> None:
        effect_runner.cancel = MagicMock(return_value=0)

        def cancel_quiz(action, state, dispatch):
            return MiddlewareResult(action=None, cancel_keys=("quiz", "quiz"))

        store = make_store(middleware=[cancel_quiz])
        store.dispatch(AppLaunched())

        effect_runner.cancel.assert_called_once_with("quiz")


# ============================================================================
# Test effects end to end
# ============================================================================


class TestEffects:
    """Middleware effects complete through follow-up dispatches."""

    def test_sign_in_flow(self, make_store, mock_auth, user) -> None:
        store = make_store(middleware=[AuthMiddleware(mock_auth)])
        screens = []
        store.subscribe(lambda old, new: screens.append(new.current_screen))

        store.dispatch(SignIn("kid@example.com", "secret"))
        assert store.state.is_loading is True

        assert store.wait_for_effects(timeout=5)
        assert store.state.user == user
        assert store.state.is_loading is False
        assert store.state.current_screen == CategorySelectionScreen()
        assert screens[-1] == CategorySelectionScreen()

    def test_failed_effect_sets_error(self, make_store, mock_catalog) -> None:
        mock_catalog.fetch_categories.side_effect = ConnectionError("offline")
        store = make_store(middleware=[CategoryMiddleware(mock_catalog)])

        store.dispatch(LoadCategories())

        assert store.wait_for_effects(timeout=5)
        assert store.state.error_message == "Network Error: offline"
        assert store.state.categories == ()

    def test_subscription_purchase(self, make_store, mock_subscriptions) -> None:
        store = make_store(middleware=[SubscriptionMiddleware(mock_subscriptions)])

        store.dispatch(PurchaseSubscription())

        assert store.wait_for_effects(timeout=5)
        assert store.state.subscription_status == SubscriptionStatus.PREMIUM

    def test_navigating_away_cancels_quiz_load(
        self, make_store, mock_questions, math_category, user, questions
    ) -> None:
        """A quiz that finishes loading after the child left is never shown."""
        release = threading.Event()

        async def slow_questions(category, count):
            while not release.is_set():
                await asyncio.sleep(0.01)
            return questions

        mock_questions.generate_questions.side_effect = slow_questions
        state = AppState(user=user, current_screen=QuizScreen(math_category))
        store = make_store(middleware=[QuizMiddleware(mock_questions)], initial_state=state)

        store.dispatch(StartQuiz(math_category))
        store.dispatch(NavigateTo(CategorySelectionScreen()))
        release.set()

        assert store.wait_for_effects(timeout=5)
        assert store.state.current_quiz is None

    def test_navigating_away_clears_loading(self, make_store, mock_questions, math_category, user, questions) -> None:
        release = threading.Event()

        async def slow_questions(category, count):
            while not release.is_set():
                await asyncio.sleep(0.01)
            return questions

        mock_questions.generate_questions.side_effect = slow_questions
        store = make_store(middleware=[QuizMiddleware(mock_questions)], initial_state=AppState(user=user))

        store.dispatch(StartQuiz(math_category))
        assert store.state.is_loading is True
        store.dispatch(NavigateTo(CategorySelectionScreen()))
        release.set()

        assert store.wait_for_effects(timeout=5)
        assert store.state.is_loading is False
        assert store.state.current_quiz is None

    def test_sign_out_cancels_pending_work(self, make_store, mock_auth, mock_catalog, user) -> None:
        release = threading.Event()

        async def slow_fetch():
            while not release.is_set():
                await asyncio.sleep(0.01)
            return list(DEFAULT_CATEGORIES)

        mock_catalog.fetch_categories.side_effect = slow_fetch
        store = make_store(
            middleware=[AuthMiddleware(mock_auth), CategoryMiddleware(mock_catalog)],
            initial_state=AppState(user=user, current_screen=CategorySelectionScreen()),
        )

        store.dispatch(LoadCategories())
        store.dispatch(SignOut())
        release.set()

        assert store.wait_for_effects(timeout=5)
        assert store.state.user is None
        assert store.state.current_screen == WelcomeScreen()
        # The cancelled load never reported back
        assert store.state.categories == ()
        assert store.state.is_loading is False
        mock_auth.sign_out.assert_awaited_once()

    def test_sign_out_cancels_purchase_in_flight(self, make_store, mock_auth, mock_subscriptions, user) -> None:
        started = threading.Event()
        release = threading.Event()

        async def slow_purchase():
            started.set()
            while not release.is_set():
                await asyncio.sleep(0.01)

        mock_subscriptions.purchase.side_effect = slow_purchase
        store = make_store(
            middleware=[AuthMiddleware(mock_auth), SubscriptionMiddleware(mock_subscriptions)],
            initial_state=AppState(user=user),
        )

        store.dispatch(PurchaseSubscription())
        assert started.wait(timeout=5)
        store.dispatch(SignOut())
        release.set()

        assert store.wait_for_effects(timeout=5)
        assert store.state.subscription_status == SubscriptionStatus.FREE
        assert store.state.is_loading is False

    def test_queued_follow_up_of_cancelled_effect_is_discarded(self, make_store, effect_runner) -> None:
        """A result that finished while the store was busy is dropped when its key is cancelled."""
        gate = threading.Event()

        async def operation():
            while not gate.is_set():
                await asyncio.sleep(0.01)
            return SelectTab(CurrentTab.PROFILE)

        def middleware(action, state, dispatch):
            if isinstance(action, LoadCategories):
                effect = Effect("slow_tab", operation, CategoriesLoadFailed, cancel_key="quiz")
                return MiddlewareResult(action, effects=(effect,))
            if isinstance(action, ClearError):
                # Let the effect finish while this dispatch is still in progress
                gate.set()
                assert effect_runner.wait_idle(timeout=5)
                return MiddlewareResult(action, cancel_keys=("quiz",))
            return MiddlewareResult.forward(action)

        store = make_store(middleware=[middleware])
        store.dispatch(LoadCategories())
        store.dispatch(ClearError())

        assert store.wait_for_effects(timeout=5)
        assert store.state.selected_tab == CurrentTab.HOME

    def test_wait_for_effects_times_out(self, make_store, mock_catalog) -> None:
        release = threading.Event()

        async def slow_fetch():
            while not release.is_set():
                await asyncio.sleep(0.01)
            return []

        mock_catalog.fetch_categories.side_effect = slow_fetch
        store = make_store(middleware=[CategoryMiddleware(mock_catalog)])
        store.dispatch(LoadCategories())

        try:
            assert store.wait_for_effects(timeout=0.05) is False
        finally:
            release.set()
        assert store.wait_for_effects(timeout=5) is True

    def test_wait_for_effects_inside_dispatch_raises(self, make_store) -> None:
        store = make_store()
        errors = []

        def on_change(old_state: AppState, new_state: AppState) -> None:
            try:
                store.wait_for_effects(timeout=1)
            except RuntimeError as e:
                errors.append(str(e))

        store.subscribe(on_change)
        store.dispatch(SetLoading(True))

        assert errors == ["wait_for_effects() called from inside a dispatch"]
