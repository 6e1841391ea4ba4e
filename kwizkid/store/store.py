"""
Redux-style store for KwizKid.

This module implements a unidirectional data flow pattern:
    Action -> Middleware -> Reducer -> New State -> Notify Subscribers -> Effects

Usage:
    store = AppStore(middleware=[logging_middleware, AuthMiddleware(auth)])

    # Components subscribe to state changes
    unsubscribe = store.subscribe(my_callback)

    # Dispatch actions to change state
    store.dispatch(Actions.sign_in("kid@example.com", "secret"))

    # Components react to state changes in their callbacks
    def my_callback(old_state: AppState, new_state: AppState):
        if old_state.current_screen != new_state.current_screen:
            self._show(new_state.current_screen)

Dispatch is serialized. Actions are queued in arrival order and applied one at
a time by whichever thread finds the store idle; a dispatch issued while another
is being applied (from a subscriber, a middleware, an effect completion or
another thread) returns immediately and is applied right after.

Cancelling an effect key also discards follow-ups from that key which are
already queued, so no result of a cancelled effect is ever applied.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from kwizkid.store.actions import Action
from kwizkid.store.effects import Effect, EffectRunner
from kwizkid.store.middleware import Middleware, MiddlewareResult
from kwizkid.store.reducer import app_reducer
from kwizkid.store.state import AppState

if TYPE_CHECKING:
    from kwizkid.store.actions import AppAction

logger = logging.getLogger(__name__)

# Type for subscriber callbacks
StateChangeCallback = Callable[[AppState, AppState], None]
UnsubscribeFunction = Callable[[], None]
Reducer = Callable[[AppState, "AppAction"], AppState]


@dataclass(eq=False)
class _Queued:
    """An action waiting to be applied; follow-ups remember the effect key they came from."""

    action: Action
    cancel_key: str | None = None


class AppStore:
    """
    Central store that holds state and manages subscriptions.

    The store:
    - Holds the single source of truth for application state
    - Runs actions through middleware, then the reducer
    - Notifies subscribers with fully committed states only
    - Schedules the effects middleware asks for
    """

    def __init__(
        self,
        initial_state: AppState | None = None,
        middleware: Iterable[Middleware] = (),
        effect_runner: EffectRunner | None = None,
        reducer: Reducer = app_reducer,
    ) -> None:
        """
        Initialize the store.

        Args:
            initial_state: Optional initial state, defaults to AppState()
            middleware: Middleware in the order they should run
            effect_runner: Runner for middleware effects, created on demand if omitted
            reducer: Reducer function, defaults to app_reducer

        """
        self._state = initial_state or AppState()
        self._reducer = reducer
        self._middleware: list[Middleware] = list(middleware)
        self._subscribers: list[StateChangeCallback] = []
        self._effect_runner = effect_runner or EffectRunner()

        self._queue: deque[_Queued] = deque()
        # Bumped on every cancellation of a key; stale follow-ups are discarded
        self._generations: dict[str, int] = {}
        self._queue_lock = threading.Lock()
        self._queue_idle = threading.Condition(self._queue_lock)
        self._is_dispatching = False
        self._dispatch_thread: int | None = None

        logger.info("AppStore initialized with %d middleware", len(self._middleware))

    @property
    def state(self) -> AppState:
        """Get current state (read-only)."""
        return self._state

    @property
    def is_dispatching(self) -> bool:
        """Check if a dispatch is currently in progress."""
        return self._is_dispatching

    @property
    def effect_runner(self) -> EffectRunner:
        return self._effect_runner

    def dispatch(self, action: Action) -> None:
        """
        Dispatch an action to change state.

        If no dispatch is in progress the action (and anything queued behind it)
        is applied before this call returns. Otherwise it is queued and applied
        by the dispatch already in progress.

        An exception raised by middleware or the reducer for ``action`` is
        re-raised here once the queue has been drained.
        """
        self._enqueue(_Queued(action))

    def _enqueue(self, item: _Queued, generation: int | None = None) -> None:
        with self._queue_lock:
            if item.cancel_key is not None and self._generations.get(item.cancel_key, 0) != generation:
                logger.info("Discarded %s from a cancelled %s effect", item.action.type, item.cancel_key)
                return
            self._queue.append(item)
            if self._is_dispatching:
                logger.debug("DISPATCH QUEUED: %s (queue depth %d)", item.action.type, len(self._queue))
                return
            self._is_dispatching = True
            self._dispatch_thread = threading.get_ident()

        self._drain(item)

    def _drain(self, own: _Queued) -> None:
        failure: Exception | None = None
        try:
            while True:
                with self._queue_lock:
                    if not self._queue:
                        self._is_dispatching = False
                        self._dispatch_thread = None
                        self._queue_idle.notify_all()
                        break
                    item = self._queue.popleft()
                try:
                    self._process(item.action)
                except Exception as e:
                    if item is own:
                        failure = e
                    else:
                        logger.exception("Dispatch of queued %s failed", item.action.type)
        except BaseException:
            # Interrupted; whatever is still queued is applied by the next dispatch
            with self._queue_lock:
                self._is_dispatching = False
                self._dispatch_thread = None
                self._queue_idle.notify_all()
            raise
        if failure is not None:
            raise failure

    def _run_middleware(self, action: Action, state: AppState) -> MiddlewareResult:
        processed: Action | None = action
        effects: list[Effect] = []
        cancel_keys: list[str] = []
        for middleware in self._middleware:
            result = middleware(processed, state, self.dispatch)
            if not isinstance(result, MiddlewareResult):
                result = MiddlewareResult(action=result)
            processed = result.action
            effects.extend(result.effects)
            cancel_keys.extend(result.cancel_keys)
            if processed is None:
                logger.info("ACTION CANCELLED by middleware: %s", action.type)
                break
        return MiddlewareResult(action=processed, effects=tuple(effects), cancel_keys=tuple(cancel_keys))

    def _cancel_effects(self, cancel_keys: tuple[str, ...]) -> None:
        """Cancel effects under ``cancel_keys`` and drop their follow-ups that are already queued."""
        keys = tuple(dict.fromkeys(cancel_keys))
        if not keys:
            return
        with self._queue_lock:
            for key in keys:
                self._generations[key] = self._generations.get(key, 0) + 1
            kept = deque(item for item in self._queue if item.cancel_key not in keys)
            discarded = len(self._queue) - len(kept)
            self._queue = kept
        if discarded:
            logger.info("Discarded %d queued follow-up(s) for %s", discarded, ", ".join(keys))
        for key in keys:
            cancelled = self._effect_runner.cancel(key)
            if cancelled:
                logger.info("Cancelled %d pending effect(s) for %s", cancelled, key)

    def _schedule(self, effect: Effect) -> None:
        key = effect.cancel_key
        with self._queue_lock:
            generation = self._generations.get(key, 0) if key is not None else None

        def deliver(follow_up: Action) -> None:
            self._enqueue(_Queued(follow_up, key), generation)

        self._effect_runner.submit(effect, deliver)

    def _process(self, action: Action) -> None:
        logger.info("ACTION DISPATCHED: %s | %r", action.type, action)
        old_state = self._state

        result = self._run_middleware(action, old_state)
        self._cancel_effects(result.cancel_keys)

        if result.action is None:
            return

        new_state = self._reducer(old_state, result.action)

        # Only notify if state actually changed
        if old_state != new_state:
            diff = self._get_state_diff(old_state, new_state)
            self._state = new_state
            logger.info("STATE CHANGED: %s | Diff: %s", result.action.type, diff)
            self._notify_subscribers(old_state, new_state)
        else:
            logger.debug("STATE UNCHANGED: %s", result.action.type)

        for effect in result.effects:
            self._schedule(effect)

    def subscribe(self, callback: StateChangeCallback) -> UnsubscribeFunction:
        """Subscribe to state changes."""
        with self._queue_lock:
            self._subscribers.append(callback)
            total = len(self._subscribers)
        cb_name = getattr(callback, "__qualname__", str(callback))
        logger.info("SUBSCRIBER ADDED: %s | Total subscribers: %d", cb_name, total)

        def unsubscribe() -> None:
            with self._queue_lock:
                if callback not in self._subscribers:
                    return
                self._subscribers.remove(callback)
            logger.info("SUBSCRIBER REMOVED: %s", cb_name)

        return unsubscribe

    def add_middleware(self, middleware: Middleware) -> None:
        """
        Append middleware to the end of the chain.

        Middleware can:
        - Log actions
        - Rewrite actions
        - Cancel actions (return no action)
        - Request effects and effect cancellation
        """
        self._middleware.append(middleware)

    def wait_for_effects(self, timeout: float | None = None) -> bool:
        """
        Block until every in-flight effect, and every effect its follow-up
        actions triggered, has finished. Returns False on timeout.

        Must not be called from a subscriber or middleware.
        """
        if self._dispatch_thread == threading.get_ident():
            msg = "wait_for_effects() called from inside a dispatch"
            raise RuntimeError(msg)

        deadline = None if timeout is None else time.monotonic() + timeout

        def remaining() -> float | None:
            return None if deadline is None else max(deadline - time.monotonic(), 0.0)

        while True:
            if not self._effect_runner.wait_idle(remaining()):
                return False
            # A follow-up action may still be queued behind another thread's drain
            with self._queue_idle:
                if not self._queue_idle.wait_for(lambda: not self._is_dispatching, remaining()):
                    return False
            if self._effect_runner.pending_count == 0:
                return True

    def close(self) -> None:
        """Cancel pending effects and stop the effect loop."""
        self._effect_runner.close()
        logger.info("AppStore closed")

    def _notify_subscribers(self, old_state: AppState, new_state: AppState) -> None:
        """Notify all subscribers of state change."""
        with self._queue_lock:
            subscribers = self._subscribers[:]  # Copy list to allow unsubscribe during iteration
        for callback in subscribers:
            try:
                callback(old_state, new_state)
            except Exception as e:
                logger.exception("Error in subscriber callback: %s", e)

    def _get_state_diff(self, old_state: AppState, new_state: AppState) -> dict[str, tuple[Any, Any]]:
        """Get dictionary of changed fields for logging."""
        diff = {}
        for field_name in AppState.__dataclass_fields__:
            old_val = getattr(old_state, field_name)
            new_val = getattr(new_state, field_name)
            if old_val != new_val:
                diff[field_name] = (old_val, new_val)
        return diff
