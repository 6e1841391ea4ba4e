"""
Asynchronous side effects for the KwizKid store.

Middleware never performs I/O itself. It returns ``Effect`` values: an async
operation plus the follow-up action to dispatch on success, and the failure
action to dispatch when the operation raises. The store hands effects to an
``EffectRunner`` after the triggering action has been committed.

An effect always terminates in exactly one of three ways:
    - the operation returns an action (or None) and that action is dispatched
    - the operation raises and ``on_error`` builds a failure action from the
      wrapped AppError, which is dispatched
    - the effect is cancelled and nothing is dispatched
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from kwizkid.core.constants import ErrorKind
from kwizkid.core.exceptions import AppError, ErrorCodes, NetworkError

if TYPE_CHECKING:
    from kwizkid.store.actions import Action

logger = logging.getLogger(__name__)

Dispatch = Callable[["Action"], None]


@dataclass(frozen=True)
class Effect:
    """A pending asynchronous operation and the actions it resolves to."""

    name: str
    operation: Callable[[], Awaitable[Action | None]]
    on_error: Callable[[AppError], Action]
    error_kind: ErrorKind = ErrorKind.NETWORK
    cancel_key: str | None = None

    async def run(self) -> Action | None:
        """Run the operation, converting any failure into the failure action."""
        try:
            return await self.operation()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            error = AppError.from_exception(e, self.error_kind)
            logger.warning("Effect %s failed: %s", self.name, error.description, exc_info=not isinstance(e, AppError))
            return self.on_error(error)


@dataclass(eq=False)
class EffectHandle:
    """Bookkeeping for one submitted effect."""

    effect: Effect
    task: asyncio.Task | None = None
    cancelled: bool = False


class EffectRunner:
    """
    Runs effects on a dedicated asyncio event loop in a background thread.

    The loop thread is started lazily on the first submitted effect. Follow-up
    actions are dispatched from the loop thread; the store serializes them with
    every other dispatch.

    An effect stays pending until its task has actually finished, including
    after it was cancelled.
    """

    def __init__(self, timeout: float | None = None, thread_name: str = "kwizkid-effects") -> None:
        self._timeout = timeout
        self._thread_name = thread_name
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._pending: set[EffectHandle] = set()
        self._closed = False

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def _ensure_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            loop = asyncio.new_event_loop()
            started = threading.Event()

            def run_loop() -> None:
                asyncio.set_event_loop(loop)
                loop.call_soon(started.set)
                loop.run_forever()

            self._thread = threading.Thread(target=run_loop, name=self._thread_name, daemon=True)
            self._thread.start()
            started.wait()
            self._loop = loop
            logger.debug("Effect loop started on thread %s", self._thread_name)
        return self._loop

    async def _run(self, effect: Effect) -> Action | None:
        try:
            if self._timeout is not None:
                return await asyncio.wait_for(effect.run(), self._timeout)
            return await effect.run()
        except TimeoutError:
            error = NetworkError(f"{effect.name} timed out after {self._timeout}s", error_code=ErrorCodes.TIMEOUT)
            logger.warning("Effect %s timed out", effect.name)
            return effect.on_error(error)

    async def _execute(self, handle: EffectHandle, dispatch: Dispatch) -> None:
        effect = handle.effect
        try:
            with self._lock:
                if handle.cancelled:
                    logger.info("EFFECT CANCELLED before start: %s", effect.name)
                    return
                handle.task = asyncio.current_task()

            try:
                follow_up = await self._run(effect)
            except asyncio.CancelledError:
                logger.info("EFFECT CANCELLED: %s", effect.name)
                return

            with self._lock:
                cancelled = handle.cancelled
            if cancelled:
                # Cancellation raced with completion
                logger.info("EFFECT CANCELLED: %s (result discarded)", effect.name)
                return
            if follow_up is not None:
                try:
                    dispatch(follow_up)
                except Exception:
                    logger.exception("Dispatching result of %s failed", effect.name)
            logger.debug("EFFECT FINISHED: %s", effect.name)
        finally:
            with self._lock:
                self._pending.discard(handle)
                if not self._pending:
                    self._idle.notify_all()

    def submit(self, effect: Effect, dispatch: Dispatch) -> EffectHandle:
        """Schedule ``effect``; its resulting action is passed to ``dispatch``."""
        handle = EffectHandle(effect)
        with self._lock:
            if self._closed:
                msg = f"Cannot submit effect {effect.name}: runner is closed"
                raise RuntimeError(msg)
            loop = self._ensure_loop()
            self._pending.add(handle)
            asyncio.run_coroutine_threadsafe(self._execute(handle, dispatch), loop)
        logger.debug("EFFECT SCHEDULED: %s", effect.name)
        return handle

    def _cancel(self, handles: list[EffectHandle]) -> int:
        loop = self._loop
        count = 0
        for handle in handles:
            if handle.cancelled:
                continue
            handle.cancelled = True
            count += 1
            if handle.task is not None and loop is not None:
                loop.call_soon_threadsafe(handle.task.cancel)
        return count

    def cancel(self, cancel_key: str) -> int:
        """Cancel pending effects registered under ``cancel_key``. Returns how many were cancelled."""
        with self._lock:
            return self._cancel([handle for handle in self._pending if handle.effect.cancel_key == cancel_key])

    def cancel_all(self) -> int:
        with self._lock:
            return self._cancel(list(self._pending))

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until no effect is pending. Returns False on timeout."""
        with self._idle:
            return self._idle.wait_for(lambda: not self._pending, timeout=timeout)

    def close(self) -> None:
        """Cancel everything and stop the loop thread."""
        self.cancel_all()
        with self._lock:
            self._closed = True
            loop, thread = self._loop, self._thread
            self._loop = None
            self._thread = None
        if loop is None:
            return
        on_loop_thread = thread is threading.current_thread()
        if not on_loop_thread:
            self.wait_idle(timeout=5)
        loop.call_soon_threadsafe(loop.stop)
        if thread is not None and not on_loop_thread:
            thread.join(timeout=5)
        with self._lock:
            if self._pending:
                logger.warning("Effect loop stopped with %d unfinished effect(s)", len(self._pending))
                self._pending.clear()
            self._idle.notify_all()
        if not loop.is_running():
            loop.close()
