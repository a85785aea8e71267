from __future__ import annotations
"""Execution contexts: a shared worker pool for remote calls and the UI hand-off."""
import asyncio
from concurrent.futures import Future, ThreadPoolExecutor
import functools
import logging
import threading
from typing import Callable, TypeVar

DispatchFn = Callable[[Callable[[], None]], None]
T = TypeVar("T")

DEFAULT_WORKERS = 4

LOGGER = logging.getLogger(__name__)


class BackgroundContext:
    """Worker pool shared by every remote operation of the handles using it."""

    def __init__(self, max_workers: int = DEFAULT_WORKERS, *, name: str = "s3-vfs"):
        self._executor = ThreadPoolExecutor(
            max_workers=max(int(max_workers), 1),
            thread_name_prefix=name,
        )

    async def run(self, func: Callable[..., T], *args, **kwargs) -> T:
        """Run a blocking ``func`` on the pool and suspend until it finishes."""

        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, functools.partial(func, *args, **kwargs))

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


_default_context: BackgroundContext | None = None
_default_lock = threading.Lock()


def default_background() -> BackgroundContext:
    global _default_context
    with _default_lock:
        if _default_context is None:
            _default_context = BackgroundContext()
        return _default_context


class UiExecutor:
    """Runs callables on the host's UI thread and waits for them.

    ``dispatch`` schedules a callable on the UI thread (``root.after(0, fn)``
    for Tk, a queued signal for Qt). Without one, calls run inline.
    """

    def __init__(self, dispatch: DispatchFn | None = None, *, ui_thread_id: int | None = None):
        self._dispatch = dispatch
        if ui_thread_id is None:
            ui_thread_id = threading.get_ident()
        self._ui_thread_id = ui_thread_id

    @property
    def on_ui_thread(self) -> bool:
        return threading.get_ident() == self._ui_thread_id

    def post(self, func: Callable[[], None]) -> None:
        """Schedule ``func`` on the UI thread without waiting."""

        if self._dispatch is None:
            func()
        else:
            self._dispatch(func)

    def call(self, func: Callable[[], T]) -> T:
        """Run ``func`` on the UI thread, block until done and return its result."""

        if self._dispatch is None or self.on_ui_thread:
            return func()

        future: Future = Future()

        def _run() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                result = func()
            except BaseException as exc:
                future.set_exception(exc)
            else:
                future.set_result(result)

        LOGGER.debug("Waiting for UI thread to run %r", func)
        self._dispatch(_run)
        return future.result()
