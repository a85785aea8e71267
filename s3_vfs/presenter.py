from __future__ import annotations
"""View-agnostic presenter that runs bucket operations and reports through callbacks."""
import asyncio
from concurrent.futures import Future
from dataclasses import replace
import logging
import os
import threading
from typing import Awaitable, Callable

from botocore.exceptions import BotoCoreError, ClientError

from .background import DispatchFn, UiExecutor
from .bucket import BucketHandle
from .controller import BucketViewController
from .host import ViewHost, ViewRegistry
from .models import DeleteResult, ListingPage, VersionListingPage
from .paths import compose_s3_key, parent_prefix
from .services import TransferCancelledError, is_bucket_missing_error
from .settings import AppSettings, SettingsStorage

SuccessFn = Callable[[object], None]
ErrorFn = Callable[[str], None]
DoneFn = Callable[[], None]

LOGGER = logging.getLogger(__name__)


def _format_error(exc: Exception) -> str:
    return str(exc)


class BucketPresenter:
    """Runs bucket operations on a private event loop and returns results via callbacks.

    Callbacks are delivered through ``dispatch`` so they run on the UI thread.
    When an operation fails because its bucket is gone, the handle's recovery
    protocol runs before the error callback fires.
    """

    def __init__(
        self,
        *,
        controller: BucketViewController | None = None,
        host: ViewHost | None = None,
        settings_storage: SettingsStorage | None = None,
        dispatch: DispatchFn | None = None,
    ) -> None:
        self._settings_storage = settings_storage or SettingsStorage()
        self._settings = self._settings_storage.load()
        self._ui = UiExecutor(dispatch)
        if controller is None:
            controller = BucketViewController(
                host or ViewRegistry(),
                settings=self._settings,
                ui=self._ui,
            )
        self._controller = controller
        self._loop = asyncio.new_event_loop()
        self._loop_thread = threading.Thread(
            target=self._loop.run_forever,
            name="s3-vfs-loop",
            daemon=True,
        )
        self._loop_thread.start()

    @property
    def settings(self) -> AppSettings:
        return replace(self._settings)

    @property
    def controller(self) -> BucketViewController:
        return self._controller

    @property
    def is_connected(self) -> bool:
        return self._controller.is_connected

    def save_settings(self, settings: AppSettings) -> None:
        self._settings = settings
        self._controller.update_settings(settings)
        self._settings_storage.save(settings)

    def update_page_size(self, value: int) -> None:
        normalized = max(int(value), 1)
        self.save_settings(replace(self._settings, page_size=normalized))

    def close(self) -> None:
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._loop_thread.join(timeout=5)
        if not self._loop.is_running():
            self._loop.close()
        self._controller.close()

    def connect(
        self,
        *,
        endpoint_url: str | None,
        access_key: str,
        secret_key: str,
        on_success: Callable[[list[str]], None],
        on_error: ErrorFn,
        on_done: DoneFn | None = None,
    ) -> Future:
        LOGGER.debug("Connecting to '%s'", endpoint_url or "default endpoint")

        async def operation() -> list[str]:
            return await self._controller.background.run(
                self._controller.connect,
                endpoint_url=endpoint_url,
                access_key=access_key,
                secret_key=secret_key,
            )

        return self._submit(None, operation, "connect", on_success, on_error, on_done)

    def refresh_buckets(
        self,
        *,
        on_success: Callable[[list[str]], None],
        on_error: ErrorFn,
        on_done: DoneFn | None = None,
    ) -> Future:
        LOGGER.debug("Refreshing buckets")

        async def operation() -> list[str]:
            return await self._controller.background.run(self._controller.refresh_buckets)

        return self._submit(None, operation, "bucket refresh", on_success, on_error, on_done)

    def open_bucket(self, bucket_name: str, prefix: str = "") -> BucketHandle:
        return self._controller.open_bucket(bucket_name, prefix)

    def navigate(self, handle: BucketHandle, prefix: str) -> None:
        handle.set_prefix(prefix)

    def navigate_up(self, handle: BucketHandle) -> None:
        handle.set_prefix(parent_prefix(handle.prefix))

    def list_objects(
        self,
        handle: BucketHandle,
        *,
        prefix: str | None = None,
        continuation_token: str | None = None,
        on_success: Callable[[ListingPage], None],
        on_error: ErrorFn,
        on_done: DoneFn | None = None,
    ) -> Future:
        target = handle.prefix if prefix is None else prefix
        return self._submit(
            handle,
            lambda: handle.list_objects(target, continuation_token),
            f"list objects for '{handle.name}'",
            on_success,
            on_error,
            on_done,
        )

    def list_object_versions(
        self,
        handle: BucketHandle,
        *,
        key: str,
        key_marker: str | None = None,
        version_id_marker: str | None = None,
        on_success: Callable[[VersionListingPage | None], None],
        on_error: ErrorFn,
        on_done: DoneFn | None = None,
    ) -> Future:
        return self._submit(
            handle,
            lambda: handle.list_object_versions(key, key_marker, version_id_marker),
            f"list versions of '{key}'",
            on_success,
            on_error,
            on_done,
        )

    def new_folder(
        self,
        handle: BucketHandle,
        *,
        name: str,
        on_success: DoneFn,
        on_error: ErrorFn,
    ) -> Future:
        key = compose_s3_key(handle.prefix, name)
        return self._submit(
            handle,
            lambda: handle.new_folder(key),
            f"create folder '{key}'",
            lambda _result: on_success(),
            on_error,
        )

    def delete_objects(
        self,
        handle: BucketHandle,
        *,
        keys: list[str],
        on_success: Callable[[DeleteResult], None],
        on_error: ErrorFn,
    ) -> Future:
        return self._submit(
            handle,
            lambda: handle.delete_objects(keys),
            f"delete {len(keys)} object(s)",
            on_success,
            on_error,
        )

    def rename_object(
        self,
        handle: BucketHandle,
        *,
        from_key: str,
        to_key: str,
        on_success: DoneFn,
        on_error: ErrorFn,
    ) -> Future:
        return self._submit(
            handle,
            lambda: handle.rename_object(from_key, to_key),
            f"rename '{from_key}'",
            lambda _result: on_success(),
            on_error,
        )

    def upload_object(
        self,
        handle: BucketHandle,
        *,
        key: str,
        source_path: str,
        on_progress: Callable[[int], None] | None = None,
        cancel_requested: Callable[[], bool] | None = None,
        on_success: DoneFn | None = None,
        on_error: ErrorFn | None = None,
        on_cancelled: ErrorFn | None = None,
        on_done: DoneFn | None = None,
    ) -> Future:
        progress_callback = self._progress_callback(on_progress)

        async def operation() -> None:
            with open(source_path, "rb") as stream:
                length = os.fstat(stream.fileno()).st_size
                await handle.upload(
                    stream,
                    length,
                    key,
                    progress_callback=progress_callback,
                    cancel_requested=cancel_requested,
                )

        return self._submit(
            handle,
            operation,
            f"upload '{key}'",
            lambda _result: on_success() if on_success else None,
            on_error,
            on_done,
            on_cancelled,
        )

    def download_object(
        self,
        handle: BucketHandle,
        *,
        key: str,
        destination: str,
        version_id: str | None = None,
        on_progress: Callable[[int], None] | None = None,
        cancel_requested: Callable[[], bool] | None = None,
        on_success: DoneFn | None = None,
        on_error: ErrorFn | None = None,
        on_cancelled: ErrorFn | None = None,
        on_done: DoneFn | None = None,
    ) -> Future:
        progress_callback = self._progress_callback(on_progress)

        async def operation() -> None:
            with open(destination, "wb") as sink:
                await handle.download(
                    key,
                    sink,
                    version_id,
                    progress_callback=progress_callback,
                    cancel_requested=cancel_requested,
                )

        return self._submit(
            handle,
            operation,
            f"download '{key}'",
            lambda _result: on_success() if on_success else None,
            on_error,
            on_done,
            on_cancelled,
        )

    def generate_url(
        self,
        handle: BucketHandle,
        *,
        key: str,
        version_id: str | None = None,
        on_success: Callable[[str], None],
        on_error: ErrorFn,
    ) -> None:
        try:
            url = handle.generate_url(key, version_id)
        except Exception as exc:
            LOGGER.exception("URL generation failed for '%s'", key)
            message = _format_error(exc)
            self._ui.post(lambda: on_error(message))
        else:
            self._ui.post(lambda: on_success(url))

    def _progress_callback(self, on_progress: Callable[[int], None] | None):
        if not on_progress:
            return None
        return lambda total: self._ui.post(lambda: on_progress(total))

    def _submit(
        self,
        handle: BucketHandle | None,
        operation: Callable[[], Awaitable[object]],
        description: str,
        on_success: SuccessFn,
        on_error: ErrorFn | None,
        on_done: DoneFn | None = None,
        on_cancelled: ErrorFn | None = None,
    ) -> Future:
        async def task() -> object:
            try:
                return await operation()
            except (BotoCoreError, ClientError) as exc:
                if handle is not None and is_bucket_missing_error(exc):
                    await self._controller.background.run(handle.handle_deleted_bucket)
                raise

        def finished(future: Future) -> None:
            try:
                result = future.result()
            except TransferCancelledError as exc:
                LOGGER.debug("Cancelled %s", description)
                if on_cancelled:
                    message = _format_error(exc)
                    self._ui.post(lambda: on_cancelled(message))
            except (BotoCoreError, ClientError) as exc:
                LOGGER.exception("Failed to %s", description)
                if on_error:
                    message = _format_error(exc)
                    self._ui.post(lambda: on_error(message))
            except Exception as exc:
                LOGGER.exception("Unexpected error during %s", description)
                if on_error:
                    message = _format_error(exc)
                    self._ui.post(lambda: on_error(message))
            else:
                self._ui.post(lambda: on_success(result))
            finally:
                if on_done:
                    self._ui.post(on_done)

        future = asyncio.run_coroutine_threadsafe(task(), self._loop)
        future.add_done_callback(finished)
        return future
