from __future__ import annotations
"""Controller that wires a store, the host and the execution contexts into bucket views."""

import logging
from typing import Callable

from .background import BackgroundContext, UiExecutor
from .bucket import BucketHandle
from .host import ViewHost
from .services import S3ObjectStore
from .settings import AppSettings

LOGGER = logging.getLogger(__name__)


class NotConnectedError(RuntimeError):
    """Raised when a bucket is opened before connecting to a store."""


class BucketViewController:
    """Opens :class:`BucketHandle` views that share one client and one worker pool."""

    def __init__(
        self,
        host: ViewHost,
        *,
        settings: AppSettings | None = None,
        ui: UiExecutor | None = None,
        background: BackgroundContext | None = None,
        client_factory: Callable[..., object] | None = None,
    ):
        self._host = host
        self._settings = settings or AppSettings()
        self._ui = ui or UiExecutor()
        self._background = background or BackgroundContext(self._settings.background_workers)
        self._client_factory = client_factory
        self._store: S3ObjectStore | None = None

    @property
    def is_connected(self) -> bool:
        return self._store is not None

    @property
    def settings(self) -> AppSettings:
        return self._settings

    def update_settings(self, settings: AppSettings) -> None:
        """Use ``settings`` for views opened from now on; open views keep theirs."""

        self._settings = settings

    @property
    def ui(self) -> UiExecutor:
        return self._ui

    @property
    def background(self) -> BackgroundContext:
        return self._background

    def connect(
        self,
        *,
        endpoint_url: str | None,
        access_key: str,
        secret_key: str,
        region_name: str | None = None,
    ) -> list[str]:
        store = S3ObjectStore.connect(
            endpoint_url=endpoint_url,
            access_key=access_key,
            secret_key=secret_key,
            region_name=region_name,
            client_factory=self._client_factory,
        )
        return self.use_store(store)

    def use_store(self, store: S3ObjectStore) -> list[str]:
        buckets = store.list_buckets()
        self._store = store
        LOGGER.debug("Connected to store (%d buckets)", len(buckets))
        return buckets

    def refresh_buckets(self) -> list[str]:
        return self._require_store().list_buckets()

    def open_bucket(self, bucket_name: str, prefix: str = "") -> BucketHandle:
        """Create a view for ``bucket_name`` and register it with the host when possible."""

        handle = BucketHandle(
            bucket_name,
            prefix,
            self._require_store(),
            self._host,
            background=self._background,
            ui=self._ui,
            page_size=self._settings.page_size,
            url_expires_in=self._settings.presign_expires_in,
        )
        open_view = getattr(self._host, "open_view", None)
        if open_view is not None:
            open_view(handle)
        LOGGER.debug("Opened view '%s'", handle.name)
        return handle

    def close(self) -> None:
        self._background.shutdown(wait=False)

    def _require_store(self) -> S3ObjectStore:
        if self._store is None:
            raise NotConnectedError("Not connected to S3")
        return self._store
