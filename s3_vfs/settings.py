from __future__ import annotations
"""Application settings persistence helpers."""

from dataclasses import asdict, dataclass, fields
import json
from pathlib import Path


@dataclass
class AppSettings:
    """Tunables for bucket views."""

    page_size: int = 300
    presign_expires_in: int = 3600
    background_workers: int = 4


class SettingsStorage:
    """JSON-backed persistence for :class:`AppSettings`."""

    def __init__(self, storage_path: str | Path | None = None):
        if storage_path is None:
            storage_path = Path.home() / ".s3vfs_settings.json"
        self._path = Path(storage_path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> AppSettings:
        if not self._path.exists():
            return AppSettings()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            return AppSettings()
        if not isinstance(data, dict):
            return AppSettings()
        values = {}
        for item in fields(AppSettings):
            values[item.name] = _positive_int(data.get(item.name), item.default)
        return AppSettings(**values)

    def save(self, settings: AppSettings) -> None:
        payload = {name: max(int(value), 1) for name, value in asdict(settings).items()}
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError:
            # Persist best-effort; ignore filesystem issues.
            return


def _positive_int(value: object, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    if number <= 0:
        return default
    return number
