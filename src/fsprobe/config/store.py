"""Load/save persisted probe defaults."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError

from fsprobe.config.models import ProbeDefaults
from fsprobe.paths import settings_path
from fsprobe.runtime_logging import get_runtime_logger


class SettingsStore:
    def __init__(self, path: Path | None = None) -> None:
        self.path = path or settings_path()

    def load(self) -> ProbeDefaults:
        if not self.path.exists():
            defaults = ProbeDefaults()
            self.save(defaults)
            return defaults

        raw = self.path.read_text(encoding="utf-8")
        try:
            data = json.loads(raw)
            return ProbeDefaults.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as exc:
            # Keep the corrupt payload next to the fresh defaults for inspection.
            backup = self.path.with_suffix(".corrupt.json")
            backup.write_text(raw, encoding="utf-8")
            get_runtime_logger().warning(
                "settings.corrupt",
                path=str(self.path),
                backup=str(backup),
                error=str(exc),
            )
            defaults = ProbeDefaults()
            self.save(defaults)
            return defaults

    def save(self, defaults: ProbeDefaults) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(defaults.model_dump(mode="json"), indent=2, sort_keys=True)
        self.path.write_text(f"{payload}\n", encoding="utf-8")
