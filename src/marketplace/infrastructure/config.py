"""Runtime settings, read from the environment.

Every setting has a default so the CLI and the API start without any
configuration on a developer machine.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

# When installed in editable mode the project root is the repo root.
_DEFAULT_DATA_DIR = Path(__file__).resolve().parents[3] / "data"


@dataclass(frozen=True)
class Settings:
    data_dir: Path = _DEFAULT_DATA_DIR
    log_level: str = "INFO"
    log_file: str | None = None
    host: str = "127.0.0.1"
    port: int = 8000

    @property
    def orders_file(self) -> Path:
        return self.data_dir / "orders.json"

    @property
    def catalog_file(self) -> Path:
        return self.data_dir / "catalog.json"

    @staticmethod
    def from_env(environ: dict[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        data_dir = env.get("MARKETPLACE_DATA_DIR")
        return Settings(
            data_dir=Path(data_dir) if data_dir else _DEFAULT_DATA_DIR,
            log_level=env.get("MARKETPLACE_LOG_LEVEL", "INFO").upper(),
            log_file=env.get("MARKETPLACE_LOG_FILE") or None,
            host=env.get("MARKETPLACE_HOST", "127.0.0.1"),
            port=int(env.get("MARKETPLACE_PORT", "8000")),
        )
