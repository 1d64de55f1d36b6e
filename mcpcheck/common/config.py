import os
import tomllib
from pathlib import Path
from typing import Any, Dict

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

DEFAULT_CHECK_CONFIG: Dict[str, Any] = {
    "connect_timeout": None,
    "max_concurrency": None,
    "client_name": "mcpcheck",
}


def project_path(path: str | Path) -> Path:
    candidate = Path(path)
    if candidate.is_absolute():
        return candidate
    return PROJECT_ROOT / candidate


def _load_toml(path: Path) -> Dict[str, Any]:
    # Let errors propagate if the file is malformed.
    return tomllib.loads(path.read_text())


def load_app_config(path: str | Path | None = None) -> Dict[str, Any]:
    config_path = project_path(path or os.getenv("APP_CONFIG_FILE", "config/config.toml"))
    if not config_path.exists():
        return dict(DEFAULT_CHECK_CONFIG)

    check_cfg = _load_toml(config_path).get("check", {})
    connect_timeout = check_cfg.get("connect_timeout", DEFAULT_CHECK_CONFIG["connect_timeout"])
    max_concurrency = check_cfg.get("max_concurrency", DEFAULT_CHECK_CONFIG["max_concurrency"])
    if max_concurrency is not None and int(max_concurrency) <= 0:
        raise ValueError("check.max_concurrency must be positive")

    return {
        "connect_timeout": float(connect_timeout) if connect_timeout is not None else None,
        "max_concurrency": int(max_concurrency) if max_concurrency is not None else None,
        "client_name": str(check_cfg.get("client_name", DEFAULT_CHECK_CONFIG["client_name"])),
    }
