from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    sanitize_html: bool
    require_sign_in: bool
    api_debug_log: bool
    api_auth_mode: str
    api_auth_token: str | None
    diagnostics_limit: int


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).lower() == "true"


def load_settings() -> Settings:
    data_dir = Path(os.environ.get("DIARY_DATA_DIR", "./data")).resolve()
    sanitize_html = _env_flag("DIARY_SANITIZE_HTML", "true")
    require_sign_in = _env_flag("DIARY_REQUIRE_SIGN_IN", "false")
    api_debug_log = _env_flag("DIARY_DEBUG_LOG", "false")
    api_auth_mode = os.environ.get("API_AUTH_MODE", "none").lower()
    api_auth_token = os.environ.get("API_AUTH_TOKEN")
    diagnostics_limit = int(os.environ.get("DIARY_DIAGNOSTICS_LIMIT", "100"))
    return Settings(
        data_dir=data_dir,
        sanitize_html=sanitize_html,
        require_sign_in=require_sign_in,
        api_debug_log=api_debug_log,
        api_auth_mode=api_auth_mode,
        api_auth_token=api_auth_token,
        diagnostics_limit=diagnostics_limit,
    )
