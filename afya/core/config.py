"""Afya Link — Configuration

Settings are merged from layered sources, lowest precedence first:
  backend/env.file  (legacy)
  .env.local        (local override)
  .env              (project root)
  process environment
Supabase credentials are mandatory. Gemini is optional; /ai_advice degrades without it.
"""
import os
from typing import Mapping, Optional

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
DEFAULT_SYMPTOMS_PATH = os.path.abspath(
    os.path.join(os.path.dirname(__file__), "..", "data", "symptoms.json")
)

ENV_FILES = (
    os.path.join("backend", "env.file"),
    ".env.local",
    ".env",
)


class ConfigError(Exception):
    """Raised when mandatory settings are missing or malformed."""


class SupabaseConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    key: str
    history_table: str = "history"


class GeminiConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    api_key: str = ""
    model: str = "gemini-2.0-flash"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    timeout: float = 30.0

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)


class AppConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    supabase: SupabaseConfig
    gemini: GeminiConfig = GeminiConfig()
    host: str = "0.0.0.0"
    port: int = 5000
    symptoms_path: str = DEFAULT_SYMPTOMS_PATH


def read_layered_env(root: str = PROJECT_ROOT, environ: Optional[Mapping[str, str]] = None) -> dict:
    """Merge env files under root with the process environment (environment wins)."""
    merged: dict = {}
    for name in ENV_FILES:
        path = os.path.join(root, name)
        if os.path.isfile(path):
            merged.update({k: v for k, v in dotenv_values(path).items() if v is not None})
    merged.update(os.environ if environ is None else environ)
    return merged


def _number(env: Mapping[str, str], name: str, default, cast):
    raw = env.get(name) or ""
    if not raw.strip():
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e


def get_config(root: str = PROJECT_ROOT, environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    env = read_layered_env(root, environ)

    url = env.get("SUPABASE_URL", "")
    key = env.get("SUPABASE_KEY", "")
    if not url or not key:
        raise ConfigError("Supabase credentials are missing. Set SUPABASE_URL and SUPABASE_KEY.")

    return AppConfig(
        supabase=SupabaseConfig(
            url=url,
            key=key,
            history_table=env.get("HISTORY_TABLE") or "history",
        ),
        gemini=GeminiConfig(
            api_key=env.get("GEMINI_API_KEY") or env.get("GEMINI_KEY") or "",
            model=env.get("GEMINI_MODEL") or "gemini-2.0-flash",
            base_url=(env.get("GEMINI_BASE_URL") or GeminiConfig().base_url).rstrip("/"),
            timeout=_number(env, "GEMINI_TIMEOUT", 30.0, float),
        ),
        host=env.get("HOST") or "0.0.0.0",
        port=_number(env, "PORT", 5000, int),
        symptoms_path=env.get("SYMPTOMS_PATH") or DEFAULT_SYMPTOMS_PATH,
    )
