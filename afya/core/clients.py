"""Afya Link — Provider Clients

Supabase async client for auth (sign in / sign up) and the history table.
Provider failures are normalized to ProviderError carrying the provider's message.
"""
from typing import Optional

import structlog
from supabase import AsyncClient, acreate_client

from afya.core.config import AppConfig
from afya.core.models import HistoryEntry

logger = structlog.get_logger()


class ProviderError(Exception):
    """Failure reported by Supabase (auth or database)."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def _provider_message(exc: Exception) -> str:
    return getattr(exc, "message", None) or str(exc) or exc.__class__.__name__


class SupabaseStore:
    """Thin async wrapper over the Supabase client."""

    def __init__(self, client: AsyncClient, history_table: str = "history"):
        self.client = client
        self.history_table = history_table

    @classmethod
    async def connect(cls, config: AppConfig) -> "SupabaseStore":
        client = await acreate_client(config.supabase.url, config.supabase.key)
        logger.info("supabase_connected", table=config.supabase.history_table)
        return cls(client, config.supabase.history_table)

    # ── Auth ──────────────────────────────────────────────────────────

    async def sign_in(self, email: str, password: str) -> Optional[str]:
        try:
            resp = await self.client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            raise ProviderError(_provider_message(e)) from e
        return resp.user.email if resp.user else None

    async def sign_up(self, email: str, password: str) -> Optional[str]:
        try:
            resp = await self.client.auth.sign_up({"email": email, "password": password})
        except Exception as e:
            raise ProviderError(_provider_message(e)) from e
        return resp.user.email if resp.user else None

    # ── History ───────────────────────────────────────────────────────

    async def insert_history(self, entry: HistoryEntry) -> None:
        try:
            await self.client.table(self.history_table).insert(entry.model_dump()).execute()
        except Exception as e:
            raise ProviderError(_provider_message(e)) from e

    async def list_history(self, email: str) -> list[dict]:
        try:
            resp = await (
                self.client.table(self.history_table)
                .select("*")
                .eq("email", email)
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            raise ProviderError(_provider_message(e)) from e
        return resp.data or []
