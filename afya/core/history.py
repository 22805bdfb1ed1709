"""Afya Link — History Recorder

Best-effort: one row per lookup that carries an email.
Failures are logged and never reach the caller.
"""
import structlog

from afya.core.models import HistoryEntry, SymptomRecord

logger = structlog.get_logger()


def mask_email(email: str) -> str:
    return email[:3] + "..." if email else ""


async def save_history(store, email, symptom: str, record: SymptomRecord, source: str = "offline") -> bool:
    """Insert a history row. Returns True only when the row was written."""
    if not email:
        return False
    try:
        entry = HistoryEntry.from_record(email, symptom, record, source)
        await store.insert_history(entry)
    except Exception as e:
        logger.error("history_save_failed", email=mask_email(email), source=source, error=str(e))
        return False
    logger.info("history_saved", email=mask_email(email), source=source)
    return True
