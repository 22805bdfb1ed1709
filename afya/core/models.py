"""Afya Link — Data Models"""
import json
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

HISTORY_SOURCES = ("offline", "offline_unknown", "ai")


class SymptomRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    description: str
    causes: List[str] = Field(default_factory=list)
    remedies: List[str] = Field(default_factory=list)


class HistoryEntry(BaseModel):
    """One row of the history table. Lists are stored as JSON strings."""

    email: str
    symptom: str
    description: str
    causes: str
    remedies: str
    source: str
    created_at: str

    @classmethod
    def from_record(cls, email: str, symptom: str, record: SymptomRecord, source: str) -> "HistoryEntry":
        if source not in HISTORY_SOURCES:
            raise ValueError(f"unknown history source: {source}")
        return cls(
            email=email,
            symptom=symptom,
            description=record.description,
            causes=json.dumps(list(record.causes)),
            remedies=json.dumps(list(record.remedies)),
            source=source,
            created_at=datetime.now(timezone.utc).isoformat(),
        )


# ── Request bodies ────────────────────────────────────────────────────

class Credentials(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class SymptomQuery(BaseModel):
    symptom: Optional[str] = None
    email: Optional[str] = None
