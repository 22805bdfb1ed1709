"""Afya Link — Offline Symptom Table

Static symptom -> {description, causes, remedies} mapping, loaded once from symptoms.json.
A missing or malformed file leaves the table empty; the service keeps running.
"""
import json
from types import MappingProxyType
from typing import Mapping, Optional

import structlog
from pydantic import ValidationError

from afya.core.models import SymptomRecord

logger = structlog.get_logger()


def normalize_symptom(text) -> str:
    return (text or "").lower().strip()


class SymptomTable:
    """Read-only lookup table keyed by normalized symptom."""

    def __init__(self, records: Mapping[str, SymptomRecord] = None):
        self._records = MappingProxyType(dict(records or {}))

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, symptom) -> bool:
        return normalize_symptom(symptom) in self._records

    def lookup(self, symptom: str) -> Optional[SymptomRecord]:
        return self._records.get(symptom)

    @classmethod
    def from_mapping(cls, raw: Mapping) -> "SymptomTable":
        records = {}
        for name, value in raw.items():
            key = normalize_symptom(name)
            if not key:
                continue
            try:
                records[key] = SymptomRecord.model_validate(value)
            except ValidationError as e:
                logger.warning("symptom_entry_skipped", symptom=key, errors=e.error_count())
        return cls(records)

    @classmethod
    def load(cls, path: str) -> "SymptomTable":
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("symptoms_load_failed", path=path, error=str(e))
            return cls()
        if not isinstance(raw, dict):
            logger.warning("symptoms_load_failed", path=path, error="top-level value is not an object")
            return cls()
        table = cls.from_mapping(raw)
        logger.info("symptoms_loaded", path=path, count=len(table))
        return table
