"""Afya Link — AI Advice

Gemini generateContent over REST (httpx), plus a tolerant parser for the reply.
The model is asked for bare JSON, but replies often arrive fenced in markdown
or truncated, so parsing never raises: it falls back to the cleaned text.
"""
import json
import re

import httpx
import structlog

from afya.core.config import GeminiConfig
from afya.core.models import SymptomRecord

logger = structlog.get_logger()

_FENCE_JSON = re.compile(r"```json", re.IGNORECASE)


class AIAdviceError(Exception):
    """Gemini call failed or is not configured."""


def build_prompt(symptom: str) -> str:
    return " ".join([
        f"User reports symptom: '{symptom}'.",
        "Provide a concise description, possible causes, and personalized remedies.",
        "Respond ONLY with valid JSON (no markdown) using this exact structure:",
        "{",
        '  "description": string,',
        '  "causes": string[] or string,',
        '  "remedies": string[] or string',
        "}",
    ])


# ── Parsing ───────────────────────────────────────────────────────────

def normalize_list(value) -> list[str]:
    if not value:
        return []
    if isinstance(value, list):
        return [item if isinstance(item, str) else str(item) for item in value if item]
    return [value if isinstance(value, str) else str(value)]


def _fallback(clean: str, symptom: str) -> SymptomRecord:
    return SymptomRecord(
        description=clean or f"No description returned for {symptom}.",
        causes=[],
        remedies=[],
    )


def parse_ai_response(text: str, symptom: str) -> SymptomRecord:
    """Extract {description, causes, remedies} from free-form model output."""
    clean = _FENCE_JSON.sub("```", text or "").replace("```", "").strip()
    start = clean.find("{")
    end = clean.rfind("}")
    if start == -1 or end == -1:
        return _fallback(clean, symptom)

    try:
        parsed = json.loads(clean[start:end + 1])
    except ValueError:
        logger.warning("ai_response_json_fail", raw=clean[:200])
        return _fallback(clean, symptom)
    if not isinstance(parsed, dict):
        return _fallback(clean, symptom)

    description = parsed.get("description") or f"Summary for {symptom}"
    return SymptomRecord(
        description=description if isinstance(description, str) else str(description),
        causes=normalize_list(parsed.get("causes")),
        remedies=normalize_list(parsed.get("remedies")),
    )


def first_candidate_text(payload) -> str:
    try:
        return payload["candidates"][0]["content"]["parts"][0]["text"] or ""
    except (KeyError, IndexError, TypeError):
        return ""


def _error_message(resp: httpx.Response) -> str:
    try:
        message = resp.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        message = None
    return message or f"Gemini request failed with status {resp.status_code}"


# ── Client ────────────────────────────────────────────────────────────

class GeminiClient:
    """Calls Gemini generateContent. One short-lived AsyncClient per request."""

    def __init__(self, config: GeminiConfig, transport: httpx.AsyncBaseTransport = None):
        self.config = config
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    async def generate(self, prompt: str) -> str:
        if not self.enabled:
            raise AIAdviceError("Gemini API key is not configured on the server.")
        url = f"{self.config.base_url}/models/{self.config.model}:generateContent"
        headers = {"Content-Type": "application/json", "x-goog-api-key": self.config.api_key}
        body = {"contents": [{"parts": [{"text": prompt}]}]}
        async with httpx.AsyncClient(timeout=self.config.timeout, transport=self._transport) as http:
            resp = await http.post(url, headers=headers, json=body)
        if not resp.is_success:
            message = _error_message(resp)
            logger.error("gemini_request_fail", status=resp.status_code, error=message)
            raise AIAdviceError(message)
        text = first_candidate_text(resp.json())
        logger.info("gemini_ok", model=self.config.model, chars=len(text))
        return text

    async def advise(self, symptom: str) -> SymptomRecord:
        text = await self.generate(build_prompt(symptom))
        return parse_ai_response(text, symptom)
