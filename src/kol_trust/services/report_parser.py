"""Parsing and shaping of AI output.

The model is asked for JSON but does not always comply. ``parse_output``
tries, in order:

1. the whole text as JSON
2. the contents of a fenced code block (```json ... ``` or ``` ... ```)
3. the slice from the first ``{`` to the last ``}``

and returns ``Recognized`` or ``Malformed``. ``build_report`` turns a
recognized object into a ``KOLReport``, substituting the canonical
insufficient-information report when the model found nothing to
corroborate.
"""

import json
import logging
import re
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from kol_trust.dto import KOLReport
from kol_trust.entities import Language, Malformed, ParsedOutput, Recognized, UpstreamResponse
from kol_trust.errors import ReportParseError

logger = logging.getLogger(__name__)

_FENCED_BLOCK = re.compile(r"```(?:json|JSON)?\s*([\s\S]*?)\s*```")

INSUFFICIENT_INFO_TEXT = {
    Language.EN: {
        "bio_summary": "Not enough public information was found about this account.",
        "verdict": "Insufficient information to assess trustworthiness.",
    },
    Language.ZH_TW: {
        "bio_summary": "未找到足夠的公開資訊來評估此帳號。",
        "verdict": "資訊不足，無法評估可信度。",
    },
}


def _load_object(text: str) -> dict[str, Any] | None:
    try:
        data = json.loads(text)
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def parse_output(text: str | None) -> ParsedOutput:
    """Decode model text into a JSON object, tolerating common wrappers.

    Empty text is recognized as an empty object.
    """
    if text is None or not text.strip():
        return Recognized({})

    data = _load_object(text)
    if data is not None:
        return Recognized(data)

    match = _FENCED_BLOCK.search(text)
    if match:
        data = _load_object(match.group(1))
        if data is not None:
            return Recognized(data)
        logger.debug("Fenced block did not contain a JSON object")

    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        data = _load_object(text[start : end + 1])
        if data is not None:
            return Recognized(data)
        logger.debug("Bracket slice did not contain a JSON object")

    return Malformed(text)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def insufficient_information_report(
    handle: str,
    language: Language,
    upstream: UpstreamResponse | None = None,
) -> KOLReport:
    """The canonical report used when the model found nothing to go on."""
    text = INSUFFICIENT_INFO_TEXT[language]
    return KOLReport(
        handle=handle,
        display_name=handle,
        bio_summary=text["bio_summary"],
        trust_score=50,
        total_wins=0,
        total_losses=0,
        verdict=text["verdict"],
        history=[],
        sources=[{"title": s.title, "url": s.url} for s in upstream.sources] if upstream else [],
        search_queries=list(upstream.search_queries) if upstream else [],
        last_analyzed=_utc_now_iso(),
    )


def _has_evidence(data: dict[str, Any], upstream: UpstreamResponse) -> bool:
    return bool(data.get("history")) or bool(upstream.sources)


def build_report(
    parsed: ParsedOutput,
    handle: str,
    language: Language,
    upstream: UpstreamResponse,
) -> KOLReport:
    """Shape recognized model output into a report.

    Args:
        parsed: Result of ``parse_output``
        handle: Display form of the normalized query
        language: Report language
        upstream: The raw call result (citations and search queries)

    Returns:
        KOLReport, or the insufficient-information report when the output is
        empty or uncorroborated

    Raises:
        ReportParseError: If the output is malformed or violates the schema
    """
    if isinstance(parsed, Malformed):
        raise ReportParseError(f"Model output is not valid JSON ({len(parsed.raw_text)} chars)")

    data = parsed.data
    if not data or not _has_evidence(data, upstream):
        logger.info("No corroborating evidence for %s, using insufficient-information report", handle)
        return insufficient_information_report(handle, language, upstream)

    fields = {
        **data,
        "handle": handle,
        "sources": [{"title": s.title, "url": s.url} for s in upstream.sources],
        "searchQueries": list(upstream.search_queries),
        "lastAnalyzed": _utc_now_iso(),
    }
    # The model may answer in snake_case; the alias wins on conflict
    for name in ("search_queries", "last_analyzed"):
        fields.pop(name, None)

    try:
        report = KOLReport.model_validate(fields)
    except ValidationError as e:
        raise ReportParseError(f"Model output does not match the report schema: {e.error_count()} errors") from e
    except (TypeError, OverflowError) as e:
        raise ReportParseError(f"Model output does not match the report schema: {e}") from e

    if not report.display_name:
        report = report.model_copy(update={"display_name": handle})
    return report
