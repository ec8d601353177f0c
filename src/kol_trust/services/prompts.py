"""Research prompts and output schemas per analysis mode."""

from typing import Any

from kol_trust.entities import AnalysisMode, Language

LANGUAGE_INSTRUCTIONS = {
    Language.EN: "Output all text fields in English.",
    Language.ZH_TW: (
        "Output fields 'bioSummary', 'verdict', 'description', 'details' "
        "in Traditional Chinese (繁體中文)."
    ),
}

QUICK_TEMPLATE = """
Analyze Crypto KOL: "{handle}".
{language_instruction}

Tasks:
1. Search "ZachXBT {handle}", "Coffeezilla {handle}", "Reddit r/CryptoCurrency {handle}".
2. Find positive calls (Good Reports) and scams/rug pulls/failed predictions (Negative Findings).
3. Detect paid promos or shilling.
4. Extract public wallet addresses.

Score logic:
- High score (80+): Accurate calls, community trust.
- Low score (<40): Paid promos, scams, rug pulls.
"""

ENHANCED_TEMPLATE = """
Analyze Crypto KOL: "{handle}"
{language_instruction}

=== REQUIRED WEB SEARCHES ===
Use exact queries to find investigative reports:
1. "ZachXBT {handle}" - On-chain investigative reports
2. "Coffeezilla {handle}" - Video exposés
3. "Reddit r/CryptoCurrency {handle}" - Community warnings or scam threads
4. "{handle} crypto scam allegations"
5. "{handle} rug pull history"

=== VERIFICATION TASKS ===
1. **Engagement Quality**: Search for follower-to-engagement ratio analysis.
2. **Shill Detection**: Look for patterns of undisclosed paid promotions.
3. **On-Chain Verification**: Search for any wallet addresses associated with this KOL.
4. **Risk Factors**: List each concrete red flag you found as a short phrase.

=== SCORE LOGIC ===
- 85-100: TRUSTED. Transparent about ads, high organic engagement, praised by investigators.
- 60-84: MIXED. Some failed calls or aggressive marketing, but no theft or rug pulls.
- 30-59: RISKY. Frequent shilling, undisclosed ads, or significant backlash.
- 0-29: SCAM ALERT. Confirmed rug pulls, exit scams, or documented fraud.

Provide a data-driven 'verdict' and 'trustScore' based on the ratio of wins vs controversies/scams.
"""

_HISTORY_ITEM_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "id": {"type": "STRING"},
        "date": {"type": "STRING", "description": "YYYY-MM-DD or 'Recent'"},
        "description": {"type": "STRING", "description": "Short title of event"},
        "type": {
            "type": "STRING",
            "enum": ["PREDICTION_WIN", "PREDICTION_LOSS", "CONTROVERSY", "NEUTRAL_NEWS"],
        },
        "token": {"type": "STRING", "nullable": True},
        "sentiment": {"type": "STRING", "enum": ["POSITIVE", "NEGATIVE", "NEUTRAL"]},
        "details": {"type": "STRING", "description": "Explanation of the event"},
        "sourceUrl": {"type": "STRING", "nullable": True},
    },
    "required": ["id", "date", "description", "type", "sentiment", "details"],
}

_REQUIRED_FIELDS = ["displayName", "bioSummary", "trustScore", "totalWins", "totalLosses", "verdict", "history"]


def build_prompt(handle: str, language: Language, mode: AnalysisMode) -> str:
    """Render the research prompt for a handle."""
    template = ENHANCED_TEMPLATE if mode is AnalysisMode.ENHANCED else QUICK_TEMPLATE
    return template.format(handle=handle, language_instruction=LANGUAGE_INSTRUCTIONS[language])


def build_response_schema(mode: AnalysisMode) -> dict[str, Any]:
    """Output-shape constraint for the model, in the Gemini OpenAPI subset."""
    properties: dict[str, Any] = {
        "displayName": {"type": "STRING", "description": "Name of the KOL"},
        "bioSummary": {"type": "STRING", "description": "1-2 sentence summary of their niche"},
        "trustScore": {"type": "NUMBER", "description": "0-100 based on reputation"},
        "totalWins": {"type": "NUMBER", "description": "Count of successful calls/good reports"},
        "totalLosses": {"type": "NUMBER", "description": "Count of failed calls/scams/controversies"},
        "followersCount": {"type": "STRING", "description": "Approximate follower count (e.g. '100K')"},
        "walletAddresses": {"type": "ARRAY", "items": {"type": "STRING"}},
        "verdict": {"type": "STRING", "description": "One-sentence verdict"},
        "history": {"type": "ARRAY", "items": _HISTORY_ITEM_SCHEMA},
    }
    if mode is AnalysisMode.ENHANCED:
        properties["engagementQuality"] = {
            "type": "STRING",
            "enum": ["ORGANIC", "MIXED", "SUSPICIOUS", "BOT_HEAVY"],
            "description": "Assessment of follower/engagement authenticity",
        }
        properties["riskFactors"] = {"type": "ARRAY", "items": {"type": "STRING"}}

    return {"type": "OBJECT", "properties": properties, "required": list(_REQUIRED_FIELDS)}
