"""Gemini-based analysis provider.

Uses the Gemini ``generateContent`` REST endpoint with the Google Search
tool enabled, so the model researches the handle on the web and reports
the pages it relied on (grounding).

Requirements:
    - An API key in ``GEMINI_API_KEY``

Response anatomy used here:
    candidates[0].content.parts[*].text                    -> model text
    candidates[0].groundingMetadata.groundingChunks[*].web -> {uri, title} citations
    candidates[0].groundingMetadata.webSearchQueries       -> searches issued
"""

from typing import Any

import httpx

from kol_trust.config import settings
from kol_trust.entities import SourceLink, UpstreamResponse
from kol_trust.errors import UpstreamError, UpstreamErrorKind


def _retry_after(response: httpx.Response) -> int | None:
    value = response.headers.get("retry-after")
    if value and value.isdigit():
        return int(value)
    return None


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return f"HTTP {response.status_code}"


class GeminiAnalysisProvider:
    """Gemini implementation of the AnalysisProvider protocol.

    This class satisfies the AnalysisProvider protocol through structural
    typing - no explicit inheritance needed.

    Example:
        ```python
        provider = GeminiAnalysisProvider.create(model_name="gemini-2.0-flash")
        result = await provider.generate("Analyze Crypto KOL: \\"pentosh1\\"")
        print(result.text, result.sources)
        ```
    """

    def __init__(
        self,
        api_key: str | None = None,
        model_name: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the Gemini provider.

        Args:
            api_key: Gemini API key. Defaults to settings.gemini_api_key.
            model_name: Model id. Defaults to settings.gemini_model.
            base_url: REST base url. Defaults to settings.gemini_base_url.
            timeout: HTTP timeout in seconds. Defaults to settings.upstream_timeout_seconds.
            client: Pre-built HTTP client (mainly for tests).
        """
        self._api_key = api_key or settings.gemini_api_key
        self._model_name = model_name or settings.gemini_model
        self._base_url = (base_url or settings.gemini_base_url).rstrip("/")
        self._timeout = timeout or settings.upstream_timeout_seconds
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    @classmethod
    def create(
        cls,
        api_key: str | None = None,
        model_name: str | None = None,
    ) -> "GeminiAnalysisProvider":
        """Factory method to create GeminiAnalysisProvider with defaults."""
        return cls(api_key=api_key, model_name=model_name)

    @property
    def model_name(self) -> str:
        return self._model_name

    def _build_body(self, prompt: str, response_schema: dict[str, Any] | None) -> dict[str, Any]:
        body: dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "tools": [{"google_search": {}}],
        }
        if response_schema is not None:
            body["generationConfig"] = {
                "responseMimeType": "application/json",
                "responseSchema": response_schema,
            }
        return body

    async def generate(
        self,
        prompt: str,
        response_schema: dict[str, Any] | None = None,
    ) -> UpstreamResponse:
        """Run one grounded generation.

        Args:
            prompt: Research prompt
            response_schema: Optional OpenAPI-subset schema for JSON output

        Returns:
            UpstreamResponse with text, citations and search queries

        Raises:
            UpstreamError: Classified failure of the call
        """
        if not self._api_key:
            raise UpstreamError(UpstreamErrorKind.AUTH, "GEMINI_API_KEY is not configured")

        url = f"{self._base_url}/models/{self._model_name}:generateContent"

        try:
            response = await self.client.post(
                url,
                json=self._build_body(prompt, response_schema),
                headers={"x-goog-api-key": self._api_key},
            )
        except httpx.TimeoutException as e:
            raise UpstreamError(UpstreamErrorKind.TIMEOUT, f"Gemini request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise UpstreamError(UpstreamErrorKind.UNAVAILABLE, f"Gemini request failed: {e}") from e

        if response.status_code != 200:
            raise UpstreamError.from_status(
                response.status_code,
                f"Gemini API error: {_error_message(response)}",
                retry_after_seconds=_retry_after(response),
            )

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(UpstreamErrorKind.UNKNOWN, "Gemini returned a non-JSON envelope") from e

        return self._parse_envelope(data)

    @staticmethod
    def _parse_envelope(data: Any) -> UpstreamResponse:
        if not isinstance(data, dict):
            raise UpstreamError(UpstreamErrorKind.UNAVAILABLE, "Gemini envelope is not a JSON object")

        candidates = data.get("candidates") or []
        if not isinstance(candidates, list):
            raise UpstreamError(UpstreamErrorKind.UNAVAILABLE, "Gemini envelope has malformed candidates")
        if not candidates:
            return UpstreamResponse(text="")

        candidate = candidates[0]
        if not isinstance(candidate, dict):
            raise UpstreamError(UpstreamErrorKind.UNAVAILABLE, "Gemini candidate is not a JSON object")

        content = candidate.get("content") or {}
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            parts = []
        text = "".join(
            part["text"] for part in parts if isinstance(part, dict) and isinstance(part.get("text"), str)
        )

        grounding = candidate.get("groundingMetadata")
        if not isinstance(grounding, dict):
            grounding = {}

        sources = []
        chunks = grounding.get("groundingChunks")
        for chunk in chunks if isinstance(chunks, list) else []:
            web = chunk.get("web") if isinstance(chunk, dict) else None
            uri = web.get("uri") if isinstance(web, dict) else None
            if isinstance(uri, str) and uri:
                title = web.get("title")
                sources.append(SourceLink(title=title if isinstance(title, str) and title else uri, url=uri))

        queries = grounding.get("webSearchQueries")
        search_queries = [q for q in queries if isinstance(q, str)] if isinstance(queries, list) else []

        return UpstreamResponse(text=text, sources=sources, search_queries=search_queries)

    async def is_available(self) -> bool:
        """Check if the provider is configured.

        Does not spend a paid generation; only verifies the model endpoint
        answers for our key.
        """
        if not self._api_key:
            return False
        try:
            response = await self.client.get(
                f"{self._base_url}/models/{self._model_name}",
                headers={"x-goog-api-key": self._api_key},
            )
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    async def close(self) -> None:
        """Close the async HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
