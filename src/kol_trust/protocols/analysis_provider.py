"""Analysis provider protocol.

Defines the interface for the generative AI service that researches a
handle. The service is treated as an opaque, slow, non-deterministic and
occasionally malformed collaborator.

Implementations can include:
- Gemini with Google Search grounding (default)
- Any other model exposing text generation plus citations
"""

from typing import Any, Protocol, runtime_checkable

from kol_trust.entities import UpstreamResponse


@runtime_checkable
class AnalysisProvider(Protocol):
    """Protocol for generative AI backends."""

    @property
    def model_name(self) -> str:
        """Return the name/identifier of the model."""
        ...

    async def generate(
        self,
        prompt: str,
        response_schema: dict[str, Any] | None = None,
    ) -> UpstreamResponse:
        """Run one generation.

        Args:
            prompt: Natural-language research prompt
            response_schema: Optional output-shape constraint

        Returns:
            Model text plus grounding citations and issued search queries

        Raises:
            UpstreamError: If the call fails
        """
        ...

    async def is_available(self) -> bool:
        """Check if the provider is configured and reachable."""
        ...

    async def close(self) -> None:
        """Release network resources."""
        ...
