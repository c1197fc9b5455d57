"""HTTP client for the external AI analysis service."""

import logging
import time

import httpx

from app.config import get_settings
from app.exceptions import AIServiceError

logger = logging.getLogger(__name__)
settings = get_settings()


class AIServiceClient:
    """
    Posts competitor payloads to ``{ai_service_url}/ai/competitor-analysis``.

    Expected response:
        {
            "results": {competitors, market_insights, benchmark_metrics,
                        competitive_landscape, recommendations, ai_insights},
            "model_version": str,
            "processing_time_ms": int,
            "confidence_score": float,
        }
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.ai_service_url).rstrip("/")
        self.api_key = api_key or settings.ai_service_api_key
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout or settings.ai_service_timeout, connect=10.0),
            transport=transport,
        )

    async def close(self):
        await self.client.aclose()

    async def competitor_analysis(self, payload: dict) -> dict:
        url = f"{self.base_url}/ai/competitor-analysis"
        started = time.monotonic()
        try:
            response = await self.client.post(
                url,
                json=payload,
                headers={"x-api-key": self.api_key, "Content-Type": "application/json"},
            )
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            raise AIServiceError("AI service request timed out", detail=str(e)) from e
        except httpx.HTTPStatusError as e:
            raise AIServiceError(
                "AI service returned an error",
                status_code=e.response.status_code,
                detail=e.response.text[:500],
            ) from e
        except httpx.HTTPError as e:
            raise AIServiceError("AI service is unreachable", detail=str(e)) from e
        except ValueError as e:
            raise AIServiceError("AI service returned invalid JSON", detail=str(e)) from e

        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.info("AI competitor analysis completed in %dms", elapsed_ms)
        if not isinstance(data, dict):
            raise AIServiceError("AI service returned an unexpected payload", detail=type(data).__name__)
        data.setdefault("processing_time_ms", elapsed_ms)
        return data


def get_ai_client():
    """Analysis backend selected by ``settings.ai_backend``."""
    if settings.ai_backend == "openai":
        from app.services.openai_service import OpenAIService

        return OpenAIService(settings.openai_api_key, model=settings.openai_model)
    return AIServiceClient()
