"""OpenAI GPT-4o backend for competitor analysis.

Used instead of the external AI service when ``AI_BACKEND=openai``; returns
the same response shape as ``AIServiceClient.competitor_analysis``.
"""

import json
import logging
import time
from typing import Any

from openai import AsyncOpenAI, OpenAIError

from app.exceptions import AIServiceError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a social media competitive intelligence analyst. You receive collected "
    "data for several competitor profiles (profile metrics, content analysis, "
    "engagement metrics, recent posts and a data quality score) and return a JSON "
    "object with these fields:\n"
    '  "competitors": list of objects, one per competitor, with "profile_url", '
    '"platform", "strengths" (list), "weaknesses" (list), "content_strategy" (1-2 sentences),\n'
    '  "market_insights": object with "trends" (list) and "opportunities" (list),\n'
    '  "benchmark_metrics": object with "average_engagement_rate", '
    '"average_posts_per_week" and "top_performer" (profile_url),\n'
    '  "competitive_landscape": object with "summary" (2-3 sentences) and "positioning" (list),\n'
    '  "recommendations": list of objects with "title", "description", "priority" '
    '("high" | "medium" | "low"),\n'
    '  "ai_insights": object with "summary" and "key_findings" (list),\n'
    '  "confidence_score": float 0.0-1.0.\n'
    "Skip sections the analysis_options disable by returning them empty. "
    "Return ONLY valid JSON, no markdown."
)


class OpenAIService:
    def __init__(self, api_key: str, model: str = "gpt-4o"):
        self.client = AsyncOpenAI(api_key=api_key)
        self.model = model

    async def close(self):
        await self.client.close()

    async def competitor_analysis(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Analyze the collected competitor payload with a JSON-mode chat completion."""
        started = time.monotonic()
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": json.dumps(payload, default=str)},
                ],
                response_format={"type": "json_object"},
                temperature=0.3,
                max_tokens=3000,
            )
            result = json.loads(response.choices[0].message.content)
        except OpenAIError as e:
            logger.error("OpenAI competitor analysis failed: %s", e)
            raise AIServiceError("OpenAI competitor analysis failed", detail=str(e)) from e
        except (TypeError, ValueError) as e:
            raise AIServiceError("OpenAI returned invalid JSON", detail=str(e)) from e

        elapsed_ms = int((time.monotonic() - started) * 1000)
        confidence = result.pop("confidence_score", 0)
        logger.info(
            "OpenAI competitor analysis completed in %dms (%d tokens)",
            elapsed_ms, response.usage.total_tokens if response.usage else 0,
        )
        return {
            "results": result,
            "model_version": response.model or self.model,
            "processing_time_ms": elapsed_ms,
            "confidence_score": confidence,
        }
