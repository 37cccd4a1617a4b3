from openai import OpenAI, OpenAIError
from app.core.config import settings
from app.core.errors import UpstreamError
from app.core.logger import logger
from typing import Dict, List

client = OpenAI(
    api_key=settings.OPENAI_API_KEY or "missing-key",
    base_url=settings.OPENAI_BASE_URL or None,
)


def get_ai_completion(messages: List[Dict[str, str]], temperature: float = 0.7) -> str:
    try:
        response = client.chat.completions.create(
            model=settings.OPENAI_MODEL,
            messages=messages,
            temperature=temperature,
        )
    except OpenAIError as e:
        logger.error(f"LLM backend error: {e}")
        raise UpstreamError("AI planner is temporarily unavailable.")
    logger.info("LLM response received")

    if not response.choices:
        logger.error("No choices returned from LLM")
        raise UpstreamError("AI planner returned no content.")

    return response.choices[0].message.content or ""
