from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional

from openai import AzureOpenAI

from suggest.llm_fallback import LLMProvider

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 20.0
MAX_OUTPUT_TOKENS = 300

_decoder = json.JSONDecoder()


def extract_json_object(text: str) -> Dict[str, Any]:
    """First JSON object embedded in a model reply, or {}.

    Replies often wrap the object in prose or a ```json fence; each "{" is tried
    as the start of an object until one decodes.
    """
    start = text.find("{")
    while start != -1:
        try:
            obj, _ = _decoder.raw_decode(text, start)
        except ValueError:
            start = text.find("{", start + 1)
            continue
        if isinstance(obj, dict):
            return obj
        start = text.find("{", start + 1)
    return {}


def _timeout_from_env() -> float:
    try:
        return float(os.getenv("ORACLE_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT_SECONDS)))
    except ValueError:
        return DEFAULT_TIMEOUT_SECONDS


class AzureOAIProvider(LLMProvider):
    """Column oracle backed by an Azure OpenAI deployment.

    Env:
      AZURE_OPENAI_ENDPOINT      https://<resource>.openai.azure.com/
      AZURE_OPENAI_API_KEY       key for that resource
      AZURE_OPENAI_API_VERSION   default 2024-12-01-preview
      AZURE_OPENAI_DEPLOYMENT    default gpt-4o-mini
      ORACLE_TIMEOUT_SECONDS     per-request timeout (default 20)
    """

    def __init__(self, deployment: Optional[str] = None, timeout: Optional[float] = None):
        self.deployment = deployment or os.getenv("AZURE_OPENAI_DEPLOYMENT", "gpt-4o-mini")
        # max_retries=0: a failed call falls straight back to the heuristics
        self.client = AzureOpenAI(
            api_key=os.environ["AZURE_OPENAI_API_KEY"],
            api_version=os.getenv("AZURE_OPENAI_API_VERSION", "2024-12-01-preview"),
            azure_endpoint=os.environ["AZURE_OPENAI_ENDPOINT"],
            timeout=timeout if timeout is not None else _timeout_from_env(),
            max_retries=0,
        )

    def infer(self, prompt: str) -> dict:
        resp = self.client.responses.create(
            model=self.deployment,
            input=prompt,
            max_output_tokens=MAX_OUTPUT_TOKENS,
        )
        text = getattr(resp, "output_text", None) or ""
        answer = extract_json_object(text)
        if not answer:
            logger.info("oracle reply held no JSON object (%d chars)", len(text))
        return answer


def build_provider_from_env() -> Optional[AzureOAIProvider]:
    if os.getenv("AZURE_OPENAI_ENDPOINT") and os.getenv("AZURE_OPENAI_API_KEY"):
        return AzureOAIProvider()
    logger.debug("Azure OpenAI not configured; column mapping is heuristics-only")
    return None
