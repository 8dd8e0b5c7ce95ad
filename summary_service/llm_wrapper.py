# summary_service/llm_wrapper.py
"""
Centralized LLM wrapper. Supports OpenAI and Anthropic backends.
Returns a standardized dict:
{
  "text": "<assistant text>",
  "model": "<model used>",
  "response_id": "<model response id if available>",
  "raw": <raw response object>
}

Configuration (env vars):
  LLM_PROVIDER=openai|anthropic   (default: auto-detect based on available keys)
  OPENAI_API_KEY=...
  ANTHROPIC_API_KEY=...
  SUMMARY_LLM_MODEL=...           (default: depends on provider)
  MOCK_LLM=true                   (mock mode for dev/tests)

Usage:
  from summary_service.llm_wrapper import call_llm
  resp = call_llm(messages=..., temperature=0.7, max_tokens=500, timeout=30)
  text = resp["text"]; model = resp["model"]; rid = resp["response_id"]
"""

import os
import time
from typing import Dict, Any, Optional, List

from summary_service import config

LLM_PROVIDER = config.llm_provider()

# Default models per provider
_ANTHROPIC_DEFAULT = "claude-sonnet-4-20250514"
_OPENAI_DEFAULT = "gpt-4o-mini"

DEFAULT_MODEL = os.getenv(
    "SUMMARY_LLM_MODEL",
    _ANTHROPIC_DEFAULT if LLM_PROVIDER == "anthropic" else _OPENAI_DEFAULT
)


class LLMError(RuntimeError):
    pass


# ---------------------------------------------------------------------------
# Anthropic backend
# ---------------------------------------------------------------------------
def _real_anthropic_chat(messages: List[Dict[str, str]], model: str,
                         max_tokens: int = 500, temperature: float = 0.7,
                         timeout: float = 30) -> Dict[str, Any]:
    from anthropic import Anthropic

    client = Anthropic(api_key=config.ANTHROPIC_API_KEY, timeout=timeout, max_retries=0)

    resp = client.messages.create(
        model=model,
        max_tokens=max_tokens,
        temperature=temperature,
        messages=[{"role": m["role"], "content": m["content"]} for m in messages],
    )

    text = ""
    for block in resp.content:
        if hasattr(block, "text"):
            text += block.text

    rid = getattr(resp, "id", None)
    return {"text": text, "model": model, "response_id": rid, "raw": resp}


# ---------------------------------------------------------------------------
# OpenAI backend
# ---------------------------------------------------------------------------
def _real_openai_chat_completion(messages: List[Dict[str, str]], model: str,
                                  max_tokens: int = 500, temperature: float = 0.7,
                                  timeout: float = 30) -> Dict[str, Any]:
    from openai import OpenAI
    client = OpenAI(api_key=config.OPENAI_API_KEY, timeout=timeout, max_retries=0)
    resp = client.chat.completions.create(
        model=model,
        messages=messages,
        max_tokens=max_tokens,
        temperature=temperature
    )
    choices = getattr(resp, "choices", [])
    text = choices[0].message.content if choices else ""
    rid = getattr(resp, "id", None)
    return {"text": text or "", "model": model, "response_id": rid, "raw": resp}


# ---------------------------------------------------------------------------
# Mock backend
# ---------------------------------------------------------------------------
def _mock_llm(messages: List[Dict[str, str]], model: str, **kwargs) -> Dict[str, Any]:
    """
    Deterministic mock used in dev/tests. Returns a fixed four-section summary
    and a response_id based on time.
    """
    text = (
        "1. **Aaj ka Progress**: New update received, kaam chal raha hai\n"
        "2. **Current Status**: Project on track\n"
        "3. **Issues/Blockers**: None reported\n"
        "4. **Next Steps**: Continue as planned"
    )
    rid = f"mock-{model}-{int(time.time() * 1000)}"
    return {"text": text, "model": model, "response_id": rid, "raw": {"mock": True}}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def call_llm(messages: List[Dict[str, str]], model: Optional[str] = None,
             max_tokens: int = 500, temperature: float = 0.7,
             timeout: float = 30) -> Dict[str, Any]:
    """
    messages: list of {role, content}
    model: override model string
    Returns: dict with keys 'text','model','response_id','raw'
    """
    model = model or DEFAULT_MODEL
    if config.MOCK_LLM:
        return _mock_llm(messages, model=model, max_tokens=max_tokens,
                         temperature=temperature, timeout=timeout)
    try:
        if LLM_PROVIDER == "anthropic":
            return _real_anthropic_chat(messages, model=model,
                                        max_tokens=max_tokens,
                                        temperature=temperature,
                                        timeout=timeout)
        else:
            return _real_openai_chat_completion(messages, model=model,
                                                max_tokens=max_tokens,
                                                temperature=temperature,
                                                timeout=timeout)
    except Exception as e:
        raise LLMError(f"LLM call failed ({LLM_PROVIDER}): {e}") from e
