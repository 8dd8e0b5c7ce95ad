# summary_service/processors/summary_generator.py
import re
from typing import Any, Dict

from summary_service import config
from summary_service.llm_wrapper import call_llm as _llm_call, DEFAULT_MODEL

SUMMARY_LLM_MODEL = DEFAULT_MODEL

# Lines mentioning any of these are copied into the Key_Changes column.
KEY_CHANGE_PATTERN = re.compile(r"Progress|Changed|New")


class GenerationTimeout(TimeoutError):
    pass


class GenerationError(RuntimeError):
    pass


def generate_summary(prompt: str) -> Dict[str, Any]:
    """
    Single user-message completion with the deployment's fixed model,
    temperature and output cap. No retry.
    Returns the call_llm dict; raises GenerationError on failure or empty text.
    """
    try:
        resp = _llm_call(
            messages=[{"role": "user", "content": prompt}],
            model=SUMMARY_LLM_MODEL,
            max_tokens=config.SUMMARY_MAX_TOKENS,
            temperature=config.SUMMARY_TEMPERATURE,
            timeout=config.LLM_TIMEOUT_SECONDS,
        )
    except Exception as e:
        raise GenerationError(str(e)) from e
    if not (resp.get("text") or "").strip():
        raise GenerationError("Model returned an empty summary")
    return resp


def extract_key_changes(summary: str) -> str:
    """Best-effort digest: matching lines joined with ' | '."""
    lines = [ln.strip() for ln in (summary or "").splitlines()]
    return " | ".join(ln for ln in lines if ln and KEY_CHANGE_PATTERN.search(ln))
