# summary_service/orchestrator.py
import asyncio
import time
from typing import Any, Dict, Mapping, Optional, Tuple

from starlette.concurrency import run_in_threadpool

# Import modules (not bare functions) so monkeypatching in tests works correctly
import summary_service.history as _history
import summary_service.processors.summary_generator as _generator
import summary_service.connectors.glide_connector as _glide
from summary_service import config
from summary_service import monitoring
from summary_service.processors.identifier import MissingIdentifier, normalize_fields, resolve_project_id
from summary_service.processors.prompt_builder import build_previous_context, build_prompt
from summary_service.schemas import StatusRecord, utc_now_iso
from summary_service.store import StoreHandle


class SummaryOrchestrator:
    """
    One linear pipeline per request:
    1. Identifier resolution
    2. History lookup (soft-fail)
    3. Prompt assembly + generation (bounded by a timeout, hard-fail)
    4. Persistence with one retry, then optional Glide propagation (both soft-fail)
    """

    def __init__(self, store: Optional[StoreHandle] = None, history_limit: Optional[int] = None,
                 generation_timeout: Optional[float] = None, save_retry_delay: Optional[float] = None):
        self.store = store or StoreHandle()
        self.history_limit = config.HISTORY_LIMIT if history_limit is None else history_limit
        self.generation_timeout = config.LLM_TIMEOUT_SECONDS if generation_timeout is None else generation_timeout
        self.save_retry_delay = config.SAVE_RETRY_DELAY_SECONDS if save_retry_delay is None else save_retry_delay

    def _elapsed_ms(self, start: float) -> int:
        return int((time.time() - start) * 1000)

    def _error_body(self, error: str, details: str, start: float) -> Dict[str, Any]:
        return {
            "success": False,
            "error": error,
            "details": details,
            "metadata": {
                "executionTimeMs": self._elapsed_ms(start),
                "timestamp": utc_now_iso(),
            },
        }

    async def _generate(self, prompt: str) -> Dict[str, Any]:
        gen_start = time.time()
        # executor future: on timeout the worker thread is abandoned, not awaited
        loop = asyncio.get_running_loop()
        try:
            resp = await asyncio.wait_for(
                loop.run_in_executor(None, _generator.generate_summary, prompt),
                timeout=self.generation_timeout,
            )
        except asyncio.TimeoutError as e:
            monitoring.observe_generation(gen_start, "timeout")
            raise _generator.GenerationTimeout(
                f"Summary generation timed out after {self.generation_timeout:g}s"
            ) from e
        except Exception:
            monitoring.observe_generation(gen_start, "fail")
            raise
        monitoring.observe_generation(gen_start, "success")
        return resp

    async def handle_request(self, payload: Mapping[str, Any]) -> Tuple[int, Dict[str, Any]]:
        """Returns (http_status, body)."""
        start = time.time()

        # 1) Identifier
        try:
            project_id = resolve_project_id(payload)
        except MissingIdentifier as e:
            return 400, {"success": False, "error": str(e), "hint": e.hint}
        fields, extra = normalize_fields(payload)

        # 2) History
        history = await run_in_threadpool(
            _history.fetch_previous_summaries, self.store, project_id, self.history_limit
        )
        monitoring.set_last_history_count(len(history))
        previous_context = build_previous_context(history)

        # 3) Generation
        prompt = build_prompt(fields, history, extra)
        try:
            resp = await self._generate(prompt)
        except (_generator.GenerationTimeout, _generator.GenerationError) as e:
            monitoring.logger.error("Summary generation failed",
                                    extra={"project_id": project_id, "error": str(e)})
            return 500, self._error_body("Failed to generate summary", str(e), start)

        summary = resp.get("text", "")
        key_changes = _generator.extract_key_changes(summary)

        # 4) Persistence + propagation
        record = StatusRecord.with_snapshot(
            dict(payload),
            project_id=project_id,
            summary=summary,
            key_changes=key_changes,
            previous_context=previous_context,
        )
        saved = await run_in_threadpool(
            _history.save_summary_record, self.store, record, self.save_retry_delay
        )

        metadata: Dict[str, Any] = {
            "previousSummariesCount": len(history),
            "savedToSheet": saved,
        }
        if _glide.is_configured():
            metadata["savedToGlide"] = await run_in_threadpool(_glide.push_summary, project_id, summary)
        metadata["executionTimeMs"] = self._elapsed_ms(start)
        metadata["timestamp"] = record.timestamp

        body: Dict[str, Any] = {
            "success": True,
            "projectId": project_id,
            "summary": summary,
        }
        if key_changes:
            body["keyChanges"] = key_changes
        body["metadata"] = metadata

        monitoring.logger.info("Summary generated", extra={
            "project_id": project_id,
            "previous_summaries": len(history),
            "saved_to_sheet": saved,
            "execution_ms": metadata["executionTimeMs"],
        })
        return 200, body
