# summary_service/processors/prompt_builder.py
from typing import Dict, List, Optional

from summary_service.schemas import HistoryEntry

NOT_PROVIDED = "Not provided"
NO_HISTORY = "No previous history"

STATUS_FIELDS = [
    ("drawings", "Engineering Drawings"),
    ("materials", "Materials Status"),
    ("process", "Process"),
    ("conversations", "Recent Conversations"),
]

PROMPT_TEMPLATE = """You are analyzing a manufacturing project. Generate a concise summary in Hindi-English mix (Hinglish) that managers can quickly understand.

Previous Context (Last {history_count} days):
{previous_context}

Current Project Status:
{status_lines}
{additional_block}
Generate a summary with:
1. **Aaj ka Progress**: What happened today vs yesterday
2. **Current Status**: Overall project state
3. **Issues/Blockers**: Any problems (in red flag style)
4. **Next Steps**: What needs to be done

Keep it concise (max 200 words), use bullet points, mix Hindi-English naturally."""


def build_previous_context(history: List[HistoryEntry]) -> str:
    """Oldest first; the most recent entry is labelled Day -1."""
    n = len(history)
    return "\n\n".join(
        f"Day -{n - i}: {entry.summary}" for i, entry in enumerate(history)
    )


def build_prompt(fields: Dict[str, str], history: List[HistoryEntry],
                 extra: Optional[Dict[str, str]] = None) -> str:
    previous_context = build_previous_context(history)
    status_lines = "\n".join(
        f"- {label}: {fields.get(key) or NOT_PROVIDED}" for key, label in STATUS_FIELDS
    )
    additional_block = ""
    if extra:
        additional_block = "\nAdditional Details:\n" + "\n".join(
            f"- {k}: {v}" for k, v in extra.items()
        ) + "\n"
    return PROMPT_TEMPLATE.format(
        history_count=len(history),
        previous_context=previous_context or NO_HISTORY,
        status_lines=status_lines,
        additional_block=additional_block,
    )
