"""Prompt library for LLM-assisted brief generation.

Each prompt builder produces a system/user message pair for generating
valid, structured JSON output.
"""

from dealprep.prompts.synthesize_brief import (
    BRIEF_SCHEMA_EXAMPLE,
    SYNTHESIS_SYSTEM_PROMPT,
    build_repair_prompt,
    build_synthesis_prompt,
)

__all__ = [
    "BRIEF_SCHEMA_EXAMPLE",
    "SYNTHESIS_SYSTEM_PROMPT",
    "build_repair_prompt",
    "build_synthesis_prompt",
]
