"""Analysis Client — one phase-specific analysis request per call.

Invariants:
    - analyze() sends exactly one logical request (retries handled by the transport)
    - Stale axioms never reach the prompt (format_axioms filters them)
    - The image block is attached only for the global phase
    - Returns a schema-validated Analysis or raises an LLMServiceError
    - Never mutates the axioms or analyses it is given

Design Decisions:
    - Prompt/schema assembly here, retry/backoff in infrastructure: the
      transport knows nothing about phases
"""

import logging
from collections.abc import Iterable
from functools import partial

from dialectica.core.axiom_store import Axiom
from dialectica.core.domain_types import AnalysisPhase
from dialectica.core.errors import ErrorContext
from dialectica.core.format_prompts import build_user_prompt
from dialectica.core.response_parsing import parse_response
from dialectica.core.session_state import ImageData
from dialectica.infrastructure.anthropic_client import ResilientAnthropicClient
from dialectica.schemas.analysis import Analysis
from dialectica.services.analysis_tools import TOOL_NAME, build_analysis_tool
from dialectica.services.system_prompt import build_system_prompt

logger = logging.getLogger(__name__)


class AnalysisClient:
    """Builds analysis requests and returns validated results."""

    def __init__(
        self,
        transport: ResilientAnthropicClient,
        model: str,
        max_tokens: int = 16_000,
    ):
        self.transport = transport
        self.model = model
        self.max_tokens = max_tokens

    async def analyze(
        self,
        text: str,
        axioms: Iterable[Axiom],
        *,
        phase: AnalysisPhase,
        image: ImageData | None = None,
        global_context: Analysis | None = None,
        previous_context: Analysis | None = None,
        chunk_label: str | None = None,
    ) -> Analysis:
        """Run one analysis request for the given phase."""
        prompt = build_user_prompt(
            phase, text, axioms,
            global_context=global_context,
            previous_context=previous_context,
            chunk_label=chunk_label,
        )
        content: list[dict] = [{"type": "text", "text": prompt}]
        if image is not None and phase == AnalysisPhase.GLOBAL:
            content.append({
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": image.mime_type,
                    "data": image.data,
                },
            })

        logger.info(
            f"Requesting {phase.value} analysis",
            extra={"phase": phase.value, "chunk_label": chunk_label},
        )
        return await self.transport.create_message(
            model=self.model,
            max_tokens=self.max_tokens,
            system=build_system_prompt(phase),
            messages=[{"role": "user", "content": content}],
            tools=[build_analysis_tool(phase)],
            tool_choice={"type": "tool", "name": TOOL_NAME},
            parse=partial(parse_response, phase=phase, tool_name=TOOL_NAME),
            context=ErrorContext(phase=phase.value, chunk_label=chunk_label),
        )
