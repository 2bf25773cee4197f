"""Bounded negotiation between a generative model and the display constraints.

The model must hand its content in through the ``submit_content`` tool.
Each submission is validated; a rejection is sent back as the tool result
with exact, actionable errors and a wrap preview, and the model gets another
turn. Rejections are ordinary data inside the loop. Only running out of
attempts under the ``raise`` policy produces an exception.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..core.async_utils import AsyncTimeoutError, run_with_timeout
from ..core.protocols import (
    GenerativeModel,
    ModelRequest,
    ModelResponse,
    ToolDefinition,
    ToolResult,
)
from ..display.charset import FRAMED_COLS, FRAMED_ROWS, truncate_graphemes
from ..display.preview import render_preview
from ..display.validators import SUPPORTED_CHARS_HINT, validate_text_content
from .exceptions import ProviderTimeoutError, ToolAttemptsExhaustedError
from .models import (
    FormatOptions,
    GeneratedContent,
    GenerationContext,
    OutputMode,
    ValidationResult,
)
from .sources import PromptedSource

logger = logging.getLogger(__name__)

SUBMIT_CONTENT = "submit_content"
DEFAULT_CALL_TIMEOUT = 30.0

SUBMIT_CONTENT_TOOL = ToolDefinition(
    name=SUBMIT_CONTENT,
    description=(
        "Submit content for display on the split-flap board. Content must fit within "
        "the framed display area (5 rows x 21 characters). Use newlines to separate "
        "lines. Content is automatically converted to uppercase."
    ),
    parameters={
        "type": "object",
        "properties": {
            "content": {
                "type": "string",
                "description": (
                    "The text content to display. Maximum 5 rows with 21 characters per "
                    "row. Use \\n for line breaks. Supported characters: "
                    f"{SUPPORTED_CHARS_HINT}. Content is uppercased automatically."
                ),
            }
        },
        "required": ["content"],
    },
)

NO_TOOL_CALL_ERROR = (
    "You must use the submit_content tool to submit your content. "
    "Do not respond with plain text."
)


class ExhaustionPolicy(str, Enum):
    """What happens when the attempt budget runs out."""

    RAISE = "raise"
    USE_LAST = "use-last"


@dataclass
class SubmitContentResult:
    """Outcome of one ``submit_content`` call."""

    accepted: bool
    preview: list[str]
    errors: list[str] = field(default_factory=list)
    hint: Optional[str] = None

    def to_feedback(self) -> str:
        """Serialize for the model's next turn."""
        payload: dict[str, Any] = {"accepted": self.accepted, "preview": self.preview}
        if not self.accepted:
            payload["errors"] = self.errors
            payload["hint"] = self.hint
        return json.dumps(payload)


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def actionable_errors(
    result: ValidationResult, content: str, max_lines: int = FRAMED_ROWS
) -> list[str]:
    """Turn a validation result into errors a model can act on."""
    if not content.strip():
        return ["Content cannot be empty. Provide text to display."]

    errors: list[str] = []
    if result.line_count > max_lines:
        over = result.line_count - max_lines
        if result.wrapping_applied:
            errors.append(
                f"Content has {result.line_count} lines after word-wrapping, "
                f"maximum {max_lines} — remove {_plural(over, 'line')}."
            )
        else:
            errors.append(
                f"Content has {result.line_count} lines, maximum {max_lines} — "
                f"remove {_plural(over, 'line')}."
            )

    if result.invalid_chars:
        shown = ", ".join(result.invalid_chars[:5])
        more = len(result.invalid_chars) - 5
        more_text = f" (and {more} more)" if more > 0 else ""
        errors.append(
            f"Invalid characters found: {shown}{more_text}. Use only {SUPPORTED_CHARS_HINT}"
        )

    for error in result.errors:
        if "empty" in error or "lines" in error or "invalid characters" in error:
            continue
        errors.append(error)
    return errors


def build_hint(
    result: ValidationResult,
    content: str,
    max_lines: int = FRAMED_ROWS,
    max_cols: int = FRAMED_COLS,
) -> str:
    """One or two sentences on how to fix the submission."""
    if not content.strip():
        return "Provide motivational, informational, or creative content for the display."

    hints: list[str] = []
    if result.line_count > max_lines:
        if result.wrapping_applied:
            hints.append(
                "Your lines are too long and word-wrapping exceeded the row limit. "
                "Try shorter phrases or fewer words per line."
            )
        else:
            hints.append(
                f"The display can show {max_lines} lines. Condense your message."
            )
    if result.invalid_chars:
        hints.append(
            "The board has a limited character set like an airport departure board. "
            "Stick to letters, numbers, and basic punctuation."
        )
    if result.max_line_length > max_cols:
        hints.append(
            f"Each line can have at most {max_cols} characters. Use shorter words."
        )
    if not hints:
        return "Review the preview to see how your content would appear and adjust accordingly."
    return " ".join(hints)


def execute_submit_content(
    content: str,
    max_lines: int = FRAMED_ROWS,
    max_cols: int = FRAMED_COLS,
    word_wrap: bool = True,
) -> SubmitContentResult:
    """Validate one submission and build the model-facing result."""
    result = validate_text_content(content, max_lines, max_cols, word_wrap)
    preview = render_preview(content).split("\n")
    if result.valid:
        return SubmitContentResult(accepted=True, preview=preview)
    return SubmitContentResult(
        accepted=False,
        preview=preview,
        errors=actionable_errors(result, content, max_lines),
        hint=build_hint(result, content, max_lines, max_cols),
    )


def truncate_to_fit(
    content: str, max_lines: int = FRAMED_ROWS, max_cols: int = FRAMED_COLS
) -> str:
    """Keep the first ``max_lines`` lines, each cut to ``max_cols`` cells."""
    lines = content.split("\n")[:max_lines]
    return "\n".join(truncate_graphemes(line, max_cols) for line in lines)


class ToolValidationLoop:
    """Negotiates content with a model until it fits or attempts run out.

    Args:
        max_attempts: Model turns allowed per run (default 3)
        exhaustion_policy: ``raise`` or ``use-last``
        call_timeout: Seconds allowed per model call (default 30); None disables
    """

    def __init__(
        self,
        max_attempts: int = 3,
        exhaustion_policy: ExhaustionPolicy = ExhaustionPolicy.RAISE,
        call_timeout: Optional[float] = DEFAULT_CALL_TIMEOUT,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.exhaustion_policy = ExhaustionPolicy(exhaustion_policy)
        self.call_timeout = call_timeout

    async def _call(self, model: GenerativeModel, request: ModelRequest) -> ModelResponse:
        try:
            return await run_with_timeout(model.generate(request), self.call_timeout)
        except AsyncTimeoutError as exc:
            raise ProviderTimeoutError(
                f"{model.name} did not respond within {exc.timeout}s",
                provider=model.name,
                original_error=exc,
            ) from exc
        except (asyncio.TimeoutError, TimeoutError) as exc:
            raise ProviderTimeoutError(
                f"{model.name} timed out: {exc}",
                provider=model.name,
                original_error=exc,
            ) from exc

    async def run(
        self,
        source: PromptedSource,
        context: GenerationContext,
        model: GenerativeModel,
        format_options: Optional[FormatOptions] = None,
    ) -> GeneratedContent:
        """Run the negotiation for one cycle.

        Provider errors raised by ``model`` propagate unchanged so the
        failover coordinator can classify them. Timeouts, whether from
        ``call_timeout`` or raised by the model client, become
        ``ProviderTimeoutError``.

        Raises:
            ToolAttemptsExhaustedError: Budget spent under the ``raise`` policy
            ProviderError: The model call itself failed
        """
        max_lines = format_options.max_lines if format_options else FRAMED_ROWS
        max_cols = format_options.max_chars_per_line if format_options else FRAMED_COLS
        word_wrap = format_options.word_wrap if format_options else True
        prompts = source.build_prompts(context)
        base_metadata = {
            "system_prompt": prompts.system_prompt,
            "user_prompt": prompts.user_prompt,
            "provider": model.name,
        }

        feedback: list[ToolResult] = []
        last_submission: Optional[str] = None
        last_result: Optional[SubmitContentResult] = None
        attempts = 0

        while attempts < self.max_attempts:
            attempts += 1
            request = ModelRequest(
                system_prompt=prompts.system_prompt,
                user_prompt=prompts.user_prompt,
                tools=[SUBMIT_CONTENT_TOOL],
                tool_results=feedback,
            )
            response = await self._call(model, request)

            if not response.tool_calls:
                logger.debug("Attempt %d: model answered without a tool call", attempts)
                feedback = [
                    ToolResult(
                        tool_call_id="enforce_tool_use",
                        content=json.dumps(
                            {
                                "error": NO_TOOL_CALL_ERROR,
                                "hint": "Call submit_content with your generated content.",
                            }
                        ),
                        is_error=True,
                    )
                ]
                continue

            call = response.tool_calls[0]
            if call.name != SUBMIT_CONTENT:
                logger.debug("Attempt %d: model called unknown tool %s", attempts, call.name)
                feedback = [
                    ToolResult(
                        tool_call_id=call.id,
                        content=json.dumps(
                            {
                                "error": f"Unknown tool: {call.name}. "
                                "Use submit_content to submit your content."
                            }
                        ),
                        is_error=True,
                    )
                ]
                continue

            submission = str(call.arguments.get("content") or "").upper()
            last_submission = submission
            last_result = execute_submit_content(submission, max_lines, max_cols, word_wrap)

            if last_result.accepted:
                logger.debug("Attempt %d: submission accepted", attempts)
                return GeneratedContent(
                    text=submission,
                    output_mode=OutputMode.TEXT,
                    metadata={
                        **base_metadata,
                        "model": response.model,
                        "tokens_used": response.tokens_used,
                        "tool_attempts": attempts,
                        "tool_accepted": True,
                    },
                )

            logger.info(
                "Attempt %d/%d rejected: %s",
                attempts,
                self.max_attempts,
                "; ".join(last_result.errors),
            )
            feedback = [ToolResult(tool_call_id=call.id, content=last_result.to_feedback())]

        return self._exhausted(
            attempts, last_submission, last_result, base_metadata, max_lines, max_cols
        )

    def _exhausted(
        self,
        attempts: int,
        last_submission: Optional[str],
        last_result: Optional[SubmitContentResult],
        base_metadata: dict[str, Any],
        max_lines: int,
        max_cols: int,
    ) -> GeneratedContent:
        if self.exhaustion_policy == ExhaustionPolicy.RAISE or not last_submission:
            raise ToolAttemptsExhaustedError(attempts, last_result.errors if last_result else None)

        logger.warning("Attempts exhausted (%d); using truncated last submission", attempts)
        return GeneratedContent(
            text=truncate_to_fit(last_submission, max_lines, max_cols),
            output_mode=OutputMode.TEXT,
            metadata={
                **base_metadata,
                "tool_attempts": attempts,
                "tool_accepted": False,
                "tool_exhausted": True,
                "tool_force_accepted": True,
            },
        )
