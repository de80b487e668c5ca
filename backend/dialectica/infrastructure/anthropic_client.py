"""Resilient Anthropic Client — wraps AsyncAnthropic with retry, backoff, and error mapping.

Invariants:
    - One Messages API request per attempt; at most max_retries retries after the first
    - Retryable: rate limits (429), server errors / overload (5xx, 529), connection
      failures, and MalformedResponseError raised by the caller's parse function —
      all share one retry budget
    - Delay before retry k (1-based) is base_delay_ms * 2**(k-1), capped at
      max_delay_ms, never shorter than a server-sent Retry-After
    - Other API errors and missing credentials: PermanentServiceError, no retry
    - Budget exhausted: RetryBudgetExhaustedError carrying the last cause

Design Decisions:
    - Wrapper over raw client: isolates retry logic from the orchestrator
    - Parsing happens inside the retry loop so a truncated or off-schema
      response is retried like a transport failure
    - No jitter: the schedule is exact (single client, single in-flight call)
    - sleep injectable: tests observe the schedule without waiting
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import anthropic
from anthropic import (
    APIError,
    APIConnectionError,
    APIStatusError,
    RateLimitError,
    InternalServerError,
)

from dialectica.core.errors import (
    ErrorContext,
    LLMServiceError,
    MalformedResponseError,
    PermanentServiceError,
    RetryBudgetExhaustedError,
    TransientServiceError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# 529 Overloaded: detected by status code rather than a version-specific SDK class.
_OVERLOADED_STATUS = 529


def _is_overloaded(e: APIError) -> bool:
    """Check if error is Anthropic 529 Overloaded."""
    return isinstance(e, APIStatusError) and e.status_code == _OVERLOADED_STATUS


class ResilientAnthropicClient:
    """Wraps Anthropic client with retry logic, timeouts, and error mapping."""

    def __init__(
        self,
        api_key: str,
        max_retries: int = 3,
        base_delay_ms: int = 5000,
        max_delay_ms: int = 60_000,
        timeout_seconds: int = 300,
        client: Any = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if client is None and api_key:
            client = anthropic.AsyncAnthropic(
                api_key=api_key,
                timeout=timeout_seconds,
            )
        self.client = client
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self._sleep = sleep

    async def create_message(
        self,
        *,
        model: str,
        max_tokens: int,
        system: str,
        messages: list,
        tools: list | None = None,
        tool_choice: dict | None = None,
        parse: Callable[[Any], T] | None = None,
        context: ErrorContext | None = None,
    ) -> T:
        """Create a message, retrying transient failures and malformed output.

        parse(response) runs inside the retry loop; a MalformedResponseError
        from it consumes one retry.
        """
        if self.client is None:
            raise PermanentServiceError(
                "ANTHROPIC_API_KEY is not set", "missing_credentials",
                context=context,
            )
        kwargs: dict[str, Any] = {
            "model": model, "max_tokens": max_tokens,
            "system": system, "messages": messages,
        }
        if tools:
            kwargs["tools"] = tools
        if tool_choice:
            kwargs["tool_choice"] = tool_choice

        for attempt in range(self.max_retries + 1):
            if context is not None:
                context.attempt = attempt + 1
            try:
                response = await self.client.messages.create(**kwargs)
                self._log_success(response, attempt)
                return parse(response) if parse else response

            except MalformedResponseError as e:
                await self._retry_or_raise(e, attempt, context)

            except RateLimitError as e:
                await self._retry_or_raise(
                    TransientServiceError(
                        "Rate limit exceeded", "rate_limit",
                        retry_after_ms=self._extract_retry_after(e),
                        context=context,
                    ),
                    attempt, context, cause=e,
                )

            except (APIConnectionError, InternalServerError) as e:
                if isinstance(e, APIConnectionError):
                    kind = "connection_error"
                else:
                    kind = "overloaded" if _is_overloaded(e) else "server_error"
                await self._retry_or_raise(
                    TransientServiceError(str(e), kind, context=context),
                    attempt, context, cause=e,
                )

            except APIError as e:
                if _is_overloaded(e):
                    error = TransientServiceError(str(e), "overloaded", context=context)
                else:
                    error = PermanentServiceError(str(e), "client_error", context=context)
                await self._retry_or_raise(error, attempt, context, cause=e)

            except LLMServiceError:
                raise

            except Exception as e:
                logger.error(
                    f"Unexpected Anthropic error: {e}", exc_info=True,
                )
                raise PermanentServiceError(
                    str(e), "unknown", context=context,
                ) from e

        # Unreachable: the last attempt either returns or raises.
        raise PermanentServiceError("retry loop exited", "unknown", context=context)

    async def _retry_or_raise(
        self,
        error: LLMServiceError,
        attempt: int,
        context: ErrorContext | None,
        cause: BaseException | None = None,
    ) -> None:
        """Sleep before the next attempt, or raise once the budget is spent.

        Non-retryable errors are raised immediately without consuming budget.
        """
        if not error.retryable:
            raise error from cause
        if attempt >= self.max_retries:
            logger.error(
                f"LLM call failed after {self.max_retries} retries: {error.message}",
                extra={"attempt": attempt + 1, "error_code": error.code},
            )
            raise RetryBudgetExhaustedError(
                self.max_retries, error, context,
            ) from (cause or error)
        delay = self._backoff(attempt)
        if error.context.retry_after_ms:
            delay = min(self.max_delay_ms, max(delay, error.context.retry_after_ms))
        logger.warning(
            f"{error.message}; retry in {delay}ms "
            f"(attempt {attempt + 1}/{self.max_retries})",
            extra={"attempt": attempt + 1, "error_code": error.code},
        )
        await self._sleep(delay / 1000)

    def _log_success(self, response: Any, attempt: int) -> None:
        """Log successful API call with token usage."""
        usage = getattr(response, "usage", None)
        logger.info(
            "Anthropic API success",
            extra={
                "attempt": attempt + 1,
                "input_tokens": getattr(usage, "input_tokens", None),
                "output_tokens": getattr(usage, "output_tokens", None),
            },
        )

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff: base, 2*base, 4*base, ... capped at max."""
        return min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)

    def _extract_retry_after(self, error: RateLimitError) -> int | None:
        """Extract Retry-After header (returns milliseconds)."""
        try:
            if hasattr(error, "response") and error.response:
                val = error.response.headers.get("retry-after")
                if val:
                    return int(float(val) * 1000)
        except (AttributeError, TypeError, ValueError):
            pass
        return None
