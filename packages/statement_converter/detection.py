"""Column-mapping detection through the OpenAI Responses API.

Public API:
    - :class:`MappingDetector` (protocol) and :class:`MappingUnavailable`
    - :class:`OpenAIMappingDetector`
    - :func:`resolve_mapping`

Detection is an optional collaborator. The conversion core never depends on
it: :func:`resolve_mapping` substitutes
:data:`~statement_converter.models.FALLBACK_MAPPING` whenever a detector is
missing or raises :class:`MappingUnavailable`. No side effects occur at import
time (no client creation, no environment reads).
"""

from __future__ import annotations

import json
import os
import random
import time
from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from openai import OpenAI, OpenAIError
from openai.types.responses import ResponseTextConfigParam
from pydantic import ValidationError

from . import prompting
from .ingest.rows import rows_to_csv
from .logging_setup import get_logger
from .models import FALLBACK_MAPPING, MappingDescriptor

# ---- Tunables (private) ------------------------------------------------------

_MODEL_DEFAULT: str = "gpt-5"
_SAMPLE_ROWS_DEFAULT: int = 20
_MAX_ATTEMPTS: int = 3
_BACKOFF_SCHEDULE_SEC: tuple[float, ...] = (0.5, 2.0)
_JITTER_PCT: float = 0.20

_logger = get_logger("statement_converter.detection")


class MappingUnavailable(RuntimeError):
    """Detection could not produce a mapping (unreachable, misconfigured, bad output)."""


class MappingDetector(Protocol):
    def detect(self, rows: Sequence[Sequence[str]]) -> MappingDescriptor: ...


# ---- Internal helpers --------------------------------------------------------


def _resolve_model() -> str:
    return (os.getenv("STATEMENT_CONVERTER_MODEL") or "").strip() or _MODEL_DEFAULT


def _resolve_sample_rows() -> int:
    env_val = os.getenv("STATEMENT_CONVERTER_SAMPLE_ROWS")
    try:
        n = int(env_val) if env_val else None
    except ValueError:
        n = None
    return n if n is not None and n > 0 else _SAMPLE_ROWS_DEFAULT


def _create_client() -> OpenAI:
    return OpenAI()


def _response_text(resp: Any) -> str:
    """Return the text the model produced.

    Uses ``resp.output_text`` when the SDK provides it, otherwise the first
    ``output_text`` content part among ``resp.output`` messages.
    """

    text = getattr(resp, "output_text", None)
    if isinstance(text, str) and text:
        return text
    for item in getattr(resp, "output", None) or ():
        for part in getattr(item, "content", None) or ():
            part_text = getattr(part, "text", None)
            if isinstance(part_text, str) and part_text:
                return part_text
    raise ValueError("response carries no text output")


def _decode_mapping(text: str) -> MappingDescriptor:
    """Validate the model's JSON answer into a descriptor (``ValueError`` otherwise)."""

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"mapping is not valid JSON: {e.msg}") from e
    if not isinstance(payload, Mapping):
        raise ValueError(f"mapping must be a JSON object, got {type(payload).__name__}")
    return MappingDescriptor.from_json_mapping(payload)


def _is_retryable(exc: BaseException) -> bool:
    """Only rate limits (429) and server errors (5xx) are worth another attempt."""

    status = getattr(exc, "status_code", None)
    if not isinstance(status, int):
        return False
    return status == 429 or 500 <= status <= 599


def _sleep_backoff(attempt_no: int) -> None:
    base = _BACKOFF_SCHEDULE_SEC[min(attempt_no, len(_BACKOFF_SCHEDULE_SEC)) - 1]
    time.sleep(base * random.uniform(1.0 - _JITTER_PCT, 1.0 + _JITTER_PCT))


# ---- Detectors ---------------------------------------------------------------


class OpenAIMappingDetector:
    """Infer a :class:`MappingDescriptor` from a statement sample via OpenAI.

    Parameters
    ----------
    model:
        Responses API model. Defaults to ``STATEMENT_CONVERTER_MODEL`` or
        ``gpt-5``.
    sample_rows:
        Number of leading rows sent to the model. Defaults to
        ``STATEMENT_CONVERTER_SAMPLE_ROWS`` or 20.
    client:
        Optional pre-built client; when omitted one is created per call and
        ``OPENAI_API_KEY`` must be set.
    """

    def __init__(
        self,
        *,
        model: str | None = None,
        sample_rows: int | None = None,
        client: Any | None = None,
    ) -> None:
        self._model = model
        self._sample_rows = sample_rows
        self._client = client

    def detect(self, rows: Sequence[Sequence[str]]) -> MappingDescriptor:
        if not rows:
            raise MappingUnavailable("no rows available to sample for detection")

        client = self._client
        if client is None:
            if not os.getenv("OPENAI_API_KEY"):
                raise MappingUnavailable(
                    "OPENAI_API_KEY environment variable is missing; "
                    "column detection is unavailable"
                )
            try:
                client = _create_client()
            except OpenAIError as e:
                raise MappingUnavailable(f"failed to create OpenAI client: {e}") from e

        model = self._model or _resolve_model()
        n = self._sample_rows or _resolve_sample_rows()
        sample = rows[:n]
        user_content = prompting.build_user_content(rows_to_csv(sample), num_rows=len(sample))
        text_cfg = ResponseTextConfigParam(format=prompting.build_response_format())

        _logger.info("detect:request model=%s sample_rows=%d", model, len(sample))
        attempt = 1
        while True:
            t0 = time.perf_counter()
            try:
                resp = client.responses.create(
                    model=model,
                    instructions=prompting.build_system_instructions(),
                    input=user_content,
                    text=text_cfg,
                )
                mapping = _decode_mapping(_response_text(resp))
            except (ValueError, ValidationError) as e:
                # Malformed model output is terminal; retrying will not fix the schema.
                _logger.error("detect:invalid_output error=%s", e.__class__.__name__)
                raise MappingUnavailable(f"detection returned an invalid mapping: {e}") from e
            except OpenAIError as e:
                dt_ms = (time.perf_counter() - t0) * 1000.0
                if attempt >= _MAX_ATTEMPTS or not _is_retryable(e):
                    _logger.error(
                        "detect:failed_terminal latency_ms=%.2f error=%s attempt=%d",
                        dt_ms,
                        e.__class__.__name__,
                        attempt,
                    )
                    raise MappingUnavailable(f"OpenAI request failed: {e}") from e
                _logger.warning(
                    "detect:retry latency_ms=%.2f error=%s attempt=%d",
                    dt_ms,
                    e.__class__.__name__,
                    attempt,
                )
                _sleep_backoff(attempt)
                attempt += 1
                continue

            _logger.info(
                "detect:done latency_ms=%.2f single_amount=%s",
                (time.perf_counter() - t0) * 1000.0,
                mapping.is_single_amount_column,
            )
            return mapping


def resolve_mapping(
    rows: Sequence[Sequence[str]], detector: MappingDetector | None = None
) -> tuple[MappingDescriptor, bool]:
    """Return ``(mapping, used_fallback)``.

    The detector's answer is used when it succeeds; otherwise (no detector, or
    :class:`MappingUnavailable`) the deterministic fallback mapping is returned
    and ``used_fallback`` is ``True``. Other exceptions propagate.
    """

    if detector is None:
        _logger.info("detect:fallback reason=no_detector")
        return FALLBACK_MAPPING, True
    try:
        return detector.detect(rows), False
    except MappingUnavailable as e:
        _logger.warning("detect:fallback reason=%s", e)
        return FALLBACK_MAPPING, True


__all__ = [
    "MappingDetector",
    "MappingUnavailable",
    "OpenAIMappingDetector",
    "resolve_mapping",
]
