"""Test helpers to stub the OpenAI Responses client used by detection.py.

The stub extracts the embedded CSV sample from the user content and hands the
parsed rows to a ``decide`` callable that returns the mapping JSON object (or
raises to simulate API failures). Tests keep their surface small: rows in,
mapping out.
"""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Callable
from typing import Any

BEGIN = "BEGIN_CSV_SAMPLE\n"
END = "\nEND_CSV_SAMPLE"


def extract_sample_rows(user_content: str) -> list[list[str]]:
    b = user_content.find(BEGIN)
    e = user_content.rfind(END)
    if b == -1 or e == -1 or e < b:
        raise AssertionError("detect: user content missing embedded CSV sample block")
    sample = user_content[b + len(BEGIN) : e]
    return [list(r) for r in csv.reader(io.StringIO(sample))]


class OpenAIStub:
    """Minimal stub matching the ``openai.OpenAI`` shape used by detection.

    Parameters
    ----------
    decide:
        Receives the sampled rows and returns either a mapping (serialized to
        JSON as ``output_text``), a raw string (used verbatim), or raises.
    calls_out:
        Optional list that collects each call's kwargs for assertions.
    """

    def __init__(
        self,
        decide: Callable[[list[list[str]]], dict[str, Any] | str],
        calls_out: list[dict[str, Any]] | None = None,
    ) -> None:
        self._decide = decide
        self._calls = calls_out if calls_out is not None else []

        class _Responses:
            def __init__(self, outer: OpenAIStub) -> None:
                self._outer = outer

            def create(self, **kwargs):
                self._outer._calls.append(kwargs)
                answer = self._outer._decide(extract_sample_rows(kwargs["input"]))

                class _Resp:
                    output_text: str

                resp = _Resp()
                resp.output_text = answer if isinstance(answer, str) else json.dumps(answer)
                return resp

        self.responses = _Responses(self)

    @property
    def calls(self) -> list[dict[str, Any]]:
        return self._calls
