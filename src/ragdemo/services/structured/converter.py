from __future__ import annotations

import json
import re
from typing import Generic, TypeVar

from pydantic import BaseModel, ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)

_FORMAT_TEMPLATE = """Your response should be in JSON format.
Do not include any explanations, only provide a RFC8259 compliant JSON response following this format without deviation.
Do not include markdown code blocks in your response.
Here is the JSON Schema instance your output must adhere to:
{schema}
"""


class OutputParseError(ValueError):
    pass


def _extract_json(text: str) -> str:
    stripped = text.strip()
    fenced = _FENCE_PATTERN.search(stripped)
    if fenced is not None:
        stripped = fenced.group(1).strip()

    # tolerate prose around a single top-level object
    start = stripped.find("{")
    end = stripped.rfind("}")
    if start == -1 or end < start:
        raise OutputParseError("no JSON object found in model output")
    return stripped[start : end + 1]


class OutputConverter(Generic[ModelT]):
    """Format-then-parse contract between a prompt and a pydantic model."""

    def __init__(self, model_cls: type[ModelT]) -> None:
        self._model_cls = model_cls

    @property
    def model_cls(self) -> type[ModelT]:
        return self._model_cls

    def get_format(self) -> str:
        schema = json.dumps(self._model_cls.model_json_schema(), indent=2)
        return _FORMAT_TEMPLATE.format(schema=schema)

    def convert(self, text: str) -> ModelT:
        raw = _extract_json(text)
        try:
            return self._model_cls.model_validate_json(raw)
        except ValidationError as exc:
            raise OutputParseError(
                f"{self._model_cls.__name__}: {exc.error_count()} validation error(s): "
                f"{exc.errors()[0]['msg']}"
            ) from exc
