"""Parser for the model's reply.

Expected text looks like ``[{'expr': '2 + 2', 'result': '4'}]``, optionally with
``'assign': true`` in a mapping. Quotes are normalised to double quotes and the
result is decoded with the JSON grammar, then validated. Nothing is evaluated.
"""

import json
import re
from typing import Annotated, List

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from .errors import ParseError

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")


class AnalysisRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    expr: str
    result: str
    assign: bool = False

    @field_validator("expr", "result", mode="before")
    @classmethod
    def scalar_to_str(cls, value):
        # models often answer {'result': 4} instead of {'result': '4'}
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


_RESULT_ADAPTER = TypeAdapter(Annotated[List[AnalysisRecord], Field(min_length=1)])


def normalize_quotes(text: str) -> str:
    return _FENCE_RE.sub("", text.strip()).replace("'", '"')


def parse_analysis(text: str) -> List[AnalysisRecord]:
    if not isinstance(text, str) or not text.strip():
        raise ParseError("Analysis text is empty", text or "")
    try:
        data = json.loads(normalize_quotes(text))
    except json.JSONDecodeError as e:
        raise ParseError(f"Analysis text is not well-formed: {e}", text) from e
    try:
        return _RESULT_ADAPTER.validate_python(data)
    except ValidationError as e:
        raise ParseError(f"Analysis text has the wrong shape: {e.error_count()} error(s)", text) from e
