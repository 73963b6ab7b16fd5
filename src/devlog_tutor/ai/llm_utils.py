"""Helpers for turning raw model text into usable values."""

import json
import re
from typing import Any, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from devlog_tutor.errors import GenerationError

logger = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=BaseModel)

_LEADING_FENCE = re.compile(r"^\s*```[a-zA-Z]*[ \t]*\n?")
_TRAILING_FENCE = re.compile(r"\n?[ \t]*```\s*$")


def strip_code_fence(text: str) -> str:
    """Remove one leading and one trailing Markdown code fence, if present."""
    text = _LEADING_FENCE.sub("", text, count=1)
    text = _TRAILING_FENCE.sub("", text, count=1)
    return text.strip()


def parse_json_reply(text: str | None) -> dict[str, Any]:
    """Parse a JSON object reply that may be wrapped in a code fence.

    Raises:
        GenerationError: If the text is not a JSON object.
    """
    cleaned = strip_code_fence(text or "")
    try:
        data = json.loads(cleaned)
    except (json.JSONDecodeError, ValueError) as e:
        logger.warning("json_reply_unparseable", preview=cleaned[:200])
        raise GenerationError("Model reply is not valid JSON") from e
    if not isinstance(data, dict):
        raise GenerationError("Model reply is not a JSON object")
    return data


def parse_model_reply(text: str | None, model: type[ModelT]) -> ModelT:
    """Parse a fenced JSON reply and validate it into ``model``."""
    data = parse_json_reply(text)
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.warning("json_reply_invalid", model=model.__name__, errors=e.error_count())
        raise GenerationError(f"Model reply does not match {model.__name__}") from e
