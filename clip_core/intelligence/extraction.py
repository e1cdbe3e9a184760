"""
Pulls JSON payloads out of model replies.

The prompts ask for bare JSON, so the strict parser is tried first. Models still
wrap the payload in prose or code fences now and then; the bracket scanner is the
compatibility path for those replies and can be swapped out on its own.
"""
import json
from typing import Any, Iterator, List, Optional, Protocol, Sequence

from pydantic import BaseModel, ConfigDict, ValidationError

from clip_core.errors import MalformedResponse

_CLOSERS = {"{": "}", "[": "]"}
_KINDS = {"{": dict, "[": list}


class ResponseParser(Protocol):
    def parse(self, text: str) -> Optional[Any]:
        """Returns the JSON value found in ``text``, or None."""
        ...


class StrictJsonParser:
    """Accepts a reply that is exactly one JSON value of ``expect`` type, optionally inside a ``` fence."""

    def __init__(self, expect: type = dict):
        self.expect = expect

    def parse(self, text: str) -> Optional[Any]:
        body = text.strip()
        if body.startswith("```"):
            body = body.split("\n", 1)[1] if "\n" in body else ""
            if body.rstrip().endswith("```"):
                body = body.rstrip()[:-3]
        try:
            data = json.loads(body)
        except ValueError:
            return None
        return data if isinstance(data, self.expect) else None


class BraceScanParser:
    """Finds the first balanced ``{...}`` (or ``[...]``) span that parses as JSON."""

    def __init__(self, open_char: str = "{"):
        self.open_char = open_char

    def parse(self, text: str) -> Optional[Any]:
        for span in iter_brace_spans(text, self.open_char):
            try:
                data = json.loads(span)
            except ValueError:
                continue
            if isinstance(data, _KINDS[self.open_char]):
                return data
        return None


def iter_brace_spans(text: str, open_char: str = "{") -> Iterator[str]:
    for start, ch in enumerate(text):
        if ch != open_char:
            continue
        end = _matching_brace(text, start, open_char, _CLOSERS[open_char])
        if end is not None:
            yield text[start : end + 1]


def _matching_brace(text: str, start: int, open_char: str, close_char: str) -> Optional[int]:
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == open_char:
            depth += 1
        elif ch == close_char:
            depth -= 1
            if depth == 0:
                return i
    return None


class ClipsPayload(BaseModel):
    model_config = ConfigDict(strict=True)

    clips: List[Any]


DEFAULT_PARSERS: Sequence[ResponseParser] = (StrictJsonParser(), BraceScanParser())
ARRAY_PARSERS: Sequence[ResponseParser] = (StrictJsonParser(expect=list), BraceScanParser("["))


def extract_json(text: str, parsers: Sequence[ResponseParser] = DEFAULT_PARSERS) -> Any:
    """
    Returns the first JSON value any parser finds in ``text``.

    Raises:
        MalformedResponse: no parser found one.
    """
    for parser in parsers:
        data = parser.parse(text)
        if data is not None:
            return data
    raise MalformedResponse("No valid JSON found in response")


def extract_clips_payload(text: str, parsers: Sequence[ResponseParser] = DEFAULT_PARSERS) -> List[Any]:
    """
    Returns the raw ``clips`` list from a model reply.

    Raises:
        MalformedResponse: no parser found a JSON object, or it has no ``clips`` array.
    """
    data = extract_json(text, parsers)
    try:
        return ClipsPayload.model_validate(data).clips
    except ValidationError as e:
        raise MalformedResponse("Invalid response format: missing clips array") from e
