"""
JSON-mode chat helper for the enrichment collaborator.

Providers are loose about what they return: text may arrive in
``content``, in provider extras, wrapped in code fences, or as
almost-JSON. ``chat_json`` normalises all of that into one dict.
"""

import json
import logging
import re
from typing import Any, Dict, Iterator, Optional

from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from .llm_loader import LLMConfigError, get_chat_model

logger = logging.getLogger("uvicorn.error")


class LLMError(RuntimeError):
    pass


def _get_llm(temperature: float = 0.1):
    try:
        return get_chat_model(temperature=temperature)
    except LLMConfigError as exc:
        raise LLMError(str(exc)) from exc


# ---------- response text ----------


def _content_text(content: Any) -> str:
    """Flatten LC content (str | list of chunks | dict | AIMessage) into text."""
    if content is None:
        return ""
    if isinstance(content, AIMessage):
        return _content_text(content.content)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            chunk["text"] if isinstance(chunk, dict) and isinstance(chunk.get("text"), str) else str(chunk)
            for chunk in content
        )
    if isinstance(content, dict):
        return next(
            (content[k] for k in ("text", "content") if isinstance(content.get(k), str)),
            str(content),
        )
    return str(content)


def response_text(resp: Any) -> str:
    """
    Text of a chat response. NVIDIA reasoning models leave ``content`` empty
    and put the answer in ``additional_kwargs.reasoning_content``.
    """
    text = _content_text(getattr(resp, "content", None))
    if text:
        return text

    extras = getattr(resp, "additional_kwargs", None) or {}
    if not isinstance(extras, dict):
        return ""
    message = extras.get("message")
    candidates = [extras.get("reasoning_content"), extras.get("content")]
    if isinstance(message, dict):
        candidates.append(message.get("content"))
    return next((c for c in candidates if isinstance(c, str) and c.strip()), "")


# ---------- JSON extraction ----------

_FENCED = re.compile(r"```(?:json)?\s*(.*?)```", re.IGNORECASE | re.DOTALL)
_TRAILING_COMMA = re.compile(r",(\s*[}\]])")
_SINGLE_QUOTED = re.compile(r"'([^'\\]*(?:\\.[^'\\]*)*)'")
_PY_LITERAL = re.compile(r"\b(None|True|False)\b")
_PY_TO_JSON = {"None": "null", "True": "true", "False": "false"}


def _unfence(text: str) -> str:
    m = _FENCED.search(text)
    return (m.group(1) if m else text).strip()


def _balanced_span(text: str) -> Optional[str]:
    """First complete ``{...}`` or ``[...]`` in *text*, ignoring brackets inside strings."""
    start = next((i for i, ch in enumerate(text) if ch in "{["), None)
    if start is None:
        return None
    depth = 0
    quote: Optional[str] = None
    escaped = False
    for j in range(start, len(text)):
        ch = text[j]
        if quote:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch in "{[":
            depth += 1
        elif ch in "}]":
            depth -= 1
            if depth == 0:
                return text[start : j + 1]
    return None


def _repair(block: str) -> str:
    """Trailing commas, Python literals and single-quoted strings."""
    fixed = _TRAILING_COMMA.sub(r"\1", block)
    fixed = _PY_LITERAL.sub(lambda m: _PY_TO_JSON[m.group(1)], fixed)
    return _SINGLE_QUOTED.sub(lambda m: '"' + m.group(1).replace('"', '\\"') + '"', fixed)


def _candidates(body: str) -> Iterator[str]:
    yield body
    span = _balanced_span(body)
    if span is not None:
        yield span
        yield _repair(span)


def load_json_text(text: str) -> Any:
    """Parse model output that is JSON, fenced JSON, or JSON surrounded by prose."""
    body = _unfence(text or "")
    if not body:
        raise ValueError("empty LLM response text")

    last_error: Optional[ValueError] = None
    for candidate in _candidates(body):
        try:
            return json.loads(candidate)
        except ValueError as exc:
            last_error = exc
    teaser = body[:400].replace("\n", "\\n")
    raise ValueError(f"json_parse_failed: {last_error}; teaser={teaser}")


def coerce_object(obj: Any) -> Dict[str, Any]:
    """
    Reduce a parsed response to one dict:
    - dict -> as-is
    - list -> the first dict that names a chart type, else the first dict
    """
    if isinstance(obj, dict):
        return obj
    if isinstance(obj, list):
        dicts = [it for it in obj if isinstance(it, dict)]
        for it in dicts:
            if "chartType" in it or "chart_type" in it:
                return it
        if dicts:
            return dicts[0]
        raise LLMError("not_object: array contained no objects")
    raise LLMError(f"not_object: unsupported type {type(obj).__name__}")


def chat_json(system_prompt: str, user_message: str, max_tokens: int = 512) -> dict:
    llm = _get_llm().bind(
        extra_body={
            "response_format": {"type": "json_object"},
            "max_tokens": max_tokens,
        }
    )
    messages = [
        SystemMessage(system_prompt + "\nReturn ONE JSON object. No prose, no code fences."),
        HumanMessage(user_message),
    ]
    resp = llm.invoke(messages)
    text = response_text(resp)
    if not text.strip():
        extras = getattr(resp, "additional_kwargs", None)
        raise LLMError(f"no_content: additional={extras}")
    logger.debug("LLM raw text teaser: %r", text[:200])
    try:
        return coerce_object(load_json_text(text))
    except ValueError as exc:
        raise LLMError(str(exc)) from exc
