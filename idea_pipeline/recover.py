"""Recover a single JSON object from free-form, possibly truncated model output."""

from __future__ import annotations

from dataclasses import dataclass, field
import json
import logging
import re
from typing import List, Optional

from core import CandidateRecord
from utils.exceptions import NoStructureFoundError, RecordParseError


logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```[ \t]*[A-Za-z0-9_+-]*[ \t]*\r?\n?(.*?)```", flags=re.DOTALL)
_FENCE_OPEN_RE = re.compile(r"```[ \t]*[A-Za-z0-9_+-]*[ \t]*\r?\n?")
_CONTROL_BYTES_RE = re.compile(r"[\x00-\x1f\x7f]")
_IN_STRING_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t"}
_CLOSERS = {"{": "}", "[": "]"}


@dataclass
class _ScanState:
    stack: List[str] = field(default_factory=list)
    in_string: bool = False
    end: Optional[int] = None  # index of the brace closing the root object
    member_breaks: List[int] = field(default_factory=list)  # commas directly inside the root


def _scan(text: str) -> _ScanState:
    """String-aware bracket scan; `text` must start at the root '{'."""
    state = _ScanState()
    escaped = False
    for idx, ch in enumerate(text):
        if state.in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                state.in_string = False
            continue
        if ch == '"':
            state.in_string = True
        elif ch in "{[":
            state.stack.append(ch)
        elif ch in "}]":
            if state.stack:
                state.stack.pop()
            if not state.stack:
                state.end = idx
                break
        elif ch == "," and len(state.stack) == 1:
            state.member_breaks.append(idx)
    return state


def extract_fenced_block(text: str) -> str:
    """Interior of the first fenced block holding an object; text unchanged when unfenced."""
    value = str(text or "")
    blocks = [m.group(1) for m in _FENCE_RE.finditer(value)]
    for block in blocks:
        if "{" in block:
            return block
    if blocks:
        return blocks[0]

    # unterminated fence (output cut before the closing marker)
    opening = _FENCE_OPEN_RE.search(value)
    if opening:
        return value[opening.end():]
    return value


def locate_object(text: str) -> str:
    """
    Slice from the first '{' to the brace closing it, dropping surrounding prose.

    When the root object never closes (truncated output) everything after the
    first '{' is kept for truncation repair.
    """
    start = text.find("{")
    if start < 0:
        raise NoStructureFoundError("No JSON object found in model output", {"length": len(text)})
    body = text[start:]
    state = _scan(body)
    if state.end is not None:
        return body[: state.end + 1]
    return body.rstrip()


def escape_control_chars_in_strings(text: str) -> str:
    """Escape raw newline/CR/tab bytes that appear inside string literals only."""
    out: List[str] = []
    in_string = False
    escaped = False
    for ch in text:
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            elif ch in _IN_STRING_ESCAPES:
                out.append(_IN_STRING_ESCAPES[ch])
                continue
        elif ch == '"':
            in_string = True
        out.append(ch)
    return "".join(out)


def _has_member_colon(fragment: str) -> bool:
    in_string = False
    escaped = False
    for ch in fragment:
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == ":":
            return True
    return False


def _dangling_cut(text: str, state: _ScanState) -> int:
    """Index to cut at so only complete root members remain."""
    last_break = state.member_breaks[-1] if state.member_breaks else None
    tail = text[last_break + 1 if last_break is not None else 1:].rstrip()

    # a last member ending on a closing quote/bracket at root depth is complete;
    # bare numbers and literals may have been cut mid-token, so they are dropped
    if (
        tail
        and not state.in_string
        and len(state.stack) == 1
        and tail[-1] in '"]}'
        and _has_member_colon(tail)
    ):
        return len(text.rstrip())
    return last_break if last_break is not None else 1


def repair_truncation(text: str) -> str:
    """Drop a dangling trailing member and close every still-open bracket."""
    state = _scan(text)
    if state.end is not None or not state.stack:
        return text

    body = text[: _dangling_cut(text, state)].rstrip()
    remaining = _scan(body).stack
    # innermost first: an array nested in an object closes before the object
    return body + "".join(_CLOSERS[opener] for opener in reversed(remaining))


def remove_trailing_commas(text: str) -> str:
    """Drop commas directly followed by a closing bracket (outside strings)."""
    out: List[str] = []
    in_string = False
    escaped = False
    for ch in text:
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch in "}]":
            idx = len(out) - 1
            while idx >= 0 and out[idx].isspace():
                idx -= 1
            if idx >= 0 and out[idx] == ",":
                del out[idx]
        out.append(ch)
    return "".join(out)


def strip_control_bytes(text: str) -> str:
    """Remove raw control bytes; plain spaces are kept."""
    return _CONTROL_BYTES_RE.sub("", text)


def recover(raw_text: str) -> CandidateRecord:
    """
    Turn raw model output into a CandidateRecord.

    Either a fully parsed object is returned or an exception is raised;
    partial records are never produced. When the repaired text still fails
    to parse, the error of the first (pre-repair) parse is raised.
    """
    text = extract_fenced_block(str(raw_text or ""))
    candidate = escape_control_chars_in_strings(locate_object(text))

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as original:
        repaired = strip_control_bytes(remove_trailing_commas(repair_truncation(candidate)))
        try:
            parsed = json.loads(repaired)
        except json.JSONDecodeError:
            raise RecordParseError(
                f"{original.msg}: line {original.lineno} column {original.colno} (char {original.pos})",
                position=original.pos,
            ) from original
        logger.info(f"Recovered record after repair ({len(candidate)} -> {len(repaired)} chars)")

    if not isinstance(parsed, dict):
        raise RecordParseError(f"Recovered JSON is a {type(parsed).__name__}, expected an object")
    return CandidateRecord(data=parsed)
