"""Persist sanitized ideas, retrying once with integer scores on numeric-type rejections."""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Dict, Optional

from core import NormalizedIdea
from storage.idea_store import INTEGER_SCORE_COLUMNS, BaseIdeaStore
from utils.exceptions import DuplicateRecordError, StorageError, WriteFailedError


logger = logging.getLogger(__name__)

NUMERIC_TYPE_CODES = frozenset({"22P02", "22003"})
_NUMERIC_TYPE_RE = re.compile(
    r"invalid input syntax for type (?:integer|bigint|smallint|numeric)"
    r"|type (?:integer|bigint|smallint)"
    r"|out of range for type (?:integer|bigint|smallint)",
    flags=re.IGNORECASE,
)


def is_numeric_type_error(exc: BaseException) -> bool:
    """True for store rejections caused by a float in an integer-typed column."""
    code = str(getattr(exc, "code", "") or "").strip().upper()
    if code in NUMERIC_TYPE_CODES:
        return True
    return bool(_NUMERIC_TYPE_RE.search(str(exc or "")))


def _to_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return int(math.floor(number + 0.5))


def coerce_integer_scores(row: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of `row` with the integer-typed score columns rounded (None when not coercible)."""
    coerced = dict(row)
    for column in INTEGER_SCORE_COLUMNS:
        if column in coerced:
            coerced[column] = _to_int(coerced[column])
    return coerced


class IdeaWriter:
    """Final pipeline step; failures are raised as WriteFailedError, never swallowed."""

    def __init__(self, store: BaseIdeaStore) -> None:
        self.store = store

    async def write(self, idea: NormalizedIdea) -> str:
        """Insert `idea` and return the generated id."""
        row = idea.to_row()
        try:
            return await self.store.insert(row)
        except DuplicateRecordError as exc:
            logger.warning(f"Idea for {idea.featured_date} already stored: {exc.message}")
            raise WriteFailedError("Idea already exists for date", record=idea, reason="duplicate", cause=exc) from exc
        except StorageError as exc:
            if not is_numeric_type_error(exc):
                logger.error(f"Insert failed: {exc}")
                raise WriteFailedError(f"Insert failed: {exc.message}", record=idea, cause=exc) from exc
            first_error = exc

        logger.warning(f"Numeric type rejection ({first_error.message}); retrying with integer scores")
        try:
            return await self.store.insert(coerce_integer_scores(row))
        except DuplicateRecordError as exc:
            raise WriteFailedError("Idea already exists for date", record=idea, reason="duplicate", cause=exc) from exc
        except StorageError as exc:
            logger.error(f"Insert retry with integer scores failed: {exc}")
            raise WriteFailedError(f"Insert retry failed: {exc.message}", record=idea, cause=exc) from exc
