"""Batch parsing shared by the price and analysis stores."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, List, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from oraclex_relay.errors import MalformedInputError

M = TypeVar("M", bound=BaseModel)


def parse_batch(batch: Any, model: Type[M]) -> List[M]:
    """Validate a whole `market_data` batch before any store is touched.

    Elements without a symbol are dropped silently; any other bad element
    rejects the batch.
    """
    if not isinstance(batch, (list, tuple)):
        raise MalformedInputError("Invalid market_data format")

    out: List[M] = []
    for i, raw in enumerate(batch):
        if not isinstance(raw, Mapping):
            raise MalformedInputError(f"market_data[{i}] must be an object")

        symbol = raw.get("symbol")
        if symbol is None or not str(symbol).strip():
            continue

        try:
            out.append(model.model_validate({**raw, "symbol": str(symbol).strip()}))
        except PydanticValidationError as e:
            raise MalformedInputError(f"market_data[{i}] ({symbol}): {e.errors(include_url=False)}")
    return out
