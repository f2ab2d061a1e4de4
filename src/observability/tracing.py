"""Helpers for run and item identifiers in logs."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from uuid import uuid4

from src.config.logging_config import bind_context, unbind_context

RUN_ID_KEY = "run_id"
ITEM_ID_KEY = "item_id"


@contextmanager
def run_scope(existing_id: str | None = None) -> Iterator[str]:
    """Bind a run identifier for the lifetime of the context."""

    run_id = existing_id or uuid4().hex[:12]
    bind_context(**{RUN_ID_KEY: run_id})
    try:
        yield run_id
    finally:
        unbind_context(RUN_ID_KEY)


@contextmanager
def item_scope(item_id: str) -> Iterator[None]:
    """Bind the feed item being processed."""

    bind_context(**{ITEM_ID_KEY: item_id})
    try:
        yield
    finally:
        unbind_context(ITEM_ID_KEY)


__all__ = ["ITEM_ID_KEY", "RUN_ID_KEY", "item_scope", "run_scope"]
