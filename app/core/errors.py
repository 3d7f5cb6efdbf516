"""
Error helpers shared by the service modules.

Remote failures (Supabase database, storage or auth calls) are logged with the
original exception and surfaced to the caller as a generic message; nothing is
retried.
"""

import logging
from typing import List, Type, TypeVar

from fastapi import HTTPException, status
from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def remote_failure(action: str, exc: Exception) -> HTTPException:
    """Log a failed remote call and build the user-facing error for it."""
    logger.error(f"Remote call failed while trying to {action}: {exc}")
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=f"Could not {action}. Please try again."
    )


def sign_in_required(message: str = "Sign in to continue") -> HTTPException:
    """Anonymous callers of a mutating action are sent to the sign-in flow instead."""
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"action": "sign_in", "message": message}
    )


def parse_rows(model: Type[ModelT], rows: List[dict], what: str) -> List[ModelT]:
    """Validate loosely typed rows returned by a query against their result type."""
    try:
        return [model.model_validate(row) for row in rows or []]
    except ValidationError as e:
        raise remote_failure(f"load {what}", e)


def parse_row(model: Type[ModelT], row: dict, what: str) -> ModelT:
    return parse_rows(model, [row], what)[0]
