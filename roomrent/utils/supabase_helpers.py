"""Safe Supabase query helpers."""
from typing import Any, Dict, List, Optional
import logging

from postgrest.exceptions import APIError

from roomrent.core.exceptions import BackendError

logger = logging.getLogger(__name__)

# PostgREST code for "zero (or more than one) rows returned by a single-row request"
NO_ROWS_CODE = "PGRST116"


async def execute(query, operation: str) -> Any:
    """Run a query builder and return its data, translating failures to BackendError."""
    try:
        response = await query.execute()
    except APIError as e:
        logger.error(f"Database error during {operation}: {e.message} ({e.code})")
        raise BackendError(e.message, code=e.code) from e
    except Exception as e:
        logger.error(f"Database error during {operation}: {e}")
        raise BackendError(str(e) or None) from e

    return response.data


async def select_rows(query, operation: str) -> List[Dict[str, Any]]:
    """Run a select and always get a list back."""
    return await execute(query, operation) or []


async def select_optional(query, operation: str) -> Optional[Dict[str, Any]]:
    """
    Run a zero-or-one row select.

    An empty result is a legitimate outcome and returns None; more than one
    row is reported as a backend error rather than guessing which to use.
    """
    rows = await select_rows(query, operation)
    if not rows:
        return None
    if len(rows) > 1:
        raise BackendError(f"Expected a single row for {operation}, got {len(rows)}", code=NO_ROWS_CODE)
    return rows[0]


async def write_one(query, operation: str) -> Dict[str, Any]:
    """Run an insert/update returning the affected row; no row means the write was not accepted."""
    rows = await select_rows(query, operation)
    if not rows:
        raise BackendError(f"No row affected by {operation}", code=NO_ROWS_CODE)
    return rows[0]
