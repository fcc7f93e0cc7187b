from __future__ import annotations

"""
Download and validate raw frame geometry records from the data source.

The data source is a read-only HTTP endpoint answering a GET with a JSON
array of records.  The request goes through ``httpx`` with bounded
timeouts and redirects; everything that can go wrong between the socket
and a validated :class:`~framedb.config.RawFrameRecord` list is turned
into a :class:`~framedb.errors.LoadError` with the original exception
chained.  Nothing is retried here: callers re-invoke the load.
"""

import json
from typing import Any, Dict, List

import httpx
from loguru import logger
from pydantic import ValidationError

from .config import (
    DATA_SOURCE_URL,
    HTTP_CONNECT_TIMEOUT,
    HTTP_MAX_BYTES,
    HTTP_MAX_REDIRECTS,
    HTTP_READ_TIMEOUT,
    HTTP_USER_AGENT,
    RawFrameRecord,
)
from .errors import LoadError


def _new_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=httpx.Timeout(HTTP_READ_TIMEOUT, connect=HTTP_CONNECT_TIMEOUT),
        max_redirects=HTTP_MAX_REDIRECTS,
        headers={"User-Agent": HTTP_USER_AGENT, "Accept": "application/json"},
    )


def parse_raw_records(payload: Any) -> List[RawFrameRecord]:
    """
    Validate a decoded JSON payload into raw records.

    Parameters
    ----------
    payload : Any
        The decoded response body.  Must be a list of objects.

    Returns
    -------
    list[RawFrameRecord]
        Records in payload order.

    Raises
    ------
    LoadError
        If the payload is not a list, any element fails validation, or two
        elements share an ``_id``.  The error message names the offending
        index.
    """
    if not isinstance(payload, list):
        raise LoadError(f"expected a JSON array of records, got {type(payload).__name__}")
    records: List[RawFrameRecord] = []
    first_index: Dict[str, int] = {}
    for i, item in enumerate(payload):
        try:
            rec = RawFrameRecord.model_validate(item)
        except ValidationError as e:
            raise LoadError(f"record #{i} is malformed: {e}") from e
        if rec.id in first_index:
            raise LoadError(
                f"record #{i} reuses _id {rec.id!r} of record #{first_index[rec.id]}"
            )
        first_index[rec.id] = i
        records.append(rec)
    return records


async def fetch_raw_records(
    url: str = DATA_SOURCE_URL,
    *,
    client: httpx.AsyncClient | None = None,
) -> List[RawFrameRecord]:
    """
    Fetch every record from ``url`` and validate it.

    A caller-supplied ``client`` is used as-is and left open; otherwise a
    short-lived client is created with the configured timeouts.  The
    body is fully read and parsed before anything is returned, so a
    failure never yields a partial list.
    """
    logger.info("Fetching frame records from {}", url)
    try:
        if client is None:
            async with _new_client() as own_client:
                response = await own_client.get(url)
        else:
            response = await client.get(url)
    except httpx.HTTPError as e:
        raise LoadError(f"request to {url} failed: {e}") from e

    if not response.is_success:
        raise LoadError(f"HTTP {response.status_code} from {url}")

    if len(response.content) > HTTP_MAX_BYTES:
        raise LoadError(f"response of {len(response.content)} bytes exceeds {HTTP_MAX_BYTES} limit")

    try:
        payload = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise LoadError(f"response from {url} is not valid JSON: {e}") from e

    records = parse_raw_records(payload)
    logger.info("Fetched {} frame records", len(records))
    return records
