# src/datastash/api_server/routes/data.py
"""
Data API routes.

POST /data?ttl=n
    Stores the JSON request body under a newly generated UID.
    ttl absent -> memory only, default expiry
    ttl = 0    -> persisted to disk and cached without expiry
    ttl = n    -> memory only, expires after n seconds
    Response: {"code": 0, "message": "OK", "uid": "..."}

GET /data?uid=...
    Response: {"code": 0, "message": "OK", "data": {...},
               "createdAt": "...", "ttl": 0}
    Unknown or missing uid: {"code": 10, "message": "Not found"} (HTTP 200)
"""

import json
import logging
import math
from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from ...exceptions import InvalidIdentifierError, RecordNotFoundError, StorageError
from ...storage.manager import StorageManager
from ..models import NOT_FOUND, DataGetResponse, DataPostResponse

logger = logging.getLogger(__name__)

router = APIRouter()

JSON_CONTENT_TYPE = "application/json"

# Largest whole number of seconds a signed 64-bit nanosecond duration can hold
MAX_TTL_SECONDS = (2**63 - 1) // 10**9


def get_storage(request: Request) -> StorageManager:
    """Return the app's StorageManager, or 503 if startup hasn't completed."""
    storage: Optional[StorageManager] = getattr(request.app.state, "storage", None)
    if storage is None or not storage.initialized:
        logger.error("StorageManager not found in app state")
        raise HTTPException(status_code=503, detail="Service is not available.")
    return storage


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


async def read_json_body(request: Request, max_body: int) -> Any:
    """
    Read and decode a JSON request body of at most ``max_body`` bytes.

    Raises:
        ValueError: If the body is too large or not valid JSON.
    """
    declared = request.headers.get("content-length")
    if declared is not None:
        try:
            declared_size = int(declared)
        except ValueError as e:
            raise ValueError(f"Bad Content-Length {declared!r}") from e
        if declared_size > max_body:
            raise ValueError(f"Request body length {declared_size} is greater than {max_body}")

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > max_body:
            raise ValueError(f"Request body is greater than {max_body}")

    try:
        return json.loads(bytes(body), parse_constant=_reject_constant)
    except RecursionError as e:
        raise ValueError("Request body is nested too deeply") from e


def parse_ttl(raw: Optional[str]) -> Optional[int]:
    """
    Interpret the ``ttl`` query parameter.

    A missing or non-integer value means "use the default TTL", and so
    does a value above MAX_TTL_SECONDS.

    Raises:
        ValueError: If the value is a negative integer.
    """
    if raw is None:
        return None
    try:
        ttl = int(raw.strip())
    except ValueError:
        return None
    if ttl < 0:
        raise ValueError(f"ttl must be >= 0, got {ttl}")
    if ttl > MAX_TTL_SECONDS:
        logger.info(f"Ignoring out of range ttl {raw[:32]!r}")
        return None
    return ttl


@router.post("/data", response_model=DataPostResponse)
async def create_data(
    request: Request,
    ttl: Optional[str] = Query(
        default=None,
        description="Seconds to keep the data in memory; 0 stores it permanently",
    ),
) -> DataPostResponse:
    """Store the JSON request body under a new UID."""
    storage = get_storage(request)
    max_body: int = request.app.state.config.http.max_request_body

    content_type = request.headers.get("content-type", "")
    if content_type.split(";")[0].strip().lower() != JSON_CONTENT_TYPE:
        raise HTTPException(status_code=400, detail="wrong content-type (not a json)")

    try:
        payload = await read_json_body(request, max_body)
    except ValueError as e:
        logger.info(f"Rejected request body: {e}")
        raise HTTPException(status_code=400, detail="wrong request data")

    try:
        ttl_seconds = parse_ttl(ttl)
    except ValueError as e:
        logger.info(f"Rejected ttl parameter: {e}")
        raise HTTPException(status_code=400, detail="wrong ttl")

    uid = storage.uid_generator.new()
    try:
        await storage.records.put(uid, payload, ttl_seconds)
    except StorageError as e:
        logger.error(f"Can't store data into the datastorage: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")

    logger.info(f"New data has been stored into the storage with uid {uid} (ttl={ttl_seconds!r})")
    return DataPostResponse(code=0, message="OK", uid=uid)


@router.get("/data")
async def read_data(
    request: Request,
    uid: Optional[str] = Query(default=None, description="UID returned by POST /data"),
) -> JSONResponse:
    """Return a stored record, or the not-found body."""
    storage = get_storage(request)

    if not uid:
        return JSONResponse(content=NOT_FOUND.model_dump())

    try:
        record = await storage.records.get(uid)
    except (RecordNotFoundError, InvalidIdentifierError):
        return JSONResponse(content=NOT_FOUND.model_dump())
    except StorageError as e:
        logger.error(f"Can't read uid {uid} from the datastorage: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")

    response = DataGetResponse(
        code=0,
        message="OK",
        data=record.payload,
        created_at=record.created_at,
        ttl=0 if record.is_forever else max(1, math.ceil(record.ttl)),
    )
    logger.info(f"Data with uid {uid} has been presented")
    return JSONResponse(content=response.model_dump(mode="json", by_alias=True))


@router.api_route("/data", methods=["PUT", "PATCH", "DELETE", "OPTIONS"], include_in_schema=False)
async def unsupported_method(request: Request) -> None:
    """Any other method on /data is a bad request, not a 405."""
    logger.info(f"Rejected {request.method} /data")
    raise HTTPException(status_code=400, detail="Bad request")
