import json
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .logging_config import app_logger, sanitize_body

LOGGED_BODY_METHODS = {"POST", "PUT", "PATCH"}

async def read_json_body(request: Request):
    if request.method not in LOGGED_BODY_METHODS:
        return None
    if "application/json" not in request.headers.get("content-type", ""):
        return None
    raw = await request.body()
    if not raw:
        return None
    try:
        return sanitize_body(json.loads(raw))
    except ValueError:
        return "<unparseable>"

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()

        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        request.state.request_id = request_id
        body = await read_json_body(request)

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            app_logger.error(
                "Request failed",
                request_id=request_id,
                method=request.method,
                url=str(request.url),
                body=body,
                error=str(e),
                processing_time=f"{process_time:.3f}s"
            )
            raise

        process_time = time.time() - start_time
        if response.status_code >= 500:
            log = app_logger.error
        elif response.status_code >= 400:
            log = app_logger.warning
        else:
            log = app_logger.info
        log(
            "Request processed",
            request_id=request_id,
            method=request.method,
            url=str(request.url),
            status_code=response.status_code,
            body=body,
            processing_time=f"{process_time:.3f}s"
        )
        response.headers["X-Request-ID"] = request_id
        return response
