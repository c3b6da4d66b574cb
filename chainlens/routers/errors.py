from datetime import datetime, timezone
from typing import List, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from chainlens.models.domain import ErrorKind, PipelineError


def error_body(kind: str, message: str, status: int, path: str,
               fields: Optional[List[str]] = None) -> dict:
    err = {
        "kind": kind,
        "message": message,
        "status": status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "path": path,
    }
    if fields:
        err["fields"] = fields
    return {"error": err}


def pipeline_error_response(err: PipelineError, request: Request) -> JSONResponse:
    # upstream causes stay in the log
    message = err.message
    if err.kind == ErrorKind.DATA_FETCH_FAILED:
        message = "Failed to fetch data from the blockchain provider"
        if err.subject_address:
            message = f"{message} for {err.subject_address} on {err.chain}"
    status = err.status_code
    return JSONResponse(
        status_code=status,
        content=error_body(err.kind.value, message, status, request.url.path, list(err.fields)),
    )

