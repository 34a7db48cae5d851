# backend/utils/response.py
from typing import Any, Optional

from fastapi.responses import JSONResponse


# Success envelope; validated against the route's Envelope[...] response_model
def ok(data: Any) -> dict:
    return {"success": True, "data": data}


# Failure envelope shared by all exception handlers
def error_response(
    status_code: int,
    message: str,
    code: str,
    details: Any = None,
    headers: Optional[dict] = None,
    **extra: Any,
) -> JSONResponse:
    error = {"message": message, "code": code}
    if details:
        error["details"] = details
    error.update(extra)
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error},
        headers=headers,
    )
