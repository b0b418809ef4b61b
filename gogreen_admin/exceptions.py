from fastapi import HTTPException
from typing import Any, Dict, Optional

class AppBaseException(HTTPException):
    def __init__(
        self,
        status_code: int,
        detail: str,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)

class InvalidQuery(AppBaseException):
    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=f"Invalid search query: {detail}")

class StoreUnavailable(AppBaseException):
    def __init__(self, detail: str):
        super().__init__(status_code=503, detail=f"Catalog store unavailable: {detail}")

class InvalidVideoUrl(AppBaseException):
    def __init__(self, url: str):
        super().__init__(status_code=400, detail=f"Invalid YouTube URL: {url}")

class ConflictError(AppBaseException):
    def __init__(self, detail: str):
        super().__init__(status_code=400, detail=detail)

class InvalidStateTransition(AppBaseException):
    def __init__(self, detail: str):
        super().__init__(status_code=409, detail=detail)

class AuthenticationError(AppBaseException):
    def __init__(self, detail: str):
        super().__init__(
            status_code=401,
            detail=f"Authentication error: {detail}",
            headers={"WWW-Authenticate": "Bearer"}
        )

class PermissionDeniedError(AppBaseException):
    def __init__(self, detail: str = "Insufficient permissions"):
        super().__init__(status_code=403, detail=detail)

class ResourceNotFoundError(AppBaseException):
    def __init__(self, resource_type: str, resource_id: Any = None):
        detail = f"{resource_type} not found"
        if resource_id is not None:
            detail = f"{resource_type} with id {resource_id} not found"
        super().__init__(status_code=404, detail=detail)

class InvalidSpecificationContent(AppBaseException):
    def __init__(self, detail: str):
        super().__init__(status_code=422, detail=detail)
