from fastapi import HTTPException, status
from functools import wraps
from typing import Callable, Optional, Any
import logging

logger = logging.getLogger(__name__)


class NotFoundError(HTTPException):
    """Custom exception for not found errors"""
    def __init__(self, resource: str = "Resource"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=f"{resource} not found")


class PermissionDeniedError(HTTPException):
    """Raised before any network call when the identity may not perform the action"""
    def __init__(self, detail: str = "Not authorized to perform this action"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class ValidationError(HTTPException):
    """Custom exception for validation errors"""
    def __init__(self, detail: str = "Validation failed"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class RemoteGatewayError(HTTPException):
    """The data gateway or object storage rejected a request"""
    def __init__(self, detail: str = "Remote operation failed"):
        super().__init__(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)


class UploadBatchError(RemoteGatewayError):
    """One or more uploads of a batch failed; `result` holds what did succeed"""
    def __init__(self, result: Any, detail: str = "Some files failed to upload"):
        super().__init__(detail=detail)
        self.result = result


class AIUnavailableError(HTTPException):
    def __init__(self, detail: str = "AI features are disabled: OPENAI_API_KEY is not configured"):
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)


class AIGenerationError(HTTPException):
    def __init__(self, detail: str = "AI generation failed"):
        super().__init__(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)


class AncestryUnavailableError(Exception):
    """The single-query ancestor lookup cannot be served by the backend"""
    def __init__(self, reason: Optional[str] = None):
        super().__init__(reason or "Ancestor path query unavailable")


def handle_gateway_errors(func: Callable) -> Callable:
    """Decorator to wrap unexpected gateway failures as RemoteGatewayError"""
    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except (HTTPException, AncestryUnavailableError):
            raise
        except Exception as e:
            logger.error(f"❌ {func.__name__} failed: {e}")
            raise RemoteGatewayError(f"{func.__name__} failed: {str(e)}")
    return wrapper
