"""FastAPI application for callgate.

Exposes the function engine over HTTP so request pipelines in other
processes can invoke registered remote functions.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI, HTTPException, status
from pydantic import BaseModel, Field

from callgate import __version__
from callgate.config import get_settings
from callgate.core.access import RequestMethod
from callgate.core.dispatch import NativeFunctionTable
from callgate.core.engine import FunctionParser
from callgate.core.errors import (
    AccessDenied,
    ArgumentTypeMismatch,
    DispatchTargetMissing,
    FunctionCallError,
    MalformedExpression,
    RemoteDisabled,
    ScriptDisabled,
    UnknownFunction,
)
from callgate.core.registry import get_registry
from callgate.functions import BuiltinFunctions

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


# Global state
_natives: NativeFunctionTable | None = None


def get_natives() -> NativeFunctionTable:
    """Get or create the native function table served by the API."""
    global _natives
    if _natives is None:
        _natives = NativeFunctionTable.from_receiver(BuiltinFunctions())
    return _natives


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup/shutdown."""
    logger.info("Starting callgate API")

    try:
        registry = get_registry()
        logger.info(f"Function registry ready with {len(registry)} entries")
    except Exception as e:
        logger.warning(f"Could not preload function registry: {e}")

    yield

    logger.info("Shutting down callgate API")


app = FastAPI(
    title="callgate API",
    description="Remote function calls for JSON requests",
    version=__version__,
    lifespan=lifespan,
)


# Request/Response models
class CallerModel(BaseModel):
    """Identity of the caller."""

    method: RequestMethod = Field(default=RequestMethod.GET, description="Request verb")
    tag: str | None = Field(default=None, description="Caller tag")
    version: int = Field(default=0, ge=0, description="Client API version")


class InvokeRequest(BaseModel):
    """Request body for the invoke endpoint."""

    function: str = Field(..., description="Call expression, e.g. isEven(n)")
    current_object: dict[str, Any] = Field(
        default_factory=dict, description="Object arguments are resolved against"
    )
    caller: CallerModel = Field(default_factory=CallerModel)
    contain_raw: bool = Field(default=False, description="Allow raw fragment lookups")


class InvokeResponse(BaseModel):
    """Response from the invoke endpoint."""

    success: bool
    function: str
    result: Any = None


def _status_for(error: FunctionCallError) -> int:
    """Map a remote function fault to an HTTP status code."""
    if isinstance(error, (MalformedExpression, ArgumentTypeMismatch)):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(error, (AccessDenied, RemoteDisabled, ScriptDisabled)):
        return status.HTTP_403_FORBIDDEN
    if isinstance(error, (UnknownFunction, DispatchTargetMissing)):
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@app.get("/health")
async def health_check() -> dict[str, Any]:
    """Health check endpoint."""
    settings = get_settings()
    return {
        "status": "healthy",
        "version": __version__,
        "environment": settings.environment,
        "functions": len(get_registry()),
        "remote_functions_enabled": settings.enable_remote_functions,
        "script_functions_enabled": settings.enable_script_functions,
    }


@app.get("/functions")
async def list_functions() -> list[dict[str, Any]]:
    """List registered remote functions."""
    return [entry.to_dict() for entry in get_registry().entries()]


@app.post("/functions/invoke")
def invoke_function(request: InvokeRequest) -> InvokeResponse:
    """Invoke a remote function for a caller."""
    parser = FunctionParser(
        method=request.caller.method,
        tag=request.caller.tag,
        version=request.caller.version,
        registry=get_registry(),
        natives=get_natives(),
    )

    try:
        result = parser.invoke(
            request.function,
            request.current_object,
            contain_raw=request.contain_raw,
        )
    except FunctionCallError as e:
        code = _status_for(e)
        if code >= 500:
            logger.exception("Remote function failed")
        raise HTTPException(status_code=code, detail=e.to_dict())
    except Exception as e:
        # Fault raised by the function itself
        logger.exception("Remote function raised")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"kind": type(e).__name__, "message": str(e), "function": request.function},
        )

    return InvokeResponse(success=True, function=request.function, result=result)
