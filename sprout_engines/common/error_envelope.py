"""Canonical error envelope for all safety engine responses.

Standardized structure:
{
  "error": {
    "code": "string",
    "message": "string",
    "http_status": 400,
    "gate": "age_gate | intent_catalog | contact_leak | null",
    "user_message": "string | null",
    "details": {}
  }
}
"""
from __future__ import annotations

from typing import Any, Dict, Literal, Optional

from fastapi import HTTPException
from pydantic import BaseModel, Field

from sprout_engines.common.errors import SafetyError

GateType = Literal["age_gate", "intent_catalog", "contact_leak", None]


class ErrorDetail(BaseModel):
    """Canonical error detail structure."""
    code: str
    message: str
    http_status: int
    gate: Optional[GateType] = None
    user_message: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)


class ErrorEnvelope(BaseModel):
    """Top-level error envelope returned by all endpoints."""
    error: ErrorDetail


def build_error_envelope(
    code: str,
    message: str,
    status_code: int = 400,
    gate: Optional[GateType] = None,
    user_message: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> ErrorEnvelope:
    """Construct an ErrorEnvelope (without raising).

    Args mirror error_response; http_status mirrors status_code.
    """
    error_detail = ErrorDetail(
        code=code,
        message=message,
        http_status=status_code,
        gate=gate,
        user_message=user_message,
        details=details or {},
    )
    return ErrorEnvelope(error=error_detail)


def envelope_for(exc: SafetyError) -> ErrorEnvelope:
    return build_error_envelope(
        code=exc.code,
        message=exc.message,
        status_code=exc.http_status,
        gate=exc.gate,
        user_message=exc.user_message,
        details=exc.details,
    )


def error_response(
    code: str,
    message: str,
    status_code: int = 400,
    gate: Optional[GateType] = None,
    user_message: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> HTTPException:
    """Construct and raise a standardized error response.

    Args:
        code: Machine-readable error code (e.g., "messaging.invalid_choice")
        message: Developer-facing error message
        status_code: HTTP status code (default 400)
        gate: Gate that blocked (age_gate|intent_catalog|contact_leak)
        user_message: Copy safe to show the end user
        details: Additional context dict

    Returns:
        HTTPException with canonical error envelope body
    """
    envelope = build_error_envelope(
        code=code,
        message=message,
        status_code=status_code,
        gate=gate,
        user_message=user_message,
        details=details,
    )
    raise HTTPException(status_code=status_code, detail=envelope.model_dump())
