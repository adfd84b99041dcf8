import logging
from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field
from typing import Optional

from orderdesk.core.deps import get_login_tracker
from orderdesk.core.security import client_ip, require_service_key
from orderdesk.schemas.response import SuccessResponse
from orderdesk.services.login_attempts import LoginAttemptTracker, normalize_email

log = logging.getLogger(__name__)

# Called server-to-server by the login service, never by browsers
router = APIRouter(dependencies=[Depends(require_service_key)])


class LoginAttemptRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    ip: Optional[str] = Field(None, max_length=64, description="End-user address as seen by the login service.")


class LoginResultRequest(LoginAttemptRequest):
    success: bool


def _attempt_ip(payload: LoginAttemptRequest, request: Request) -> str:
    return payload.ip or client_ip(request)


@router.post("/login-guard", response_model=SuccessResponse)
async def login_guard_endpoint(
    payload: LoginAttemptRequest,
    request: Request,
    tracker: LoginAttemptTracker = Depends(get_login_tracker),
):
    """
    Called by the login flow before it checks a password: answers 429 while the
    (email, ip) pair is locked out.
    """
    tracker.ensure_not_blocked(payload.email, _attempt_ip(payload, request))
    return SuccessResponse(data={"blocked": False})


@router.post("/login-result", response_model=SuccessResponse)
async def login_result_endpoint(
    payload: LoginResultRequest,
    request: Request,
    tracker: LoginAttemptTracker = Depends(get_login_tracker),
):
    """
    Records the outcome of a verified login attempt: success clears the record,
    failure counts toward a lockout. Nothing is recorded while the pair is locked out.
    """
    ip = _attempt_ip(payload, request)
    tracker.ensure_not_blocked(payload.email, ip)
    if payload.success:
        tracker.clear_on_success(payload.email, ip)
    else:
        tracker.record_failure(payload.email, ip)
        if tracker.is_blocked(payload.email, ip):
            log.warning(f"Login locked out for {normalize_email(payload.email)} from {ip}.")
    return SuccessResponse(data={
        "blocked": tracker.is_blocked(payload.email, ip),
        "retry_after_seconds": int(tracker.remaining_block_seconds(payload.email, ip)),
    })
