"""
api/routes/auth.py -- The /auth endpoint.

Routes:
  GET  /auth   -- 405; the endpoint is POST only
  POST /auth   -- {"op": "AUTH", "email": ..., "passwd": ...}
                  {"op": "VERIFY", "ftoken": ...}

AUTH is used once per session. It logs in (or registers, for an unseen email)
and returns:
  {"backendToken": <stable, backend use only>, "frontendToken": <new per AUTH>}

VERIFY is used on every request of a session to resolve the frontend token
back to the account without server-side session state:
  {"email": <email or null>, "backendToken": <backend token or null>}

Status codes:
  400  malformed request; body carries {"code": <ErrorCode>, ...}
  401  wrong password (code auth:incorrect_passwd) or unknown frontend token
  500  storage failure; token/identity fields are null, details only in logs

All field checks run before the store is touched. bcrypt and the SQLAlchemy
calls are blocking, so they run in the worker thread pool.
"""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from api.models import AuthRequest, AuthResponse, ErrorCode, ErrorResponse, OpEnum, VerifyResponse
from auth.dependencies import get_credential_service
from auth.service import CredentialService, CredentialStoreError, mask_email

logger = logging.getLogger("credservice.api.auth")

router = APIRouter()

_STORAGE_ERRORS = (SQLAlchemyError, CredentialStoreError)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _error(status_code: int, code: str, message: str | None = None, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(code=code, message=message).model_dump(exclude_none=True),
        headers=headers,
    )


def _no_store(resp: JSONResponse) -> JSONResponse:
    """Token-bearing responses must never be cached by browsers or proxies."""
    resp.headers["Cache-Control"] = "no-store"
    return resp


async def _read_body(request: Request) -> AuthRequest | None:
    """Parse the request body into an AuthRequest.

    Returns None for an empty body, invalid JSON, or JSON that is not an
    object -- all of which are reported as post:missing_body.
    """
    raw = await request.body()
    if not raw.strip():
        return None
    try:
        payload = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    return AuthRequest.model_validate(payload)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.get("/auth", include_in_schema=False)
async def auth_get() -> JSONResponse:
    """Reject GET explicitly so browsers get a clear message."""
    return _error(405, "method_not_allowed", "/auth supports POST only", headers={"Allow": "POST"})


@router.post("/auth")
async def auth_post(
    request: Request,
    service: CredentialService = Depends(get_credential_service),
) -> JSONResponse:
    """Dispatch on body.op to AUTH or VERIFY."""
    body = await _read_body(request)
    if body is None:
        return _error(400, ErrorCode.POST_MISSING_BODY.value)
    if not body.op:
        return _error(400, ErrorCode.POST_MISSING_FIELD_OP.value)

    if body.op == OpEnum.AUTH.value:
        return await _auth(service, body)
    if body.op == OpEnum.VERIFY.value:
        return await _verify(service, body)
    return _error(400, ErrorCode.POST_INVALID_OP.value, "invalid operation: should be 'AUTH' or 'VERIFY'")


async def _auth(service: CredentialService, body: AuthRequest) -> JSONResponse:
    if not body.email:
        return _error(400, ErrorCode.AUTH_MISSING_FIELD_EMAIL.value)
    if not body.passwd:
        return _error(400, ErrorCode.AUTH_MISSING_FIELD_PASSWD.value)

    try:
        issued = await run_in_threadpool(service.authenticate, body.email, body.passwd)
    except _STORAGE_ERRORS:
        logger.exception("AUTH storage failure for %s", mask_email(body.email))
        return _no_store(JSONResponse(status_code=500, content=AuthResponse().model_dump(by_alias=True)))

    if issued is None:
        return _error(401, ErrorCode.AUTH_INCORRECT_PASSWD.value)
    if issued.registered:
        logger.info("AUTH registered new account %s", mask_email(body.email))

    content = AuthResponse(backend_token=issued.backend_token, frontend_token=issued.frontend_token)
    return _no_store(JSONResponse(status_code=200, content=content.model_dump(by_alias=True)))


async def _verify(service: CredentialService, body: AuthRequest) -> JSONResponse:
    if not body.ftoken:
        return _error(400, ErrorCode.VERIFY_MISSING_FIELD_FTOKEN.value)

    try:
        credential = await run_in_threadpool(service.resolve, body.ftoken)
    except _STORAGE_ERRORS:
        logger.exception("VERIFY storage failure")
        return _no_store(JSONResponse(status_code=500, content=VerifyResponse().model_dump(by_alias=True)))

    if credential is None:
        return _no_store(JSONResponse(status_code=401, content=VerifyResponse().model_dump(by_alias=True)))

    content = VerifyResponse(email=credential.email, backend_token=credential.backend_token)
    return _no_store(JSONResponse(status_code=200, content=content.model_dump(by_alias=True)))
