"""
auth/dependencies.py -- FastAPI Depends() helpers for the credential service.

The CredentialService is built once by the application lifespan and parked
on app.state. Routes receive it through Depends(get_credential_service), so
tests can run the real routes against any store by building the app with a
different one.

Layer rule: no imports from api/ or core/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.service import CredentialService


def get_credential_service(request: Request) -> CredentialService:
    """Return the CredentialService attached to the running application.

    Use as a FastAPI dependency:
        @router.post("/auth")
        async def route(service: CredentialService = Depends(get_credential_service)): ...
    """
    return request.app.state.credential_service
