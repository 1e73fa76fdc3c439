from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from utils.token import decodeJWT

ROLES = ("admin", "mediator", "client")


@dataclass(frozen=True)
class CallerContext:
    """Authenticated caller, as vouched for by the auth service's token."""

    id: int
    role: str


class JWTBearer(HTTPBearer):
    def __init__(self, auto_error: bool = True):
        super(JWTBearer, self).__init__(auto_error=auto_error)

    async def __call__(self, request: Request):
        credentials: HTTPAuthorizationCredentials = await super(
            JWTBearer, self
        ).__call__(request)
        if credentials:
            if not credentials.scheme == "Bearer":
                raise HTTPException(
                    status_code=403, detail="Invalid authentication scheme."
                )
            if not self.verify_jwt(credentials.credentials):
                raise HTTPException(
                    status_code=403, detail="Invalid token or expired token."
                )
            return credentials.credentials
        else:
            raise HTTPException(status_code=403, detail="Invalid authorization code.")

    def verify_jwt(self, jwtoken: str) -> bool:
        return decodeJWT(jwtoken) is not None


def get_caller(token: str = Depends(JWTBearer())) -> CallerContext:
    """Turn a verified bearer token into the caller context for the managers."""
    payload = decodeJWT(token)
    try:
        caller = CallerContext(id=int(payload["sub"]), role=payload["role"])
    except (KeyError, TypeError, ValueError):
        raise HTTPException(status_code=403, detail="Invalid token claims.")
    if caller.role not in ROLES:
        raise HTTPException(status_code=403, detail="Unknown role.")
    return caller
