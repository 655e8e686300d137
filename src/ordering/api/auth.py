"""Caller identity at the HTTP boundary.

Tokens are verified by the gateway in front of this service; it forwards
the caller as ``X-User-Id`` / ``X-User-Role``. The raw bearer token (from
the ``accessToken`` cookie or the ``Authorization`` header) is kept so it
can be forwarded to the sibling services.
"""

from dataclasses import dataclass
from enum import Enum

from fastapi import Depends, Request

from ordering.errors import Forbidden, Unauthorized


class Role(Enum):
    CLIENT = "cliente"
    EMPLOYEE = "empleado"
    ADMINISTRATOR = "administrador"


STAFF_ROLES = frozenset({Role.EMPLOYEE.value, Role.ADMINISTRATOR.value})


@dataclass(frozen=True)
class Principal:
    user_id: str
    role: str
    token: str | None = None

    @property
    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES


def extract_token(request: Request) -> str | None:
    token = request.cookies.get("accessToken")
    if token:
        return token

    header = request.headers.get("Authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


def current_principal(request: Request) -> Principal:
    user_id = request.headers.get("X-User-Id")
    if not user_id:
        raise Unauthorized("Authentication required")
    role = request.headers.get("X-User-Role", Role.CLIENT.value).lower()
    return Principal(user_id=user_id, role=role, token=extract_token(request))


def staff_principal(principal: Principal = Depends(current_principal)) -> Principal:
    if not principal.is_staff:
        raise Forbidden("This operation is restricted to staff")
    return principal
