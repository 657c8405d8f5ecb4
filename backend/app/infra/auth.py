"""Authentication helpers for FastAPI endpoints.

Credentials are issued elsewhere; this module only resolves the caller into an
`AuthenticatedUser` (id + role) from a Bearer JWT, or from X-User-* headers in
development.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.infra import jwt as jwt_helper
from app.settings import settings

ROLE_VOLUNTEER = "volunteer"
ROLE_ORGANIZATION = "organization"
ROLE_ADMIN = "admin"
KNOWN_ROLES = frozenset({ROLE_VOLUNTEER, ROLE_ORGANIZATION, ROLE_ADMIN})


@dataclass(slots=True)
class AuthenticatedUser:
	id: str
	role: str
	display_name: Optional[str] = None

	def has_role(self, role: str) -> bool:
		return self.role == role

	@property
	def is_admin(self) -> bool:
		return self.role == ROLE_ADMIN

	@property
	def is_volunteer(self) -> bool:
		return self.role == ROLE_VOLUNTEER


_bearer_scheme = HTTPBearer(auto_error=False)


def verify_access_jwt(token: str) -> AuthenticatedUser:
	"""Decode and validate an access JWT and return an AuthenticatedUser.

	Requirements:
	- issuer="justadrop-api", audience="justadrop-web"
	- required claims: sub, role, exp, iat
	"""
	try:
		payload = jwt_helper.decode_access(token)
	except Exception:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")

	sub = str(payload.get("sub") or "").strip()
	role = str(payload.get("role") or "").strip().lower()
	if not sub or role not in KNOWN_ROLES:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")

	display_name = payload.get("name")
	return AuthenticatedUser(
		id=sub,
		role=role,
		display_name=str(display_name) if display_name is not None else None,
	)


async def get_current_user(
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
	x_user_role: Optional[str] = Header(default=None, alias="X-User-Role"),
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> AuthenticatedUser:
	"""Resolve the authenticated user.

	In development we allow simple headers. In all other environments, headers are
	ignored and a valid Bearer JWT is required.
	"""
	if credentials and credentials.scheme.lower() == "bearer":
		return verify_access_jwt(credentials.credentials)

	if settings.is_dev() and x_user_id:
		role = (x_user_role or ROLE_VOLUNTEER).strip().lower()
		if role not in KNOWN_ROLES:
			raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_role")
		return AuthenticatedUser(id=x_user_id, role=role)

	raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")


async def get_optional_user(
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
	x_user_role: Optional[str] = Header(default=None, alias="X-User-Role"),
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> Optional[AuthenticatedUser]:
	"""Like `get_current_user`, but anonymous callers resolve to None."""
	if credentials is None and not (settings.is_dev() and x_user_id):
		return None
	return await get_current_user(x_user_id, x_user_role, credentials)
