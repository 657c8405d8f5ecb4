"""Manage-access checks over an organization's opportunities and applicants."""

from __future__ import annotations

from app.domain.common.storage import storage_call
from app.infra.auth import ROLE_ORGANIZATION, AuthenticatedUser
from app.infra.postgres import get_pool

MANAGER_ROLES = ("owner", "manager")


class OrganizationAccess:
	"""Answers `has_manage_access` from the organization_members table."""

	@storage_call
	async def has_manage_access(self, organization_id: str, actor: AuthenticatedUser) -> bool:
		if actor.is_admin:
			return True
		if actor.role != ROLE_ORGANIZATION:
			return False
		pool = await get_pool()
		async with pool.acquire() as conn:
			found = await conn.fetchval(
				"""
				SELECT 1 FROM organization_members
				WHERE organization_id=$1 AND user_id=$2 AND role = ANY($3::text[])
				""",
				organization_id,
				actor.id,
				list(MANAGER_ROLES),
			)
		return bool(found)
