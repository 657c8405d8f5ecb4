"""Idempotent DDL for the volunteering tables.

Uniqueness of applications and feedback lives here as table constraints so
that concurrent inserts race to exactly one winner.
"""

from __future__ import annotations

import asyncpg

from app.domain.feedback.models import RATING_MAX, RATING_MIN

RATING_CHECK = f"CHECK (rating BETWEEN {RATING_MIN} AND {RATING_MAX})"

SCHEMA_STATEMENTS: tuple[str, ...] = (
	"""
	CREATE TABLE IF NOT EXISTS organization_members (
		organization_id TEXT NOT NULL,
		user_id TEXT NOT NULL,
		role TEXT NOT NULL DEFAULT 'member',
		created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
		PRIMARY KEY (organization_id, user_id)
	)
	""",
	"""
	CREATE TABLE IF NOT EXISTS opportunities (
		id UUID PRIMARY KEY,
		organization_id TEXT NOT NULL,
		creator_id TEXT NOT NULL,
		title TEXT NOT NULL,
		short_summary TEXT NOT NULL,
		description TEXT NOT NULL,
		cause_category TEXT,
		mode TEXT NOT NULL CHECK (mode IN ('onsite', 'remote', 'hybrid')),
		date_type TEXT NOT NULL CHECK (date_type IN ('single_day', 'multi_day', 'ongoing')),
		start_date TIMESTAMPTZ,
		end_date TIMESTAMPTZ,
		start_time TEXT,
		end_time TEXT,
		address TEXT,
		city TEXT,
		state TEXT,
		country TEXT,
		osrm_link TEXT,
		max_volunteers INTEGER NOT NULL,
		skills_required TEXT[] NOT NULL DEFAULT '{}',
		causes TEXT[] NOT NULL DEFAULT '{}',
		language_preference TEXT,
		gender_preference TEXT,
		contact_name TEXT NOT NULL,
		contact_email TEXT NOT NULL,
		contact_phone TEXT NOT NULL,
		status TEXT NOT NULL DEFAULT 'open' CHECK (status IN ('draft', 'open', 'closed')),
		created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
		updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
	)
	""",
	"""
	CREATE TABLE IF NOT EXISTS opportunity_applications (
		id UUID PRIMARY KEY,
		opportunity_id UUID NOT NULL REFERENCES opportunities(id) ON DELETE CASCADE,
		user_id TEXT NOT NULL,
		motivation TEXT,
		status TEXT NOT NULL DEFAULT 'pending' CHECK (status IN ('pending', 'approved', 'rejected')),
		has_attended BOOLEAN NOT NULL DEFAULT FALSE,
		approved_by TEXT,
		approved_at TIMESTAMPTZ,
		created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
		updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
		UNIQUE (opportunity_id, user_id)
	)
	""",
	"""
	CREATE TABLE IF NOT EXISTS opportunity_feedback (
		id UUID PRIMARY KEY,
		opportunity_id UUID NOT NULL REFERENCES opportunities(id) ON DELETE CASCADE,
		user_id TEXT NOT NULL,
		rating SMALLINT NOT NULL """ + RATING_CHECK + """,
		comment TEXT,
		images TEXT[] NOT NULL DEFAULT '{}',
		created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
		UNIQUE (user_id, opportunity_id)
	)
	""",
	"""
	CREATE TABLE IF NOT EXISTS volunteer_feedback (
		id UUID PRIMARY KEY,
		opportunity_id UUID NOT NULL REFERENCES opportunities(id) ON DELETE CASCADE,
		user_id TEXT NOT NULL,
		volunteer_id TEXT NOT NULL,
		rating SMALLINT NOT NULL """ + RATING_CHECK + """,
		testimonial TEXT,
		created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
		UNIQUE (user_id, volunteer_id, opportunity_id),
		CHECK (user_id <> volunteer_id)
	)
	""",
)


async def ensure_schema(pool: asyncpg.pool.Pool) -> None:
	async with pool.acquire() as conn:
		async with conn.transaction():
			for statement in SCHEMA_STATEMENTS:
				await conn.execute(statement)
