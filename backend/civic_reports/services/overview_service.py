from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import func

from civic_reports.extensions import db
from civic_reports.models import Category, Officer, Report, User
from civic_reports.services import query_service


RECENT_LIMIT = 5


def _count_since(since: datetime) -> int:
	q = db.session.query(func.count(Report.id)).filter(Report.created_at >= since)
	return int(query_service.with_retry(q.scalar) or 0)


def _recent_to_dict(r: Report) -> dict:
	return {
		"id": r.id,
		"title": r.title,
		"type": r.type,
		"status": r.status,
		"created_at": r.created_at.isoformat() if r.created_at else None,
		"reporter_name": r.reporter.name if r.reporter else None,
		"category_name": r.category.name if r.category else None,
	}


def system_overview(now: datetime | None = None) -> dict:
	now = now or datetime.utcnow()
	today = now.replace(hour=0, minute=0, second=0, microsecond=0)

	counts = query_service.summarize(query_service.Scope.admin())
	total = counts["total"]
	resolution_rate = round(counts["resolved"] * 100 / total) if total else 0

	officers = db.session.query(func.count(Officer.id)).scalar() or 0
	categories = db.session.query(func.count(Category.id)).scalar() or 0
	users = db.session.query(func.count(User.id)).scalar() or 0

	recent = query_service.query(query_service.Scope.admin(), limit=RECENT_LIMIT)

	return {
		"total": total,
		"pending": counts["pending"] - counts["in_progress"],
		"in_progress": counts["in_progress"],
		"resolved": counts["resolved"],
		"emergency": counts["emergency"],
		"non_emergency": counts["non_emergency"],
		"today": _count_since(today),
		"this_week": _count_since(now - timedelta(days=7)),
		"resolution_rate": int(resolution_rate),
		"officers": int(officers),
		"categories": int(categories),
		"users": int(users),
		"recent": [_recent_to_dict(r) for r in recent],
	}
