from datetime import datetime

import pytest

from civic_reports.realtime import ChangeChannel, ChangeEvent
from civic_reports.services.query_service import Scope
from civic_reports.utils.errors import ChannelDisconnectedError


def _event(sequence, report_id=1, reporter_id=10, change="status", status="pending", version=1):
	return ChangeEvent(
		sequence=sequence,
		report_id=report_id,
		reporter_id=reporter_id,
		kind="updated",
		change=change,
		status=status,
		version=version,
		occurred_at=datetime(2026, 1, 5, 12, 0, sequence % 60),
	)


def _drain(sub):
	out = []
	while True:
		event = sub.get(timeout=0)
		if event is None:
			return out
		out.append(event)


def test_citizen_receives_only_own_events_admin_receives_all():
	channel = ChangeChannel(queue_size=8)
	alice = channel.subscribe(Scope.citizen(10))
	bob = channel.subscribe(Scope.citizen(20))
	admin = channel.subscribe(Scope.admin())

	assert channel.publish(_event(1, reporter_id=10)) == 2
	assert channel.publish(_event(2, reporter_id=20)) == 2

	assert [e.sequence for e in _drain(alice)] == [1]
	assert [e.sequence for e in _drain(bob)] == [2]
	assert [e.sequence for e in _drain(admin)] == [1, 2]


def test_events_arrive_in_publish_order():
	channel = ChangeChannel(queue_size=8)
	sub = channel.subscribe(Scope.admin())

	for seq, status in enumerate(["pending", "in_progress", "resolved"], start=1):
		channel.publish(_event(seq, status=status, version=seq))

	assert [e.status for e in _drain(sub)] == ["pending", "in_progress", "resolved"]


def test_get_times_out_with_none():
	channel = ChangeChannel()
	sub = channel.subscribe(Scope.citizen(1))

	assert sub.get(timeout=0.01) is None
	assert sub.connected


def test_full_buffer_drops_subscription():
	channel = ChangeChannel(queue_size=2)
	slow = channel.subscribe(Scope.admin())
	fast = channel.subscribe(Scope.admin())

	channel.publish(_event(1))
	channel.publish(_event(2))
	_drain(fast)
	channel.publish(_event(3))

	assert not slow.connected
	assert slow.reason == "overflow"
	assert channel.subscriber_count == 1
	assert [e.sequence for e in _drain(fast)] == [3]

	# what was buffered before the drop is still delivered, then the error
	assert slow.get(timeout=0).sequence == 1
	assert slow.get(timeout=0).sequence == 2
	with pytest.raises(ChannelDisconnectedError) as exc:
		slow.get(timeout=0)
	assert exc.value.reason == "overflow"
	assert exc.value.status_code == 503


def test_dropped_subscription_gets_nothing_new():
	channel = ChangeChannel(queue_size=1)
	sub = channel.subscribe(Scope.admin())
	channel.publish(_event(1))
	channel.publish(_event(2))

	assert channel.publish(_event(3)) == 0
	assert sub.get(timeout=0).sequence == 1
	with pytest.raises(ChannelDisconnectedError):
		sub.get(timeout=0)


def test_disconnect_all_wakes_subscribers():
	channel = ChangeChannel()
	subs = [channel.subscribe(Scope.citizen(i)) for i in range(3)]

	channel.disconnect_all("shutdown")

	assert channel.subscriber_count == 0
	for sub in subs:
		with pytest.raises(ChannelDisconnectedError) as exc:
			sub.get(timeout=1)
		assert exc.value.reason == "shutdown"


def test_subscription_context_manager_unsubscribes():
	channel = ChangeChannel()

	with channel.subscribe(Scope.admin()) as sub:
		assert channel.subscriber_count == 1

	assert channel.subscriber_count == 0
	assert not sub.connected
	assert channel.publish(_event(1)) == 0


def test_lifecycle_publishes_committed_changes(app, make_user, make_report):
	from civic_reports.extensions import channel
	from civic_reports.services import lifecycle_service

	citizen = make_user("chan_lifecycle@test.com")
	other = make_user("chan_other@test.com")
	mine = channel.subscribe(Scope.citizen(citizen.id))
	try:
		report = make_report(citizen)
		make_report(other)
		lifecycle_service.advance_status(report.id, "in_progress")

		events = _drain(mine)
	finally:
		mine.disconnect()

	assert [(e.report_id, e.kind, e.change, e.status) for e in events] == [
		(report.id, "created", "created", "pending"),
		(report.id, "updated", "status", "in_progress"),
	]
	assert events[0].sequence < events[1].sequence
	assert events[1].to_dict()["occurred_at"] is not None


def test_iterating_yields_buffered_events_then_stops():
	channel = ChangeChannel(queue_size=8)
	sub = channel.subscribe(Scope.citizen(10))
	channel.publish(_event(1, reporter_id=10))
	channel.publish(_event(2, reporter_id=99))
	channel.publish(_event(3, reporter_id=10))

	channel.disconnect_all("shutdown")

	assert [e.sequence for e in sub] == [1, 3]
