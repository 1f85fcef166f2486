from civic_reports.extensions import channel as default_channel, db
from civic_reports.services import query_service
from civic_reports.utils.errors import ChannelDisconnectedError


STATE_IDLE = "idle"
STATE_LIVE = "live"
STATE_RECONNECTING = "reconnecting"


class LiveReportView:
    """What every dashboard needs: a query plus a subscription that triggers it.

    On each change event the full query runs again; nothing is patched in
    place. After a dropped subscription the view resubscribes and re-queries
    once, since missed events are never replayed.
    """

    def __init__(self, scope, filters=None, channel=None, limit=None):
        self.scope = scope
        self.filters = filters or query_service.ReportFilters()
        self.limit = limit
        self.channel = channel or default_channel
        self.state = STATE_IDLE
        self.reports = []
        self.reconnects = 0
        self._subscription = None

    def connect(self) -> list:
        self._subscription = self.channel.subscribe(self.scope)
        self.state = STATE_LIVE
        return self.refresh()

    def refresh(self) -> list:
        # end the read transaction so the re-query sees the latest committed rows
        db.session.rollback()
        self.reports = query_service.query(self.scope, self.filters, limit=self.limit)
        return self.reports

    def set_filters(self, filters) -> list:
        self.filters = filters
        return self.refresh()

    def pump(self, timeout: float | None = 0.0):
        """Handle at most one change event. Returns the event, or None."""
        if self._subscription is None:
            self.connect()
        try:
            event = self._subscription.get(timeout=timeout)
        except ChannelDisconnectedError:
            self._reconnect()
            return None
        if event is not None:
            self.refresh()
        return event

    def _reconnect(self) -> None:
        self.state = STATE_RECONNECTING
        self.reconnects += 1
        self._subscription = self.channel.subscribe(self.scope)
        self.refresh()
        self.state = STATE_LIVE

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.disconnect()
            self._subscription = None
        self.state = STATE_IDLE

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, *exc):
        self.close()
        return False
