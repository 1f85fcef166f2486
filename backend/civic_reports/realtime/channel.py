"""In-process fan-out of report mutations.

Every open view holds one `Subscription`. Events reach a subscription in the
order they were published; the lifecycle controller publishes same-report
events in commit order. Delivery is at-most-once: a subscription that falls
behind (buffer full) or loses the channel is dropped, and its owner must
resubscribe and re-query.
"""

import itertools
import logging
import queue
import threading

from civic_reports.utils.errors import ChannelDisconnectedError

logger = logging.getLogger(__name__)

_CLOSED = object()
_ids = itertools.count(1)


class Subscription:
    def __init__(self, channel: "ChangeChannel", scope, maxsize: int):
        self.id = next(_ids)
        self.scope = scope
        self._channel = channel
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self._closed = threading.Event()
        self.reason: str | None = None

    @property
    def connected(self) -> bool:
        return not self._closed.is_set()

    def matches(self, event) -> bool:
        if self.scope.is_admin:
            return True
        return event.reporter_id == self.scope.user_id

    def get(self, timeout: float | None = None):
        """Next event, or None if nothing arrived within `timeout`.

        Events buffered before a drop are still handed out; after that every
        call raises ChannelDisconnectedError.
        """
        if self._closed.is_set():
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                raise ChannelDisconnectedError(reason=self.reason)
        else:
            try:
                item = self._queue.get(timeout=timeout)
            except queue.Empty:
                if self._closed.is_set():
                    raise ChannelDisconnectedError(reason=self.reason)
                return None
        if item is _CLOSED:
            raise ChannelDisconnectedError(reason=self.reason)
        return item

    def __iter__(self):
        """Yield events until the subscription is dropped."""
        while True:
            try:
                event = self.get()
            except ChannelDisconnectedError:
                return
            if event is not None:
                yield event

    def disconnect(self, reason: str = "closed") -> None:
        self._drop(reason)
        self._channel._forget(self)

    def _offer(self, event) -> bool:
        if self._closed.is_set():
            return False
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            self._drop("overflow")
            return False
        return True

    def _drop(self, reason: str) -> None:
        if self._closed.is_set():
            return
        self.reason = reason
        self._closed.set()
        # wake a blocked get()
        try:
            self._queue.put_nowait(_CLOSED)
        except queue.Full:
            pass

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.disconnect()
        return False

    def __repr__(self) -> str:
        return f"<Subscription id={self.id} scope={self.scope} connected={self.connected}>"


class ChangeChannel:
    def __init__(self, queue_size: int = 256):
        self.queue_size = queue_size
        self._lock = threading.Lock()
        self._subscriptions: dict[int, Subscription] = {}

    def init_app(self, app) -> None:
        self.queue_size = int(app.config.get("CHANNEL_QUEUE_SIZE", self.queue_size))
        app.extensions["change_channel"] = self

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def subscribe(self, scope) -> Subscription:
        sub = Subscription(self, scope, maxsize=self.queue_size)
        with self._lock:
            self._subscriptions[sub.id] = sub
        logger.debug("[channel] subscribe id=%s scope=%s", sub.id, scope)
        return sub

    def publish(self, event) -> int:
        """Fan `event` out to every matching subscription. Returns deliveries."""
        delivered = 0
        dropped: list[Subscription] = []
        with self._lock:
            for sub in self._subscriptions.values():
                if not sub.matches(event):
                    continue
                if sub._offer(event):
                    delivered += 1
                else:
                    dropped.append(sub)
            for sub in dropped:
                self._subscriptions.pop(sub.id, None)

        for sub in dropped:
            logger.warning("[channel] dropped subscription id=%s reason=%s", sub.id, sub.reason)
        logger.debug(
            "[channel] publish report=%s change=%s v=%s delivered=%s",
            event.report_id,
            event.change,
            event.version,
            delivered,
        )
        return delivered

    def disconnect_all(self, reason: str = "shutdown") -> None:
        with self._lock:
            subs = list(self._subscriptions.values())
            self._subscriptions.clear()
        for sub in subs:
            sub._drop(reason)
        if subs:
            logger.info("[channel] disconnected %s subscription(s) reason=%s", len(subs), reason)

    def _forget(self, sub: Subscription) -> None:
        with self._lock:
            self._subscriptions.pop(sub.id, None)
