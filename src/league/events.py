"""
Domain events emitted after successful match transitions.

Delivery is best-effort and at-most-once: a lost event never affects standings.
"""
import logging
import queue
import threading

logger = logging.getLogger(__name__)

SUBMITTED = 'submitted'
APPROVED = 'approved'
DISPUTED = 'disputed'
EVENT_TYPES = (SUBMITTED, APPROVED, DISPUTED)


class Event:
    def __init__(self, type, tournament_id, match_id, payload=None):
        self.type = type
        self.tournament_id = tournament_id
        self.match_id = match_id
        self.payload = payload if payload else {}

    def to_dict(self):
        return {
            'type': self.type,
            'tournament_id': self.tournament_id,
            'match_id': self.match_id,
            'payload': self.payload,
        }

    def __repr__(self):
        return f"Event(type={self.type}, tournament_id={self.tournament_id}, match_id={self.match_id})"


class EventPublisher:
    def publish(self, event):
        raise NotImplementedError


class NullPublisher(EventPublisher):
    def publish(self, event):
        pass


class EventBus(EventPublisher):
    """In-process fan-out to subscriber queues, optionally filtered by tournament.

    A subscriber whose queue is full misses the event.
    """

    def __init__(self, max_queue_size=100):
        self.max_queue_size = max_queue_size
        self._subscribers = []
        self._lock = threading.Lock()

    def subscribe(self, tournament_id=None):
        q = queue.Queue(maxsize=self.max_queue_size)
        with self._lock:
            self._subscribers.append((tournament_id, q))
        return q

    def unsubscribe(self, q):
        with self._lock:
            self._subscribers = [(t, s) for t, s in self._subscribers if s is not q]

    def publish(self, event):
        with self._lock:
            targets = [s for t, s in self._subscribers if t is None or t == event.tournament_id]
        for q in targets:
            try:
                q.put_nowait(event)
            except queue.Full:
                logger.warning('Dropping %s event for a slow subscriber', event.type)

    @property
    def subscriber_count(self):
        with self._lock:
            return len(self._subscribers)
