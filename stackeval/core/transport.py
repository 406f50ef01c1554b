"""
In-process message transport between the evaluation platform, the sensor
and the pose estimator.

Published messages are queued and delivered by `dispatch()`, which the step
loop calls after the simulation tick, so no two handlers ever run at the same
time or inside each other.
"""

import threading
from collections import deque
from dataclasses import dataclass, field
from typing import List

from .errors import ConnectionTimeoutError

# Outgoing topics
TAKE_PICTURE_TOPIC = "~/evaluation_platform/take_picture_request"
RESIMULATE_TOPIC = "~/evaluation_platform/resimulate_request"
EVALUATION_RESULT_TOPIC = "~/evaluation_platform/evaluation_result"
ONLY_SNAPSHOT_TOPIC = "~/evaluation_platform/only_snapshot"

# Incoming topics
ESTIMATE_RESULT_TOPIC = "~/pose_estimation/estimate_result"
ESTIMATION_ENDED_TOPIC = "~/pose_estimation/estimation_ended"
RETHROW_EVENT_TOPIC = "~/depth_sensor/rethrow_event"

# EvaluationResult ids
RESULT_FAIL = 0
RESULT_SUCCESS = 1
RESULT_INESTIMABLE = 2


@dataclass(frozen=True)
class Request:
    """Generic request message: an id, a request string and optional data."""

    id: int
    request: str = ""
    data: str = ""


@dataclass(frozen=True)
class PoseEstimationResult:
    """
    Pose estimate from the estimator.

    Attributes:
        object_name: Recognized object label
        pose_matrix4: 16 values, row-major 4x4, sensor frame, translation in mm
        timestamp: Estimator timestamp (seconds)
    """

    object_name: str
    pose_matrix4: List[float] = field(default_factory=list)
    timestamp: float = 0.0


class Publisher:
    """
    Publishing end of a topic.

    `wait_for_connection()` replaces polling: it blocks on an event that is
    set when the first subscriber connects.
    """

    def __init__(self, transport, topic):
        self.transport = transport
        self.topic = topic
        self._connected = threading.Event()
        self.waiting_for_connection = False
        if transport.subscriber_count(topic):
            self._connected.set()

    def has_connections(self):
        return self._connected.is_set()

    def wait_for_connection(self, timeout):
        """
        Block until a subscriber exists.

        Args:
            timeout: Maximum wait in seconds

        Raises:
            ConnectionTimeoutError: If nobody subscribed in time
        """
        if self._connected.is_set():
            return

        self.waiting_for_connection = True
        print(f"[WARN] No connection on {self.topic}, waiting up to {timeout:.1f}s")
        try:
            if not self._connected.wait(timeout):
                raise ConnectionTimeoutError(self.topic, timeout)
        finally:
            self.waiting_for_connection = False

    def publish(self, message):
        self.transport.enqueue(self.topic, message)

    def _notify_connected(self):
        self._connected.set()


class Subscriber:
    def __init__(self, transport, topic, callback):
        self.transport = transport
        self.topic = topic
        self.callback = callback

    def unsubscribe(self):
        self.transport.remove_subscriber(self)


class InProcessTransport:
    """
    Topic based transport delivering messages synchronously on dispatch().
    """

    def __init__(self, history_size=10000):
        self._subscribers = {}
        self._publishers = {}
        self._queue = deque()
        # most recent published messages, for inspection
        self.history = deque(maxlen=history_size)

    def advertise(self, topic):
        publisher = Publisher(self, topic)
        self._publishers.setdefault(topic, []).append(publisher)
        return publisher

    def subscribe(self, topic, callback):
        subscriber = Subscriber(self, topic, callback)
        self._subscribers.setdefault(topic, []).append(subscriber)
        for publisher in self._publishers.get(topic, []):
            publisher._notify_connected()
        return subscriber

    def remove_subscriber(self, subscriber):
        subscribers = self._subscribers.get(subscriber.topic, [])
        if subscriber in subscribers:
            subscribers.remove(subscriber)

    def subscriber_count(self, topic):
        return len(self._subscribers.get(topic, []))

    def enqueue(self, topic, message):
        self.history.append((topic, message))
        self._queue.append((topic, message))

    def pending(self):
        return len(self._queue)

    def dispatch(self, max_messages=None):
        """
        Deliver queued messages, including those published by the handlers.

        Args:
            max_messages: Optional cap on delivered messages for this call

        Returns:
            int: Number of delivered messages
        """
        delivered = 0
        while self._queue and (max_messages is None or delivered < max_messages):
            topic, message = self._queue.popleft()
            for subscriber in list(self._subscribers.get(topic, [])):
                subscriber.callback(message)
            delivered += 1
        return delivered

    def published(self, topic):
        """Messages published on a topic so far, oldest first."""
        return [m for t, m in self.history if t == topic]
