import pytest

from stackeval.core.errors import ConnectionTimeoutError
from stackeval.core.transport import InProcessTransport, Request


def test_messages_wait_for_dispatch():
    transport = InProcessTransport()
    received = []
    transport.subscribe("a", received.append)
    transport.advertise("a").publish(Request(id=1))

    assert received == []
    assert transport.pending() == 1
    assert transport.dispatch() == 1
    assert received == [Request(id=1)]


def test_handlers_publishing_are_not_nested():
    transport = InProcessTransport()
    order = []
    pub_b = transport.advertise("b")

    def on_a(msg):
        order.append("a start")
        pub_b.publish(Request(id=2))
        order.append("a end")

    transport.subscribe("a", on_a)
    transport.subscribe("b", lambda msg: order.append("b"))
    transport.advertise("a").publish(Request(id=1))
    transport.dispatch()

    assert order == ["a start", "a end", "b"]


def test_dispatch_cap():
    transport = InProcessTransport()
    pub = transport.advertise("a")
    for i in range(3):
        pub.publish(Request(id=i))
    assert transport.dispatch(max_messages=2) == 2
    assert transport.pending() == 1


def test_connection_after_subscribe():
    transport = InProcessTransport()
    pub = transport.advertise("a")
    assert not pub.has_connections()
    transport.subscribe("a", lambda msg: None)
    assert pub.has_connections()
    pub.wait_for_connection(timeout=0.01)


def test_connection_timeout():
    transport = InProcessTransport()
    pub = transport.advertise("a")
    with pytest.raises(ConnectionTimeoutError):
        pub.wait_for_connection(timeout=0.01)
    assert not pub.waiting_for_connection


def test_unsubscribe():
    transport = InProcessTransport()
    received = []
    sub = transport.subscribe("a", received.append)
    sub.unsubscribe()
    transport.advertise("a").publish(Request(id=1))
    transport.dispatch()
    assert received == []
    assert transport.published("a") == [Request(id=1)]
