import unittest
from unittest.mock import Mock

import timeout_decorator
from hamcrest import assert_that, is_

from controllerconsole.callbacks import ControllerCallback
from controllerconsole.codes import ResponseCode
from controllerconsole.connector.transport import TransportTimeoutError
from controllerconsole.connector.transport_test import FakeTransport, response
from controllerconsole.registration_test import living_room, make_controller, status
from controllerconsole.session_maintenance import SessionMaintainer
from controllerconsole.support.asyncloop_test import debug_timeout, wait_until


class SessionMaintainerTest(unittest.TestCase):

    def setUp(self):
        self.transport = FakeTransport()
        self.controller = make_controller(self.transport)
        self.callback = Mock(spec=ControllerCallback)
        self.sut = SessionMaintainer(self.controller, heartbeat_period=0.05, retry_period=10)

    def tearDown(self):
        self.sut.stop(2)

    def test_settings_are_defaults(self):
        sut = SessionMaintainer(self.controller)
        assert_that(sut.heartbeat_period, is_(10))
        assert_that(sut.retry_strategy.retry_period, is_(5))

    def test_heartbeat_ok(self):
        self.transport.on('GET', 'rest/servers', response(200))
        self.controller.connect(self.callback)
        assert_that(self.sut.heartbeat(), is_(True))
        assert_that(self.controller.connected, is_(True))
        assert_that(len(self.transport.requests_to('rest/servers')), is_(2))

    def test_heartbeat_failure_drops_connection(self):
        self.transport.on('GET', 'rest/servers', response(200), TransportTimeoutError())
        self.transport.on('GET', 'rest/status/', status())
        self.transport.on('GET', 'rest/polling/', response(504))
        self.controller.connect(self.callback)
        handle = self.controller.register_panel(living_room())
        events = Mock()
        self.controller.connector.events += events

        assert_that(self.sut.heartbeat(), is_(False))
        assert_that(self.controller.connected, is_(False))
        assert_that(self.sut.dropped, is_(True))
        assert_that(handle.active, is_(False))
        assert_that(events.call_args[0][0].code, is_(ResponseCode.NO_RESPONSE))
        self.callback.on_failure.assert_called_once_with(ResponseCode.DISCONNECTED)
        handle.monitor.thread.join(2)

    def test_reconnects_after_drop(self):
        self.transport.on('GET', 'rest/servers', response(200), TransportTimeoutError(), response(200))
        self.controller.connect(self.callback)
        self.sut.heartbeat()
        assert_that(self.sut.maintain(current_time=100), is_(True))
        assert_that(self.controller.connected, is_(True))
        assert_that(self.sut.dropped, is_(False))
        assert_that(self.callback.on_success.call_count, is_(2))

    def test_reconnect_waits_for_retry_period(self):
        self.transport.on('GET', 'rest/servers', response(200), TransportTimeoutError())
        self.controller.connect(self.callback)
        self.sut.heartbeat()
        assert_that(self.sut.maintain(current_time=100), is_(True))
        assert_that(self.controller.connected, is_(False))
        assert_that(self.sut.maintain(current_time=105), is_(False))
        assert_that(self.sut.maintain(current_time=110), is_(True))

    def test_does_not_reconnect_after_requested_disconnect(self):
        self.transport.on('GET', 'rest/servers', response(200))
        self.controller.connect(self.callback)
        self.controller.disconnect()
        assert_that(self.sut.maintain(current_time=100), is_(False))
        assert_that(self.controller.connected, is_(False))

    @timeout_decorator.timeout(debug_timeout(5))
    def test_background_heartbeat(self):
        self.transport.on('GET', 'rest/servers', response(200), response(200), TransportTimeoutError())
        self.controller.connect(self.callback)
        self.sut.start()
        assert_that(wait_until(lambda: not self.controller.connected), is_(True))
        assert_that(wait_until(lambda: self.sut.dropped), is_(True))
