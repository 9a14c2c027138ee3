import os
import unittest

from hamcrest import assert_that, is_, equal_to, calling, raises

from controllerconsole.config.config import ConfigError
from controllerconsole.settings import ConsoleSettings

config_dir = os.path.join(os.path.dirname(__file__), 'config')


class ConsoleSettingsTest(unittest.TestCase):

    def test_defaults(self):
        sut = ConsoleSettings()
        assert_that(sut.timeout, is_(5))
        assert_that(sut.poll_timeout, is_(55))
        assert_that(sut.discovery_tcp_port, is_(2346))
        assert_that(sut.multicast_address, is_('224.0.1.100'))
        assert_that(sut.multicast_port, is_(3333))
        assert_that(sut.broadcast_interval, is_(1))
        assert_that(sut.broadcast_max_interval, is_(60))

    def test_configure_from_package(self):
        sut = ConsoleSettings().configure()
        assert_that(sut.discovery_tcp_port, is_(2346))
        assert_that(sut.timeout, is_(5.0))

    def test_configure_from_directory(self):
        sut = ConsoleSettings().configure('config_test', config_dir)
        assert_that(sut.timeout, is_(2.5))
        assert_that(sut.poll_timeout, is_(55.0))
        assert_that(sut.multicast_port, is_(3333))

    def test_invalid_configuration(self):
        assert_that(calling(ConsoleSettings().configure).with_args('config_test_invalid_schema', config_dir),
                    raises(ConfigError))

    def test_equality(self):
        assert_that(ConsoleSettings(timeout=1), is_(equal_to(ConsoleSettings(timeout=1))))
