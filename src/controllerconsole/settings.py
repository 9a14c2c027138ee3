import os

from controllerconsole.config.config import apply
from controllerconsole.support.mixins import CommonEqualityMixin, StringerMixin

config_name = 'controllerconsole'
config_section = 'console'


class ConsoleSettings(CommonEqualityMixin, StringerMixin):
    """
    Timeouts, discovery addresses and maintenance periods. Times are in seconds.

    The defaults can be overridden from the `[console]` section of the controllerconsole
    configuration files; see configure().
    """

    def __init__(self, timeout=5, poll_timeout=55, discovery_tcp_port=2346, multicast_address='224.0.1.100',
                 multicast_port=3333, broadcast_interval=1, broadcast_max_interval=60, heartbeat_period=10,
                 retry_period=5):
        self.timeout = timeout
        self.poll_timeout = poll_timeout
        self.discovery_tcp_port = discovery_tcp_port
        self.multicast_address = multicast_address
        self.multicast_port = multicast_port
        self.broadcast_interval = broadcast_interval
        self.broadcast_max_interval = broadcast_max_interval
        self.heartbeat_period = heartbeat_period
        self.retry_period = retry_period

    def configure(self, name=config_name, directory=None):
        """
        Applies the `[console]` section of the named configuration.
        :param directory: where the configuration files are. Defaults to the package directory.
        :raises ConfigError: when the configuration is invalid
        """
        apply(self, config_section, name, directory or os.path.dirname(__file__))
        return self
