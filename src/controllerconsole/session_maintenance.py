import logging

from controllerconsole.support.asyncloop import AsyncLoop
from controllerconsole.support.retry_strategy import PeriodRetryStrategy

logger = logging.getLogger(__name__)


class SessionMaintainer(AsyncLoop):
    """
    Watches over a controller's connection on a background thread.

    The REST session has no connection of its own to lose, so a controller that goes away is only noticed
    when a request fails. While connected, the maintainer sends a heartbeat every heartbeat_period;
    when the heartbeat fails the connection is dropped, which deactivates the registrations and notifies the
    connect callback with DISCONNECTED. A dropped connection is re-established with the same callback, trying
    at most once every retry_period. Connections closed by the application are left closed.

    heartbeat() and maintain() can also be called directly to maintain the session synchronously.
    """

    def __init__(self, controller, heartbeat_period=None, retry_period=None, log=logger):
        super().__init__(name='session-maintainer', log=log)
        settings = controller.settings
        self.controller = controller
        self.heartbeat_period = settings.heartbeat_period if heartbeat_period is None else heartbeat_period
        self.retry_strategy = PeriodRetryStrategy(settings.retry_period if retry_period is None else retry_period)
        self.dropped = False

    def heartbeat(self):
        """
        Checks the controller still responds, dropping the connection when it doesn't.
        :return: True if the controller responded
        """
        result = self.controller.dispatcher.connect(self.controller.settings.timeout)
        if result.succeeded:
            return True
        self.logger.warning("heartbeat to %s failed: %s", self.controller.controller_url, result.code.name)
        if self.controller.connector.disconnect(result.code):
            self.dropped = True
        return False

    def maintain(self, current_time=None):
        """
        Reconnects a dropped connection once the retry period has passed.
        :return: True if a connect was tried
        """
        if self.controller.connected:
            self.dropped = False
            return False
        if not self.dropped or self.retry_strategy(current_time) > 0:
            return False
        self.logger.info("reconnecting to %s", self.controller.controller_url)
        self.controller.connect(self.controller.connector.connect_callback).result()
        if self.controller.connected:
            self.dropped = False
        return True

    def loop(self):
        if self.controller.connected:
            self.stop_event.wait(self.heartbeat_period)
            if self.running() and self.controller.connected:
                self.heartbeat()
        else:
            self.maintain()
            delay = self.retry_strategy(dryRun=True)
            self.stop_event.wait(delay if delay > 0 else self.retry_strategy.retry_period)
