"""
Callback interfaces through which results are delivered to the application.

Results arrive on background threads. Exceptions raised by a callback are logged and otherwise
ignored so that they cannot stop the thread that delivered the result.
"""
import logging

logger = logging.getLogger(__name__)


class ControllerCallback:
    """ Receives the outcome of a single controller operation. """

    def on_success(self, result):
        pass

    def on_failure(self, code):
        pass


class RegistrationCallback:
    """
    Receives the outcome of registering a panel or device.
    on_success is called once, after the first sensor snapshot has been applied. on_failure is called
    when the snapshot or monitoring fails, and with UNREGISTERED when the registration ends.
    """

    def on_success(self):
        pass

    def on_failure(self, code):
        pass


class DiscoveryListener:
    def on_discovery_started(self):
        pass

    def on_controller_found(self, info):
        pass

    def on_discovery_stopped(self):
        pass

    def on_start_discovery_failed(self, code):
        pass


class FunctionCallback(ControllerCallback):
    """
    Adapts plain functions to the callback interfaces. The success function receives the
    result, or no arguments when used as a registration callback.
    >>> results = []
    >>> FunctionCallback(results.append).on_success(42)
    >>> results
    [42]
    """

    def __init__(self, success=None, failure=None):
        self.success = success
        self.failure = failure

    def on_success(self, *args):
        if self.success:
            self.success(*args)

    def on_failure(self, code):
        if self.failure:
            self.failure(code)


def _invoke(callback, method, *args):
    if callback is None:
        return
    try:
        getattr(callback, method)(*args)
    except Exception as e:
        logger.exception("callback %r raised %s from %s", callback, e, method)


def notify_success(callback, *args):
    _invoke(callback, 'on_success', *args)


def notify_failure(callback, code):
    _invoke(callback, 'on_failure', code)


def notify(callback, result):
    """ delivers a dispatcher result to a ControllerCallback. """
    if result.succeeded:
        notify_success(callback, result.value)
    else:
        notify_failure(callback, result.code)
