"""


Controller Console

A client for automation controllers that are reachable only over HTTP request/response. The controller
has no push channel, so the client keeps panels and devices in step with the controller's sensors by
long-polling.

- Transport: performs one request and returns status, headers and body. RequestsTransport is the default.
- CommandDispatcher: turns operations (list panels, send command, poll sensors...) into requests, and
  responses into a Success or Failure result. Never raises, never retries.
- Connector: the dispatcher plus connection state. Fires ConnectorConnectedEvent and
  ConnectorDisconnectedEvent.
- Controller: what the application uses. Owns the connector and the registrations, runs operations on
  an executor and delivers the outcome to callbacks.
- Registration handles - one per registered panel or device. Derives the sensor ids, applies a
  snapshot of their values, then runs a poll loop on its own thread.
- DiscoveryService - multicasts a probe and collects the controllers that answer over TCP.
- SessionMaintainer - optional heartbeat that notices a controller that went away and reconnects.


## Threading

Operations run on the controller's executor, a thread pool unless another executor is given. Pass an
ImmediateExecutor to run them on the calling thread.

Each active registration has a poll thread. There is never more than one poll outstanding for a
registration: the next poll is issued only after the previous delta is applied, and only while the
registration is active and the controller connected. A registration that is re-started while its old
thread still waits on a poll does not get a second thread; the waiting thread carries on.

Discovery runs the broadcaster on one thread and the collector's accept loop on another, with a thread
per responding controller.

Callbacks are called on these background threads.


"""
from controllerconsole.callbacks import ControllerCallback, DiscoveryListener, FunctionCallback, \
    RegistrationCallback
from controllerconsole.codes import ResponseCode
from controllerconsole.connector.dispatcher import CommandDispatcher, Failure, Success
from controllerconsole.connector.session import Connector
from controllerconsole.connector.transport import RequestsTransport, Transport
from controllerconsole.controller import Controller
from controllerconsole.discovery import DiscoveryService
from controllerconsole.session_maintenance import SessionMaintainer
from controllerconsole.settings import ConsoleSettings
