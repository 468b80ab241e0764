#
# Licensed to the Apache Software Foundation (ASF) under one
# or more contributor license agreements.  See the NOTICE file
# distributed with this work for additional information
# regarding copyright ownership.  The ASF licenses this file
# to you under the Apache License, Version 2.0 (the
# "License"); you may not use this file except in compliance
# with the License.  You may obtain a copy of the License at
#
#   http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing,
# software distributed under the License is distributed on an
# "AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY
# KIND, either express or implied.  See the License for the
# specific language governing permissions and limitations
# under the License.
#

"""
A high level JMS style API for AMQP 1.0 messaging.

Areas that still need work:

  - durable topic subscriptions
  - message selectors
"""

import time
from logging import getLogger
from threading import Condition, RLock
from uuid import uuid4

from solace_samples.concurrency import synchronized, Waiter
from solace_samples.messaging.constants import *
from solace_samples.messaging.destinations import *
from solace_samples.messaging.driver import Driver
from solace_samples.messaging.exceptions import *
from solace_samples.messaging.message import *
from solace_samples.messaging.transports import TRANSPORTS
from solace_samples.util import default, URL

log = getLogger("solace_samples.messaging")

class Endpoint(object):

  """
  Base class for all endpoint objects types. Endpoints are context
  managers that close themselves on exit.
  """

  def __enter__(self):
    return self

  def __exit__(self, *exc_info):
    self.close()

class ConnectionFactory(object):

  """
  Immutable connection settings. Produces L{Connections<Connection>}.
  """

  # keyword options
  opt_keys = ["transport", "sasl_mechanisms", "ssl_keyfile", "ssl_certfile",
              "ssl_trustfile", "ssl_skip_hostname_check", "heartbeat",
              "open_timeout", "prefetch"]
  # options understood in the query part of the url
  url_keys = ["amqp.idleTimeout", "jms.username", "jms.password",
              "jms.clientID"]

  def __init__(self, url, username=None, password=None, client_id=None,
               **options):
    """
    Creates a connection factory.

    @type url: str
    @param url: amqp[s]://[ <user> [ / <password> ] @ ] <host> [ : <port> ] [ ? <options> ]
    @type username: str
    @param username: the username for authentication (overrides url)
    @type password: str
    @param password: the password for authentication (overrides url)
    @type client_id: str
    @param client_id: the client id announced as the AMQP container id

    @type transport: str
    @param transport: name of the transport binding, amqp or amqps
    @type sasl_mechanisms: str
    @param sasl_mechanisms: space separated list of permitted sasl mechanisms
    @type heartbeat: float
    @param heartbeat: idle timeout in seconds (overrides amqp.idleTimeout)
    @type open_timeout: float
    @param open_timeout: seconds to wait for the broker during open and
    link attach
    @type prefetch: int
    @param prefetch: default credit window of consumers

    @type ssl_keyfile: str
    @param ssl_keyfile: file with client's private key (PEM format)
    @type ssl_certfile: str
    @param ssl_certfile: file with client's public (eventually priv+pub) key (PEM format)
    @type ssl_trustfile: str
    @param ssl_trustfile: file trusted certificates to validate the server
    @type ssl_skip_hostname_check: bool
    @param ssl_skip_hostname_check: disable verification of hostname in
    certificate
    """
    settings = dict([(key, None) for key in self.opt_keys])
    for key, value in options.items():
      if key in self.opt_keys:
        settings[key] = value
      else:
        raise ConnectionError(text="Unknown connection option %s with value %s"
                              % (key, value))

    url = URL(url)
    query = url.options
    for key in query:
      if key not in self.url_keys:
        log.warning("ignoring unknown url option %s", key)

    scheme = default(url.scheme, URL.AMQP).lower()
    settings["transport"] = default(settings["transport"], scheme)
    if settings["transport"] == URL.AMQPS:
      port = default(url.port, AMQPS_PORT)
    else:
      port = default(url.port, AMQP_PORT)

    if settings["heartbeat"] is None and "amqp.idleTimeout" in query:
      settings["heartbeat"] = int(query["amqp.idleTimeout"])/1000.0
    settings["open_timeout"] = default(settings["open_timeout"],
                                       DEFAULT_OPEN_TIMEOUT)
    settings["prefetch"] = default(settings["prefetch"], DEFAULT_PREFETCH)
    if settings["prefetch"] < 1:
      raise ValueError("prefetch must be positive: %s" % settings["prefetch"])
    settings["ssl_skip_hostname_check"] = \
        default(settings["ssl_skip_hostname_check"], False)

    settings["url"] = URL(scheme=scheme, host=url.host, port=port)
    settings["username"] = default(username, default(url.user,
                                                     query.get("jms.username")))
    settings["_password"] = default(password, default(url.password,
                                                      query.get("jms.password")))
    settings["client_id"] = default(client_id, query.get("jms.clientID"))
    self.__dict__.update(settings)

  def __setattr__(self, name, value):
    raise AttributeError("ConnectionFactory is immutable")

  def __delattr__(self, name):
    raise AttributeError("ConnectionFactory is immutable")

  def __reduce_ex__(self, protocol):
    raise TypeError("ConnectionFactory cannot be serialized")

  def __repr__(self):
    if self.username is None:
      return "ConnectionFactory(%r)" % str(self.url)
    else:
      return "ConnectionFactory(%r, username=%r)" % (str(self.url),
                                                     self.username)

  def create_connection(self, username=None, password=None, timeout=None):
    """
    Creates a connection and performs the open handshake with the
    broker. The connection is delivered in the CREATED state; call
    L{Connection.start} to begin delivery of messages.

    @type username: str
    @param username: overrides the username of the factory
    @type password: str
    @param password: overrides the password of the factory
    @type timeout: float
    @param timeout: seconds to wait for the broker
    @rtype: Connection
    """
    if username is None:
      username = self.username
      password = self._password
    conn = Connection(self)
    conn._open(username, password, default(timeout, self.open_timeout))
    return conn

class Connection(Endpoint):

  """
  A Connection manages a group of L{Sessions<Session>} and the
  temporary queues created through them, and connects them with the
  broker.
  """

  def __init__(self, factory):
    self.factory = factory
    self.client_id = factory.client_id
    self.log_id = "%x" % id(self)
    self.state = CREATED
    self.error = None
    self.closed = False
    self.exception_listener = None
    self.sessions = []
    self.temporaries = []
    self._lock = RLock()
    self._condition = Condition(self._lock)
    self._waiter = Waiter(self._condition)
    try:
      self._transport = TRANSPORTS[factory.transport](self)
    except KeyError:
      raise ConnectError(text="no such transport: %s" % factory.transport)
    self._driver = Driver(self)

  def __repr__(self):
    return "Connection(%r, %s)" % (str(self.factory.url), self.state)

  def _wait(self, predicate, timeout=None):
    try:
      return self._waiter.wait(predicate, timeout=timeout)
    except KeyboardInterrupt:
      raise Interrupted(text="interrupted while waiting")

  def _wakeup(self):
    self._waiter.notify_all()

  def check_error(self):
    if self.error:
      raise self.error

  def _ewait(self, predicate, timeout=None):
    result = self._wait(lambda: self.error or predicate(), timeout)
    self.check_error()
    return result

  def check_closed(self):
    if self.closed:
      raise ConnectionClosed(text="connection closed")

  def _open(self, username, password, timeout):
    try:
      self._transport.open(username, password, timeout)
    except MessagingError:
      self.closed = True
      self.state = CLOSED
      raise
    self._driver.start()
    log.debug("OPEN[%s]: %s", self.log_id, self.factory.url)

  @synchronized
  def set_exception_listener(self, listener):
    """
    Registers a callable invoked on the delivery pump with the error
    when the connection fails asynchronously. Replaces any previously
    registered listener.

    @type listener: callable taking a L{MessagingError}
    """
    self.check_closed()
    self.exception_listener = listener

  @synchronized
  def start(self):
    """
    Starts (or restarts) delivery of incoming messages.
    """
    self.check_error()
    self.check_closed()
    self.state = STARTED
    self._wakeup()

  @synchronized
  def stop(self):
    """
    Suspends delivery of incoming messages. Returns once any message
    listener in progress has returned.
    """
    self.check_error()
    self.check_closed()
    if self._driver.in_pump():
      raise IllegalState(text="stop called from a listener")
    self.state = STOPPED
    self._wakeup()
    self._wait(lambda: all([ssn._dispatching is None
                            for ssn in self.sessions]))

  @synchronized
  def create_session(self, transacted=False, ack_mode=AUTO_ACKNOWLEDGE):
    """
    Creates a session.

    @type transacted: bool
    @param transacted: must be false, transactions are not supported
    @type ack_mode: Constant
    @param ack_mode: AUTO_ACKNOWLEDGE, CLIENT_ACKNOWLEDGE or
    DUPS_OK_ACKNOWLEDGE
    @rtype: Session
    """
    self.check_error()
    self.check_closed()
    if transacted:
      raise NontransactionalSession(text="transacted sessions are not supported")
    if ack_mode not in ACK_MODES:
      raise SessionError(text="unknown acknowledgement mode: %r" % (ack_mode,))
    ssn = Session(self, ack_mode)
    self.sessions.append(ssn)
    log.debug("SSN[%s]: created %s", self.log_id, ssn)
    return ssn

  def _create_temporary(self):
    name = self._transport.link_temporary(self.factory.open_timeout)
    with self._lock:
      tmpq = TemporaryQueue(name, self)
      self.temporaries.append(tmpq)
    log.debug("TMPQ[%s]: created %s", self.log_id, name)
    return tmpq

  def _delete_temporary(self, tmpq):
    with self._lock:
      if tmpq.deleted:
        return
      for ssn in self.sessions:
        for rcv in ssn.consumers:
          if rcv.destination == tmpq and not rcv.closed:
            raise IllegalState(text="temporary queue %s has open consumers"
                               % tmpq.name)
      tmpq.deleted = True
      if tmpq in self.temporaries:
        self.temporaries.remove(tmpq)
      failed = self.error is not None or self.closed
    if not failed:
      self._transport.delete_temporary(tmpq, self.factory.open_timeout)
    log.debug("TMPQ[%s]: deleted %s", self.log_id, tmpq.name)

  def _temporary(self, name):
    for tmpq in list(self.temporaries):
      if tmpq.name == name:
        return tmpq
    return None

  @synchronized
  def _received(self, consumer, message):
    if consumer.closed or self.closed or self.state is CLOSED:
      return False
    ssn = consumer.session
    message._session = ssn
    message._consumer = consumer
    ssn.incoming.append(message)
    log.debug("RCVD[%s]: %s", ssn.log_id, message)
    self._wakeup()
    return True

  @synchronized
  def _failed(self, error):
    if self.closed or self.error is not None:
      return
    log.warning("connection to %s failed: %s", self.factory.url, error)
    if isinstance(error, ConnectionClosed):
      self.error = error
    else:
      self.error = ConnectionClosed(text=str(error))
    self.state = CLOSED
    self._driver.failed(self.error)
    self._wakeup()

  def close(self, timeout=None):
    """
    Closes the connection together with its sessions and temporary
    queues. Closing an already closed connection has no effect.
    """
    with self._lock:
      if self.closed:
        return
      self.closed = True
      failed = self.error is not None
      self.state = CLOSED
      sessions = list(self.sessions)
      self._wakeup()
    for ssn in sessions:
      ssn._close(unlink=not failed)
    with self._lock:
      temporaries = list(self.temporaries)
      del self.temporaries[:]
      for tmpq in temporaries:
        tmpq.deleted = True
    if not failed:
      for tmpq in temporaries:
        try:
          self._transport.delete_temporary(tmpq, timeout)
        except MessagingError as e:
          log.warning("unable to delete %s: %s", tmpq, e)
    self._transport.close(timeout)
    self._driver.stop(timeout)
    log.debug("CLOSE[%s]", self.log_id)

class Session(Endpoint):

  """
  Sessions create L{MessageProducers<MessageProducer>},
  L{MessageConsumers<MessageConsumer>} and messages, and track the
  acknowledgement of the messages delivered through them.
  """

  def __init__(self, connection, ack_mode):
    self.connection = connection
    self.ack_mode = ack_mode
    self.transacted = False
    self.log_id = "%x.%x" % (id(connection), id(self))
    self.producers = []
    self.consumers = []
    # delivered by the broker, not yet handed to the application
    self.incoming = []
    # handed to the application, not yet acknowledged
    self.unacked = []
    # consumed under DUPS_OK_ACKNOWLEDGE, not yet settled
    self.batch = []
    self.closed = False
    self._dispatching = None
    self._lock = connection._lock

  def __repr__(self):
    return "Session(%s, %s)" % (self.log_id, self.ack_mode)

  def _wait(self, predicate, timeout=None):
    return self.connection._wait(predicate, timeout)

  def _wakeup(self):
    self.connection._wakeup()

  def check_error(self):
    self.connection.check_error()

  def _ewait(self, predicate, timeout=None):
    return self.connection._ewait(predicate, timeout)

  def check_closed(self):
    if self.closed:
      raise SessionClosed(text="session closed")

  def _check(self, destination):
    if not isinstance(destination, Destination):
      raise InvalidDestination(text="not a destination: %r" % (destination,))
    if isinstance(destination, TemporaryQueue) and destination.deleted:
      raise InvalidDestination(text="temporary queue %s has been deleted" %
                               destination.name)

  def create_producer(self, destination=None):
    """
    Creates a producer. A producer created without a destination is
    unbound and needs a destination on every send.

    @type destination: Destination
    @rtype: MessageProducer
    """
    with self._lock:
      self.check_error()
      self.check_closed()
      if destination is not None:
        self._check(destination)
      snd = MessageProducer(self, destination)
      self.producers.append(snd)
    try:
      self.connection._transport.link_sender(snd,
                                             self.connection.factory.open_timeout)
    except MessagingError:
      with self._lock:
        snd.closed = True
        self.producers.remove(snd)
      raise
    return snd

  def create_consumer(self, destination, prefetch=None):
    """
    Creates a consumer of a queue or topic.

    @type destination: Destination
    @type prefetch: int
    @param prefetch: credit window, defaults to the factory setting
    @rtype: MessageConsumer
    """
    prefetch = default(prefetch, self.connection.factory.prefetch)
    if prefetch < 1:
      raise ValueError("prefetch must be positive: %s" % prefetch)
    with self._lock:
      self.check_error()
      self.check_closed()
      self._check(destination)
      if isinstance(destination, TemporaryQueue) and \
            destination.connection is not self.connection:
        raise InvalidDestination(text="temporary queue %s belongs to another "
                                 "connection" % destination.name)
      rcv = MessageConsumer(self, destination, prefetch)
      self.consumers.append(rcv)
    try:
      self.connection._transport.link_receiver(rcv,
                                               self.connection.factory.open_timeout)
    except MessagingError:
      with self._lock:
        rcv.closed = True
        self.consumers.remove(rcv)
      raise
    return rcv

  def create_temporary_queue(self):
    """
    Creates a queue named by the broker that lives as long as the
    connection of this session.

    @rtype: TemporaryQueue
    """
    with self._lock:
      self.check_error()
      self.check_closed()
    return self.connection._create_temporary()

  @synchronized
  def create_queue(self, name):
    self.check_closed()
    return Queue(name)

  @synchronized
  def create_topic(self, name):
    self.check_closed()
    return Topic(name)

  @synchronized
  def create_message(self):
    self.check_closed()
    return Message()

  @synchronized
  def create_text_message(self, text=None):
    self.check_closed()
    return TextMessage(text)

  @synchronized
  def create_bytes_message(self, data=None):
    self.check_closed()
    return BytesMessage(data)

  @synchronized
  def create_map_message(self, map=None):
    self.check_closed()
    return MapMessage(map)

  def commit(self):
    raise NontransactionalSession(text="session is not transacted")

  def rollback(self):
    raise NontransactionalSession(text="session is not transacted")

  def _peek(self, consumer):
    for msg in self.incoming:
      if msg._consumer is consumer:
        return msg

  def _pop(self, consumer):
    i = 0
    while i < len(self.incoming):
      msg = self.incoming[i]
      if msg._consumer is consumer:
        del self.incoming[i]
        return msg
      else:
        i += 1

  def _settle(self, messages, outcome):
    for msg in messages:
      log.debug("ACK[%s]: %s %s", self.log_id, outcome, msg.message_id)
      self.connection._transport.settle(msg, outcome)

  def _consumed(self, msg):
    # the application is done with msg; only CLIENT_ACKNOWLEDGE waits
    # for an explicit acknowledge
    if self.ack_mode is AUTO_ACKNOWLEDGE:
      self.unacked.remove(msg)
      self._settle([msg], ACCEPTED)
    elif self.ack_mode is DUPS_OK_ACKNOWLEDGE:
      self.unacked.remove(msg)
      self.batch.append(msg)
      if len(self.batch) >= DUPS_OK_BATCH:
        self._settle(self.batch, ACCEPTED)
        del self.batch[:]

  @synchronized
  def _client_acknowledge(self, msg):
    if self.ack_mode is not CLIENT_ACKNOWLEDGE:
      return
    self.check_error()
    self.check_closed()
    try:
      idx = self.unacked.index(msg)
    except ValueError:
      return
    acked = self.unacked[:idx+1]
    del self.unacked[:idx+1]
    self._settle(acked, ACCEPTED)

  def close(self):
    """
    Closes the session, its producers and its consumers. Messages
    that were delivered but not acknowledged are redelivered by the
    broker.
    """
    self._close()

  def _close(self, unlink=True):
    with self._lock:
      if self.closed:
        return
      self.closed = True
      endpoints = self.consumers + self.producers
      for lnk in endpoints:
        lnk.closed = True
      self._wakeup()
      if not self.connection._driver.in_pump():
        self._wait(lambda: self._dispatching is None)
      unlink = unlink and self.connection.error is None
      if unlink:
        self._settle(self.batch, ACCEPTED)
        self._settle(self.unacked, MODIFIED)
        self._settle(self.incoming, RELEASED)
      del self.batch[:]
      del self.unacked[:]
      del self.incoming[:]
      del self.consumers[:]
      del self.producers[:]
      if self in self.connection.sessions:
        self.connection.sessions.remove(self)
    if unlink:
      for lnk in endpoints:
        try:
          self.connection._transport.unlink(lnk,
                                            self.connection.factory.open_timeout)
        except MessagingError as e:
          log.warning("unable to detach %s: %s", lnk, e)
    log.debug("SSN[%s]: closed", self.log_id)

class MessageProducer(Endpoint):

  """
  Sends messages to a destination. The delivery_mode, priority and ttl
  attributes supply the defaults of L{send}.
  """

  def __init__(self, session, destination):
    self.session = session
    self.destination = destination
    self.closed = False
    self._delivery_mode = DEFAULT_DELIVERY_MODE
    self._priority = DEFAULT_PRIORITY
    self._ttl = DEFAULT_TIME_TO_LIVE
    self._lock = session._lock

  def __repr__(self):
    return "MessageProducer(%r)" % (self.destination,)

  def _get_delivery_mode(self):
    return self._delivery_mode

  def _set_delivery_mode(self, mode):
    if mode not in DELIVERY_MODES:
      raise ValueError("unknown delivery mode: %r" % (mode,))
    self._delivery_mode = mode

  delivery_mode = property(_get_delivery_mode, _set_delivery_mode)

  def _get_priority(self):
    return self._priority

  def _set_priority(self, priority):
    if not isinstance(priority, int) or not 0 <= priority <= 9:
      raise ValueError("priority must be between 0 and 9: %r" % (priority,))
    self._priority = priority

  priority = property(_get_priority, _set_priority)

  def _get_ttl(self):
    return self._ttl

  def _set_ttl(self, ttl):
    if not isinstance(ttl, int) or ttl < 0:
      raise ValueError("ttl must be a non negative number of milliseconds: %r"
                       % (ttl,))
    self._ttl = ttl

  ttl = property(_get_ttl, _set_ttl)

  def check_error(self):
    self.session.check_error()

  def check_closed(self):
    if self.closed:
      raise ProducerClosed(text="producer closed")

  def send(self, destination_or_message, message=None, delivery_mode=None,
           priority=None, ttl=None):
    """
    Sends a message. A bound producer is called as send(message, ...),
    an unbound one as send(destination, message, ...). PERSISTENT
    messages are not reported as sent until the broker has accepted
    them.

    @type delivery_mode: Constant
    @param delivery_mode: PERSISTENT or NON_PERSISTENT
    @type priority: int
    @param priority: message priority, 0-9
    @type ttl: int
    @param ttl: time-to-live in milliseconds, 0 never expires
    """
    if message is None and (self.destination is not None or
                            isinstance(destination_or_message, Message)):
      destination = None
      message = destination_or_message
    else:
      destination = destination_or_message

    with self._lock:
      self.check_error()
      self.check_closed()
      if self.destination is None:
        if destination is None:
          raise UnresolvedDestination(text="unbound producer needs a "
                                      "destination")
      elif destination is not None:
        raise InvalidDestination(text="producer is bound to %s" %
                                 self.destination)
      else:
        destination = self.destination
      self.session._check(destination)
      if isinstance(destination, TemporaryQueue) and destination.local and \
            destination.connection is not self.session.connection:
        raise InvalidDestination(text="temporary queue %s belongs to another "
                                 "connection" % destination.name)
      if not isinstance(message, Message):
        raise MessageFormatError(text="not a message: %r" % (message,))
      if message.readonly:
        raise MessageNotWriteable(text="message has already been sent")

      mode = default(delivery_mode, self._delivery_mode)
      if mode not in DELIVERY_MODES:
        raise ValueError("unknown delivery mode: %r" % (mode,))
      priority = default(priority, self._priority)
      if not isinstance(priority, int) or not 0 <= priority <= 9:
        raise ValueError("priority must be between 0 and 9: %r" % (priority,))
      ttl = default(ttl, self._ttl)
      if not isinstance(ttl, int) or ttl < 0:
        raise ValueError("ttl must be a non negative number of milliseconds: "
                         "%r" % (ttl,))

      message.message_id = "ID:%s" % uuid4()
      message.timestamp = int(time.time()*1000)
      message.destination = destination
      message.delivery_mode = mode
      message.priority = priority
      message.ttl = ttl
      if ttl:
        message.expiration = message.timestamp + ttl
      else:
        message.expiration = 0
      message._freeze()
      log.debug("SENT[%s]: %s", self.session.log_id, message)

    sync = mode is PERSISTENT
    try:
      outcome = self.session.connection._transport.send(self, destination,
                                                        message, sync)
    except TransportFailed:
      # a close while the transfer was in flight wins over the failure
      with self._lock:
        self.session.connection.check_closed()
        self.session.check_closed()
        self.check_closed()
      raise
    if outcome is not ACCEPTED:
      raise BrokerRejected(text="message %s was %s by the broker" %
                           (message.message_id, outcome),
                           outcome=outcome)

  def close(self):
    """
    Closes the producer.
    """
    with self._lock:
      if self.closed:
        return
      self.closed = True
      if self in self.session.producers:
        self.session.producers.remove(self)
      unlink = self.session.connection.error is None
    if unlink:
      self.session.connection._transport.unlink(
        self, self.session.connection.factory.open_timeout)

class MessageConsumer(Endpoint):

  """
  Receives messages from a queue or topic, either synchronously
  through L{receive} or asynchronously through a message listener.
  """

  def __init__(self, session, destination, prefetch):
    self.session = session
    self.destination = destination
    self.prefetch = prefetch
    self.closed = False
    self.listener = None
    self._receiving = 0
    self._lock = session._lock

  def __repr__(self):
    return "MessageConsumer(%r)" % (self.destination,)

  def check_error(self):
    self.session.check_error()

  def check_closed(self):
    if self.closed:
      raise ConsumerClosed(text="consumer closed")

  @property
  def message_listener(self):
    return self.listener

  def _available(self):
    return self.session.connection.state is STARTED and \
        self.session._peek(self) is not None

  @synchronized
  def receive(self, timeout=None):
    """
    Receives the next message. A timeout of None blocks until a
    message arrives or the consumer is closed, a timeout of zero
    returns immediately.

    @type timeout: float
    @param timeout: seconds to wait for a message
    @rtype: Message
    @return: the next message, or None on timeout
    """
    self.check_error()
    self.check_closed()
    if self.listener is not None:
      raise IllegalMode(text="consumer has a message listener")
    driver = self.session.connection._driver
    if timeout != 0 and driver.in_pump() and \
          self.session._dispatching is not None:
      raise IllegalState(text="blocking receive from a listener of the "
                         "same session")
    self._receiving += 1
    try:
      ready = self.session._ewait(lambda: self.closed or self._available(),
                                  timeout)
    finally:
      self._receiving -= 1
    self.check_closed()
    if not ready:
      return None
    msg = self.session._pop(self)
    self.session.connection._transport.flow(self, 1)
    self.session.unacked.append(msg)
    log.debug("RETR[%s]: %s", self.session.log_id, msg)
    self.session._consumed(msg)
    return msg

  def receive_no_wait(self):
    """
    Returns the next message if one is available, None otherwise.
    """
    return self.receive(0)

  @synchronized
  def set_message_listener(self, listener):
    """
    Switches the consumer to asynchronous delivery. The listener is
    called on the delivery pump of the connection with each message.

    @type listener: callable taking a L{Message}
    """
    self.check_error()
    self.check_closed()
    if self._receiving:
      raise IllegalMode(text="a receive is pending on this consumer")
    self.listener = listener
    self.session._wakeup()

  def close(self):
    """
    Closes the consumer. Blocked receivers are woken with
    L{ConsumerClosed}, and a message listener in progress is allowed
    to return first.
    """
    ssn = self.session
    with self._lock:
      if self.closed:
        return
      self.closed = True
      ssn._wakeup()
      released = [m for m in ssn.incoming if m._consumer is self]
      for m in released:
        ssn.incoming.remove(m)
      unlink = ssn.connection.error is None
      if unlink:
        ssn._settle(released, RELEASED)
      if not ssn.connection._driver.in_pump():
        ssn._wait(lambda: ssn._dispatching is not self)
      if self in ssn.consumers:
        ssn.consumers.remove(self)
    if unlink:
      ssn.connection._transport.unlink(self,
                                       ssn.connection.factory.open_timeout)

__all__ = ["Connection", "ConnectionFactory", "Endpoint", "Session",
           "MessageProducer", "MessageConsumer"]
