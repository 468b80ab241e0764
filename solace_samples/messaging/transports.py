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

import concurrent.futures
from collections import deque
from logging import getLogger
from threading import Lock, Thread, current_thread

from proton import Data, Delivery, SSLDomain, Terminus
from proton.handlers import MessagingHandler
from proton.reactor import ApplicationEvent, Container, EventInjector, \
    LinkOption

from solace_samples.messaging import codec
from solace_samples.messaging.constants import *
from solace_samples.messaging.exceptions import *
from solace_samples.util import default

log = getLogger("solace_samples.messaging")
rawlog = getLogger("solace_samples.messaging.io.raw")
opslog = getLogger("solace_samples.messaging.io.ops")

TRANSPORTS = {}

class Transport(object):

  """
  Binds a L{Connection<solace_samples.messaging.endpoints.Connection>}
  to the wire.

  The connection never holds its lock while calling a method that takes
  a timeout; those block until the broker has answered. L{settle} never
  blocks. Incoming messages are handed to C{connection._received} and
  asynchronous failures to C{connection._failed}.
  """

  def __init__(self, connection):
    self.connection = connection

  def open(self, username=None, password=None, timeout=None):
    raise NotImplementedError()

  def close(self, timeout=None):
    raise NotImplementedError()

  def link_sender(self, producer, timeout=None):
    raise NotImplementedError()

  def link_receiver(self, consumer, timeout=None):
    raise NotImplementedError()

  def link_temporary(self, timeout=None):
    """
    Creates a broker named temporary queue and returns its address.
    """
    raise NotImplementedError()

  def delete_temporary(self, tmpq, timeout=None):
    raise NotImplementedError()

  def unlink(self, endpoint, timeout=None):
    raise NotImplementedError()

  def send(self, producer, destination, message, sync, timeout=None):
    """
    Transfers a message. When sync is true the call returns the
    outcome the broker settled the delivery with, otherwise it returns
    L{ACCEPTED} as soon as the delivery has been written.
    """
    raise NotImplementedError()

  def settle(self, message, outcome):
    raise NotImplementedError()

  def flow(self, consumer, n):
    """
    Grants the broker credit for n more deliveries to consumer. Called
    once for every message the application takes off the session, so
    no more than the prefetch window is ever buffered.
    """
    raise NotImplementedError()

UNAUTHORIZED = "amqp:unauthorized-access"
NOT_FOUND = "amqp:not-found"

def condition_text(condition, dflt=None):
  if condition is None:
    return dflt
  elif condition.description:
    return "%s: %s" % (condition.name, condition.description)
  else:
    return condition.name

class Capabilities(LinkOption):

  def __init__(self, *capabilities, source=False):
    self.capabilities = capabilities
    self.source = source

  def apply(self, link):
    if self.source:
      terminus = link.source
    else:
      terminus = link.target
    caps = terminus.capabilities
    caps.put_array(False, Data.SYMBOL)
    caps.enter()
    for c in self.capabilities:
      caps.put_symbol(c)
    caps.exit()

class DynamicTarget(LinkOption):

  def apply(self, link):
    link.target.dynamic = True
    link.target.expiry_policy = Terminus.EXPIRE_WITH_LINK

def _resolve(future, value):
  if not future.done():
    future.set_result(value)

def _fail(future, error):
  if not future.done():
    future.set_exception(error)

class amqp(Transport, MessagingHandler):

  """
  The python-qpid-proton binding. A private I/O thread runs the
  reactor; callers hand it work through an event injector and wait on
  futures that the reactor completes.
  """

  def __init__(self, connection):
    Transport.__init__(self, connection)
    MessagingHandler.__init__(self, prefetch=0, auto_accept=False)
    self.log_id = "%x" % id(connection)
    self.container = None
    self._injector = None
    self._thread = None
    self._conn = None
    self._opening = None
    self._closing = None
    self._stopping = False
    self._lost_error = None
    self._tasks = deque()
    self._tasks_lock = Lock()
    self._closed = False
    # link name -> future waiting for the peer's attach
    self._attaching = {}
    # (link name, delivery tag) -> future waiting for the outcome
    self._unsettled = {}
    self._senders = {}
    self._routes = {}
    # link name -> transfers held back until the route is attached
    self._held = {}
    self._receivers = {}
    self._consumer_links = {}
    self._temporaries = {}

  def _ssl_domain(self):
    return None

  def _result(self, future, timeout, what):
    try:
      return future.result(timeout)
    except concurrent.futures.TimeoutError:
      raise TransportFailed(text="%s timed out" % what)
    except KeyboardInterrupt:
      raise Interrupted(text="interrupted during %s" % what)

  def _submit(self, task, *args):
    future = concurrent.futures.Future()
    with self._tasks_lock:
      if self._closed:
        future.set_exception(TransportFailed(text="transport closed"))
        return future
      self._tasks.append((task, args, future))
      self._injector.trigger(ApplicationEvent("solace_task"))
    return future

  def on_solace_task(self, event):
    while self._tasks:
      task, args, future = self._tasks.popleft()
      if self._lost_error is not None and task != self._do_stop:
        _fail(future, TransportFailed(text=str(self._lost_error)))
        continue
      try:
        task(future, *args)
      except MessagingError as e:
        _fail(future, e)
      except Exception as e:
        log.exception("I/O task failed[%s]", self.log_id)
        _fail(future, InternalError(text=str(e)))

  def run(self):
    try:
      self.container.run()
    except Exception as e:
      log.exception("I/O thread failed[%s]", self.log_id)
      self._lost(TransportFailed(text=str(e)))
    opslog.debug("EXIT[%s]", self.log_id)

  ## operations

  def open(self, username=None, password=None, timeout=None):
    self.container = Container(self)
    if self.connection.client_id is not None:
      self.container.container_id = self.connection.client_id
    self._injector = EventInjector()
    self.container.selectable(self._injector)
    self._thread = Thread(target=self.run, name="solace-io-%s" % self.log_id)
    self._thread.daemon = True
    self._thread.start()
    future = self._submit(self._do_open, username, password)
    try:
      self._result(future, timeout, "open")
    except MessagingError:
      self._shutdown()
      raise

  def _do_open(self, future, username, password):
    factory = self.connection.factory
    if username:
      mechs = default(factory.sasl_mechanisms, "PLAIN")
    else:
      mechs = default(factory.sasl_mechanisms, "ANONYMOUS")
    self._opening = future
    opslog.debug("CONNECT[%s]: %s", self.log_id, factory.url.address())
    self._conn = self.container.connect(url=factory.url.address(),
                                        user=username, password=password,
                                        allowed_mechs=mechs,
                                        allow_insecure_mechs=True,
                                        heartbeat=factory.heartbeat,
                                        ssl_domain=self._ssl_domain(),
                                        reconnect=False, handler=self)

  def close(self, timeout=None):
    if self._thread is None:
      return
    if self._lost_error is None:
      try:
        self._result(self._submit(self._do_close), timeout, "close")
      except MessagingError as e:
        opslog.debug("CLOSE[%s]: %s", self.log_id, e)
    self._shutdown(timeout)

  def _do_close(self, future):
    self._stopping = True
    if self._conn is None:
      _resolve(future, None)
    else:
      self._closing = future
      self._conn.close()

  def _shutdown(self, timeout=None):
    with self._tasks_lock:
      if self._closed:
        return
      self._tasks.append((self._do_stop, (), concurrent.futures.Future()))
      self._injector.trigger(ApplicationEvent("solace_task"))
      self._closed = True
    self._injector.close()
    if current_thread() is not self._thread:
      self._thread.join(default(timeout, 10))
    self._fail_pending(TransportFailed(text="transport closed"))

  def _do_stop(self, future):
    self.container.stop()
    _resolve(future, None)

  def _fail_pending(self, error):
    pending = list(self._attaching.values()) + list(self._unsettled.values())
    for held in self._held.values():
      pending.extend([h[2] for h in held])
    self._attaching.clear()
    self._held.clear()
    self._unsettled.clear()
    for future in pending:
      _fail(future, error)

  def link_sender(self, producer, timeout=None):
    # unbound producers attach a link per destination on first use
    if producer.destination is not None:
      self._result(self._submit(self._do_link_sender, producer), timeout,
                   "attach")

  def _sender(self, destination):
    return self.container.create_sender(
      self._conn, destination.name,
      options=[Capabilities(destination.capability)])

  def _do_link_sender(self, future, producer):
    link = self._sender(producer.destination)
    opslog.debug("ATTACH[%s]: sender %s -> %s", self.log_id, link.name,
                 producer.destination)
    self._senders[producer] = link
    self._attaching[link.name] = future

  def link_receiver(self, consumer, timeout=None):
    self._result(self._submit(self._do_link_receiver, consumer), timeout,
                 "attach")

  def _do_link_receiver(self, future, consumer):
    dest = consumer.destination
    link = self.container.create_receiver(
      self._conn, dest.name,
      options=[Capabilities(dest.capability, source=True)])
    link.flow(consumer.prefetch)
    opslog.debug("ATTACH[%s]: receiver %s <- %s", self.log_id, link.name,
                 dest)
    self._receivers[link.name] = consumer
    self._consumer_links[consumer] = link
    self._attaching[link.name] = future

  def link_temporary(self, timeout=None):
    return self._result(self._submit(self._do_link_temporary), timeout,
                        "attach")

  def _do_link_temporary(self, future):
    link = self.container.create_sender(
      self._conn, None,
      options=[DynamicTarget(), Capabilities("temporary-queue")])
    opslog.debug("ATTACH[%s]: dynamic %s", self.log_id, link.name)
    self._attaching[link.name] = future

  def delete_temporary(self, tmpq, timeout=None):
    self._result(self._submit(self._do_delete_temporary, tmpq.name),
                 timeout, "detach")

  def _do_delete_temporary(self, future, name):
    link = self._temporaries.pop(name, None)
    if link is not None:
      opslog.debug("DETACH[%s]: dynamic %s", self.log_id, name)
      link.close()
    _resolve(future, None)

  def unlink(self, endpoint, timeout=None):
    self._result(self._submit(self._do_unlink, endpoint), timeout, "detach")

  def _do_unlink(self, future, endpoint):
    links = []
    link = self._consumer_links.pop(endpoint, None)
    if link is not None:
      self._receivers.pop(link.name, None)
      links.append(link)
    link = self._senders.pop(endpoint, None)
    if link is not None:
      links.append(link)
    for key in list(self._routes):
      if key[0] is endpoint:
        links.append(self._routes.pop(key))
    for link in links:
      opslog.debug("DETACH[%s]: %s", self.log_id, link.name)
      link.close()
    _resolve(future, None)

  def send(self, producer, destination, message, sync, timeout=None):
    amsg = codec.encode(message)
    rawlog.debug("SENT[%s]: %r", self.log_id, amsg)
    return self._result(self._submit(self._do_send, producer, destination,
                                     amsg, sync),
                        timeout, "send")

  def _do_send(self, future, producer, destination, amsg, sync):
    link = self._senders.get(producer)
    if link is None:
      key = (producer, destination)
      link = self._routes.get(key)
      if link is None:
        link = self._sender(destination)
        opslog.debug("ATTACH[%s]: sender %s -> %s", self.log_id, link.name,
                     destination)
        self._routes[key] = link
        self._held[link.name] = []
    if link.name in self._held:
      self._held[link.name].append((amsg, sync, future))
    else:
      self._transfer(link, amsg, sync, future)

  def _transfer(self, link, amsg, sync, future):
    dlv = link.send(amsg)
    if sync:
      self._unsettled[(link.name, dlv.tag)] = future
    else:
      dlv.settle()
      _resolve(future, ACCEPTED)

  def settle(self, message, outcome):
    if message._delivery is not None:
      self._submit(self._do_settle, message._delivery, outcome)

  def _do_settle(self, future, dlv, outcome):
    if outcome is ACCEPTED:
      dlv.update(Delivery.ACCEPTED)
    elif outcome is MODIFIED:
      dlv.local.failed = True
      dlv.update(Delivery.MODIFIED)
    elif outcome is REJECTED:
      dlv.update(Delivery.REJECTED)
    else:
      dlv.update(Delivery.RELEASED)
    dlv.settle()
    _resolve(future, None)

  def flow(self, consumer, n):
    self._submit(self._do_flow, consumer, n)

  def _do_flow(self, future, consumer, n):
    link = self._consumer_links.get(consumer)
    if link is not None:
      link.flow(n)
    _resolve(future, None)

  ## reactor events

  def on_connection_opened(self, event):
    opslog.debug("OPENED[%s]", self.log_id)
    if self._opening is not None:
      _resolve(self._opening, None)
      self._opening = None

  def on_connection_closed(self, event):
    opslog.debug("CLOSED[%s]", self.log_id)
    if self._closing is not None:
      _resolve(self._closing, None)
      self._closing = None

  def on_connection_error(self, event):
    text = condition_text(event.connection.remote_condition)
    event.connection.close()
    self._lost(ConnectionClosed(text="closed by broker: %s" % text))

  def on_connection_closing(self, event):
    self._lost(ConnectionClosed(text="closed by broker"))

  def on_session_error(self, event):
    text = condition_text(event.session.remote_condition)
    event.connection.close()
    self._lost(ConnectionClosed(text="session ended by broker: %s" % text))

  def on_transport_error(self, event):
    cond = event.transport.condition
    text = condition_text(cond, "transport error")
    if cond is not None and cond.name == UNAUTHORIZED:
      self._lost(AuthenticationFailed(text=text))
    else:
      self._lost(TransportFailed(text=text))

  def on_disconnected(self, event):
    self._lost(TransportFailed(text="connection to %s lost" %
                               self.connection.factory.url.address()))

  def _lost(self, error):
    if self._opening is not None:
      _fail(self._opening, error)
      self._opening = None
      self._lost_error = error
      return
    if self._stopping:
      if self._closing is not None:
        _resolve(self._closing, None)
        self._closing = None
      return
    if self._lost_error is not None or self._closed:
      return
    self._lost_error = error
    opslog.debug("LOST[%s]: %s", self.log_id, error)
    self._fail_pending(TransportFailed(text=str(error)))
    self.connection._failed(error)

  def on_link_opened(self, event):
    link = event.link
    if link.name in self._held and link.remote_target.address is not None:
      opslog.debug("ATTACHED[%s]: %s %s", self.log_id, link.name,
                   link.remote_target.address)
      for amsg, sync, future in self._held.pop(link.name):
        self._transfer(link, amsg, sync, future)
      return
    future = self._attaching.get(link.name)
    if future is None:
      return
    if link.is_sender:
      address = link.remote_target.address
    else:
      address = link.remote_source.address
    if address is None:
      # refused; the detach carrying the error follows
      return
    del self._attaching[link.name]
    opslog.debug("ATTACHED[%s]: %s %s", self.log_id, link.name, address)
    if link.is_sender and link.target.dynamic:
      self._temporaries[address] = link
      _resolve(future, address)
    else:
      _resolve(future, None)

  def on_link_error(self, event):
    link = event.link
    text = condition_text(link.remote_condition)
    self._detached(link, InvalidDestination(text=text))
    link.close()

  def on_link_closing(self, event):
    self._detached(event.link, InvalidDestination(text="link detached by broker"))

  def _detached(self, link, error):
    future = self._attaching.pop(link.name, None)
    if future is not None:
      _fail(future, error)
    else:
      log.warning("link %s detached[%s]: %s", link.name, self.log_id, error)
    for key in list(self._unsettled):
      if key[0] == link.name:
        _fail(self._unsettled.pop(key), error)
    for amsg, sync, held in self._held.pop(link.name, ()):
      _fail(held, error)
    for key, route in list(self._routes.items()):
      if route is link:
        del self._routes[key]

  def on_accepted(self, event):
    self._outcome(event.delivery, ACCEPTED)

  def on_rejected(self, event):
    self._outcome(event.delivery, REJECTED)

  def on_released(self, event):
    if event.delivery.remote_state == Delivery.MODIFIED:
      self._outcome(event.delivery, MODIFIED)
    else:
      self._outcome(event.delivery, RELEASED)

  def _outcome(self, dlv, outcome):
    future = self._unsettled.pop((dlv.link.name, dlv.tag), None)
    if future is not None:
      opslog.debug("SETTLED[%s]: %s %s", self.log_id, dlv.tag, outcome)
      _resolve(future, outcome)

  def on_message(self, event):
    link = event.receiver
    dlv = event.delivery
    consumer = self._receivers.get(link.name)
    if consumer is None:
      dlv.update(Delivery.RELEASED)
      dlv.settle()
      return
    rawlog.debug("RCVD[%s]: %r", self.log_id, event.message)
    try:
      msg = codec.decode(event.message, self.connection._temporary)
    except MessageFormatError as e:
      log.warning("rejecting message on %s: %s", consumer.destination, e)
      dlv.update(Delivery.REJECTED)
      dlv.settle()
      link.flow(1)
      return
    msg._delivery = dlv
    if not self.connection._received(consumer, msg):
      dlv.update(Delivery.RELEASED)
      dlv.settle()

TRANSPORTS["amqp"] = amqp

class amqps(amqp):

  def _ssl_domain(self):
    factory = self.connection.factory
    domain = SSLDomain(SSLDomain.MODE_CLIENT)
    if factory.ssl_trustfile:
      domain.set_trusted_ca_db(factory.ssl_trustfile)
      if factory.ssl_skip_hostname_check:
        domain.set_peer_authentication(SSLDomain.VERIFY_PEER,
                                       factory.ssl_trustfile)
      else:
        domain.set_peer_authentication(SSLDomain.VERIFY_PEER_NAME,
                                       factory.ssl_trustfile)
    else:
      domain.set_peer_authentication(SSLDomain.ANONYMOUS_PEER)
    if factory.ssl_certfile:
      domain.set_credentials(factory.ssl_certfile,
                             default(factory.ssl_keyfile,
                                     factory.ssl_certfile),
                             None)
    return domain

TRANSPORTS["amqps"] = amqps
