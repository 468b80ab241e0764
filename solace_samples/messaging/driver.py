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

from logging import getLogger
from threading import Thread, current_thread

from solace_samples.messaging.constants import *

log = getLogger("solace_samples.messaging")

class Driver:

  """
  The delivery pump of a connection. A single thread runs every
  message listener and the exception listener of the connection, so
  at most one listener of any session is in progress at a time.
  """

  def __init__(self, connection):
    self.connection = connection
    self.log_id = "%x" % id(connection)
    self._lock = connection._lock
    self._thread = None
    self._stopping = False
    self._error = None

  def start(self):
    self._thread = Thread(target=self.run, name="solace-pump-%s" % self.log_id)
    self._thread.daemon = True
    self._thread.start()

  def in_pump(self):
    return self._thread is not None and current_thread() is self._thread

  def failed(self, error):
    """
    Schedules delivery of error to the exception listener. Must be
    called with the connection lock held.
    """
    self._error = error
    self.connection._wakeup()

  def stop(self, timeout=None):
    with self._lock:
      self._stopping = True
      self.connection._wakeup()
    if self._thread is not None and not self.in_pump():
      self._thread.join(timeout)

  def _next(self):
    if self.connection.state is not STARTED:
      return None
    for ssn in self.connection.sessions:
      if ssn.closed:
        continue
      for msg in ssn.incoming:
        rcv = msg._consumer
        if rcv.listener is not None and not rcv.closed:
          return ssn, msg
    return None

  def _ready(self):
    return self._stopping or self._error is not None or \
        self._next() is not None

  def run(self):
    while True:
      with self._lock:
        self.connection._waiter.wait(self._ready)
        if self._error is not None:
          error = self._error
          self._error = None
          listener = self.connection.exception_listener
          task = None
        elif self._stopping:
          log.debug("PUMP[%s]: stopped", self.log_id)
          return
        else:
          ssn, msg = self._next()
          ssn.incoming.remove(msg)
          self.connection._transport.flow(msg._consumer, 1)
          ssn.unacked.append(msg)
          ssn._dispatching = msg._consumer
          listener = msg._consumer.listener
          task = msg
      if task is None:
        self.notify(listener, error)
      else:
        self.dispatch(ssn, listener, task)

  def notify(self, listener, error):
    if listener is None:
      log.debug("PUMP[%s]: no exception listener for %s", self.log_id, error)
      return
    try:
      listener(error)
    except Exception:
      log.exception("exception listener failed")

  def dispatch(self, ssn, listener, msg):
    log.debug("DISP[%s]: %s", ssn.log_id, msg)
    try:
      listener(msg)
      ok = True
    except Exception:
      log.exception("message listener failed on %s", msg._consumer.destination)
      ok = False
    with self._lock:
      ssn._dispatching = None
      if not ssn.closed and msg in ssn.unacked:
        if ok:
          ssn._consumed(msg)
        elif ssn.ack_mode is not CLIENT_ACKNOWLEDGE:
          ssn.unacked.remove(msg)
          ssn._settle([msg], MODIFIED)
      self.connection._wakeup()

__all__ = ["Driver"]
