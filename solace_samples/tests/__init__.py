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

import time
import unittest
from unittest import mock
from uuid import uuid4

from solace_samples.messaging import *
from solace_samples.messaging.transports import TRANSPORTS
from solace_samples.tests.broker import Broker

BROKER_URL = "amqp://localhost:5672"

class Base(unittest.TestCase):

  """
  Runs each test against a fresh loopback broker. Subclasses override
  the setup_* hooks to get a connection, session, producer and
  consumer prepared for them.
  """

  users = None

  def setup_connection(self):
    return None

  def setup_session(self):
    return None

  def setup_sender(self):
    return None

  def setup_receiver(self):
    return None

  def setUp(self):
    self.test_id = uuid4()
    self.broker = Broker(self.users)
    self.broker.start()
    patcher = mock.patch.dict(TRANSPORTS, {"amqp": self.broker.transport,
                                           "amqps": self.broker.transport})
    patcher.start()
    self.addCleanup(patcher.stop)
    self.connections = []
    self.conn = self.setup_connection()
    self.ssn = self.setup_session()
    self.snd = self.setup_sender()
    self.rcv = self.setup_receiver()

  def tearDown(self):
    for conn in self.connections:
      conn.close(timeout=self.timeout())
    self.broker.stop()

  def factory(self, **kwargs):
    return ConnectionFactory(BROKER_URL, **kwargs)

  def connect(self, **kwargs):
    conn = self.factory(**kwargs).create_connection()
    self.connections.append(conn)
    return conn

  def content(self, base, count=None):
    if count is None:
      return "%s[%s]" % (base, self.test_id)
    else:
      return "%s[%s, %s]" % (base, count, self.test_id)

  def queue(self, name="test-queue"):
    return Queue("%s-%s" % (name, self.test_id))

  def drain(self, rcv, limit=None, timeout=0.5):
    messages = []
    while limit is None or len(messages) < limit:
      msg = rcv.receive(timeout)
      if msg is None:
        break
      messages.append(msg)
    return messages

  def texts(self, messages):
    return [m.text for m in messages]

  def assertEmpty(self, rcv):
    contents = self.drain(rcv, timeout=0.1)
    assert len(contents) == 0, "%s is supposed to be empty: %s" % \
        (rcv, contents)

  def wait_for(self, predicate, timeout=None):
    deadline = time.monotonic() + (timeout or self.timeout())
    while not predicate():
      if time.monotonic() > deadline:
        self.fail("timed out waiting for %s" % predicate)
      time.sleep(0.01)

  def timeout(self):
    return 10
