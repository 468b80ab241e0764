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

import pickle
import time
import unittest
from threading import Event, Lock, Thread
from uuid import uuid4

from solace_samples.messaging import *
from solace_samples.tests import Base

class FactoryTests(unittest.TestCase):

  def testDefaults(self):
    factory = ConnectionFactory("amqp://localhost")
    assert factory.transport == "amqp"
    assert factory.url.port == AMQP_PORT
    assert factory.username is None
    assert factory.prefetch == DEFAULT_PREFETCH
    assert factory.open_timeout == DEFAULT_OPEN_TIMEOUT
    assert factory.heartbeat is None

  def testSecurePort(self):
    factory = ConnectionFactory("amqps://broker")
    assert factory.transport == "amqps"
    assert factory.url.port == AMQPS_PORT

  def testUrlOptions(self):
    factory = ConnectionFactory("amqp://localhost:5672?amqp.idleTimeout=120000"
                                "&jms.username=bob&jms.password=pw"
                                "&jms.clientID=client-1")
    assert factory.heartbeat == 120
    assert factory.username == "bob"
    assert factory.client_id == "client-1"
    assert str(factory.url) == "amqp://localhost:5672"

  def testUnknownUrlOption(self):
    with self.assertLogs("solace_samples.messaging", "WARNING") as cm:
      ConnectionFactory("amqp://localhost:5672?bogus=1")
    assert "bogus" in cm.output[0]

  def testKeywordCredentialsWin(self):
    factory = ConnectionFactory("amqp://alice/one@localhost", username="bob",
                                password="two")
    assert factory.username == "bob"
    assert factory._password == "two"

  def testUnknownOption(self):
    self.assertRaises(ConnectionError, ConnectionFactory, "amqp://localhost",
                      bogus=True)

  def testBadPrefetch(self):
    self.assertRaises(ValueError, ConnectionFactory, "amqp://localhost",
                      prefetch=0)

  def testCredentialsHidden(self):
    factory = ConnectionFactory("amqp://localhost:5672", username="user",
                                password="s3cret")
    assert "s3cret" not in repr(factory)
    assert "s3cret" not in str(factory.url)
    self.assertRaises(TypeError, pickle.dumps, factory)

  def testImmutable(self):
    factory = ConnectionFactory("amqp://localhost:5672")
    self.assertRaises(AttributeError, setattr, factory, "username", "x")
    self.assertRaises(AttributeError, delattr, factory, "url")

class AuthenticationTests(Base):

  users = {"clientUsername": "Tr0ub4dor"}

  def testAuthenticated(self):
    conn = self.connect(username="clientUsername", password="Tr0ub4dor")
    assert conn.state is CREATED
    assert self.broker.opened == 1

  def testBadPassword(self):
    factory = self.factory(username="clientUsername", password="wrong")
    self.assertRaises(AuthenticationFailed, factory.create_connection)
    assert self.broker.opened == 0

  def testAnonymousRefused(self):
    self.assertRaises(AuthenticationFailed, self.factory().create_connection)

  def testOverrideCredentials(self):
    factory = self.factory(username="nobody", password="nothing")
    conn = factory.create_connection("clientUsername", "Tr0ub4dor")
    self.connections.append(conn)
    assert self.broker.opened == 1

  def testCredentialsNotLogged(self):
    with self.assertLogs("solace_samples", "DEBUG") as cm:
      conn = self.connect(username="clientUsername", password="Tr0ub4dor")
      conn.close()
    for line in cm.output:
      assert "Tr0ub4dor" not in line, line

class ConnectionTests(Base):

  def testRefused(self):
    self.broker.stopped = True
    self.assertRaises(TransportFailed, self.factory().create_connection)

  def testNoSuchTransport(self):
    factory = self.factory(transport="carrier-pigeon")
    self.assertRaises(ConnectError, factory.create_connection)

  def testStates(self):
    conn = self.connect()
    assert conn.state is CREATED
    conn.start()
    assert conn.state is STARTED
    conn.stop()
    assert conn.state is STOPPED
    conn.start()
    assert conn.state is STARTED
    conn.close()
    assert conn.state is CLOSED
    assert conn.closed

  def testCloseIdempotent(self):
    conn = self.connect()
    conn.close()
    conn.close()

  def testClosedConnection(self):
    conn = self.connect()
    conn.close()
    self.assertRaises(ConnectionClosed, conn.create_session)
    self.assertRaises(ConnectionClosed, conn.start)
    self.assertRaises(ConnectionClosed, conn.set_exception_listener, None)

  def testTransacted(self):
    conn = self.connect()
    self.assertRaises(NontransactionalSession, conn.create_session, True)
    ssn = conn.create_session()
    self.assertRaises(NontransactionalSession, ssn.commit)
    self.assertRaises(NontransactionalSession, ssn.rollback)

  def testUnknownAckMode(self):
    conn = self.connect()
    self.assertRaises(SessionError, conn.create_session, False, "sometimes")

  def testContextManager(self):
    with self.factory().create_connection() as conn:
      with conn.create_session() as ssn:
        pass
    assert ssn.closed
    assert conn.closed

class SessionBase(Base):

  ack_mode = AUTO_ACKNOWLEDGE

  def setup_connection(self):
    conn = self.connect()
    conn.start()
    return conn

  def setup_session(self):
    return self.conn.create_session(False, self.ack_mode)

  def setup_sender(self):
    self.q = self.queue()
    return self.ssn.create_producer(self.q)

  def setup_receiver(self):
    return self.ssn.create_consumer(self.q)

  def send(self, base, count=None, **kwargs):
    content = self.content(base, count)
    self.snd.send(self.ssn.create_text_message(content), **kwargs)
    return content

  def send_all(self, base, count):
    return [self.send(base, i) for i in range(count)]

  def peer(self, ack_mode=AUTO_ACKNOWLEDGE):
    conn = self.connect()
    conn.start()
    ssn = conn.create_session(False, ack_mode)
    return ssn, ssn.create_consumer(self.q)

class SendReceiveTests(SessionBase):

  def testQueueSendReceive(self):
    self.snd.send(self.ssn.create_text_message("Message with String Data"),
                  delivery_mode=PERSISTENT)
    msg = self.rcv.receive(self.timeout())
    assert isinstance(msg, TextMessage)
    assert msg.text == "Message with String Data"
    assert msg.destination == self.q
    assert msg.delivery_mode is PERSISTENT
    assert not msg.redelivered

  def testTextRoundTrip(self):
    for text in ["", "plain", "éèà", "中文", "emoji \U0001f680",
                 "multi\nline\ttext"]:
      self.snd.send(self.ssn.create_text_message(text))
      msg = self.rcv.receive(self.timeout())
      assert msg.text == text, (msg.text, text)

  def testOrder(self):
    contents = self.send_all("order", 20)
    assert self.texts(self.drain(self.rcv, 20)) == contents

  def testHeaderRoundTrip(self):
    reply = self.queue("replies")
    msg = self.ssn.create_text_message("request")
    msg.reply_to = reply
    msg.correlation_id = "corr-1"
    msg.properties["origin"] = "test"
    self.snd.send(msg)
    echo = self.rcv.receive(self.timeout())
    assert echo.reply_to == reply
    assert echo.correlation_id == "corr-1"
    assert echo.properties == {"origin": "test"}
    assert echo.message_id == msg.message_id

  def testSendStampsHeaders(self):
    msg = self.ssn.create_text_message("stamped")
    before = int(time.time()*1000)
    self.snd.send(msg, priority=6, ttl=60000)
    assert msg.message_id.startswith("ID:")
    assert msg.destination == self.q
    assert msg.timestamp >= before
    assert msg.expiration == msg.timestamp + 60000
    echo = self.rcv.receive(self.timeout())
    assert echo.priority == 6
    assert echo.ttl == 60000
    assert echo.expiration == msg.expiration

  def testNeverExpires(self):
    msg = self.ssn.create_text_message("forever")
    self.snd.send(msg, ttl=0)
    assert msg.expiration == 0
    echo = self.rcv.receive(self.timeout())
    assert echo.ttl == 0
    assert echo.expiration == 0

  def testBodies(self):
    self.snd.send(self.ssn.create_bytes_message(b"\x01\x02"))
    self.snd.send(self.ssn.create_map_message({"k": "v"}))
    self.snd.send(self.ssn.create_message())
    b, m, p = self.drain(self.rcv, 3)
    assert isinstance(b, BytesMessage) and b.data == b"\x01\x02"
    assert isinstance(m, MapMessage) and m.map == {"k": "v"}
    assert p.__class__ is Message

  def testReceiveTimeout(self):
    start = time.monotonic()
    assert self.rcv.receive(0.2) is None
    assert time.monotonic() - start >= 0.2
    # still usable after a timeout
    content = self.send("after-timeout")
    assert self.rcv.receive(self.timeout()).text == content

  def testReceiveNoWait(self):
    assert self.rcv.receive_no_wait() is None
    assert self.rcv.receive(0) is None
    content = self.send("nowait")
    self.wait_for(lambda: self.ssn._peek(self.rcv) is not None)
    assert self.rcv.receive(0).text == content

  def testStoppedConnection(self):
    self.conn.stop()
    content = self.send("stopped")
    assert self.rcv.receive(0.2) is None
    self.conn.start()
    assert self.rcv.receive(self.timeout()).text == content

  def testCreatedConnectionHoldsDelivery(self):
    self.rcv.close()
    conn = self.connect()
    ssn = conn.create_session()
    rcv = ssn.create_consumer(self.q)
    content = self.send("held")
    assert rcv.receive(0.2) is None
    conn.start()
    assert rcv.receive(self.timeout()).text == content

  def testResendFrozen(self):
    msg = self.ssn.create_text_message("once")
    self.snd.send(msg)
    self.assertRaises(MessageNotWriteable, self.snd.send, msg)
    received = self.rcv.receive(self.timeout())
    self.assertRaises(MessageNotWriteable, self.snd.send, received)

  def testNotAMessage(self):
    self.assertRaises(MessageFormatError, self.snd.send, "just a string")

  def testProducerDefaults(self):
    assert self.snd.delivery_mode is PERSISTENT
    assert self.snd.priority == 4
    assert self.snd.ttl == 0
    self.snd.delivery_mode = NON_PERSISTENT
    self.send("defaults")
    assert self.rcv.receive(self.timeout()).delivery_mode is NON_PERSISTENT

  def testProducerValidation(self):
    self.assertRaises(ValueError, setattr, self.snd, "priority", 10)
    self.assertRaises(ValueError, setattr, self.snd, "priority", -1)
    self.assertRaises(ValueError, setattr, self.snd, "ttl", -5)
    self.assertRaises(ValueError, setattr, self.snd, "delivery_mode", "fast")
    msg = self.ssn.create_text_message("invalid")
    self.assertRaises(ValueError, self.snd.send, msg, priority=12)
    # a refused send leaves the message writeable
    assert not msg.readonly

  def testBoundProducerRejectsDestination(self):
    msg = self.ssn.create_text_message("bound")
    self.assertRaises(InvalidDestination, self.snd.send, self.queue("other"),
                      msg)

  def testUnboundProducer(self):
    snd = self.ssn.create_producer(None)
    self.assertRaises(UnresolvedDestination, snd.send,
                      self.ssn.create_text_message("nowhere"))
    self.assertRaises(UnresolvedDestination, snd.send, None,
                      self.ssn.create_text_message("nowhere"))
    content = self.content("unbound")
    snd.send(self.q, self.ssn.create_text_message(content))
    assert self.rcv.receive(self.timeout()).text == content

  def testBrokerRejected(self):
    self.broker.rejecting.add(self.q.name)
    msg = self.ssn.create_text_message("unwanted")
    try:
      self.snd.send(msg, delivery_mode=PERSISTENT)
      assert False, "send was not rejected"
    except BrokerRejected as e:
      assert e.info["outcome"] is REJECTED
    # non persistent sends are not confirmed
    self.snd.send(self.ssn.create_text_message("unconfirmed"),
                  delivery_mode=NON_PERSISTENT)

  def testCompetingConsumers(self):
    ssn, rcv = self.peer()
    contents = self.send_all("competing", 10)
    got = self.drain(self.rcv) + self.drain(rcv)
    assert sorted(self.texts(got)) == sorted(contents)

class TopicTests(SessionBase):

  def setup_sender(self):
    self.topic = Topic("T/GettingStarted/pubsub/%s" % self.test_id)
    return self.ssn.create_producer(None)

  def setup_receiver(self):
    return self.ssn.create_consumer(self.topic)

  def testFanOut(self):
    ssn = self.conn.create_session()
    other = ssn.create_consumer(self.topic)
    content = self.content("fan-out")
    self.snd.send(self.topic, self.ssn.create_text_message(content),
                  delivery_mode=NON_PERSISTENT)
    assert self.rcv.receive(self.timeout()).text == content
    assert other.receive(self.timeout()).text == content

  def testNoSubscriber(self):
    self.rcv.close()
    self.snd.send(self.topic, self.ssn.create_text_message("lost"))
    rcv = self.ssn.create_consumer(self.topic)
    self.assertEmpty(rcv)

  def testPubSubListener(self):
    received = []
    fired = Event()
    def listener(msg):
      received.append(msg)
      fired.set()
    self.rcv.set_message_listener(listener)
    self.snd.send(self.topic, self.ssn.create_text_message("Hello world!"),
                  delivery_mode=NON_PERSISTENT)
    assert fired.wait(self.timeout())
    time.sleep(0.2)
    assert len(received) == 1
    assert received[0].text == "Hello world!"
    assert received[0].destination == self.topic

class AcknowledgeTests(SessionBase):

  def unsettled(self):
    return len(self.conn._transport.unsettled)

  def testAutoAcknowledge(self):
    self.send("auto")
    self.rcv.receive(self.timeout())
    assert self.unsettled() == 0
    assert self.broker.depth(self.q.name) == 0

  def testCloseRedeliversPrefetched(self):
    contents = self.send_all("prefetched", 3)
    self.wait_for(lambda: len(self.ssn.incoming) == 3)
    self.ssn.close()
    ssn, rcv = self.peer()
    msgs = self.drain(rcv, 3)
    assert self.texts(msgs) == contents
    # released, never handed to the application
    assert not any(m.redelivered for m in msgs)

  def testListenerErrorRedelivers(self):
    calls = []
    done = Event()
    def listener(msg):
      calls.append(msg)
      if len(calls) == 1:
        raise RuntimeError("listener bug")
      done.set()
    content = self.send("listener-error")
    with self.assertLogs("solace_samples.messaging", "ERROR"):
      self.rcv.set_message_listener(listener)
      assert done.wait(self.timeout())
    assert [m.text for m in calls] == [content, content]
    assert not calls[0].redelivered
    assert calls[1].redelivered

  def testSessionCloseDuringListener(self):
    entered = Event()
    release = Event()
    def listener(msg):
      entered.set()
      release.wait(self.timeout())
    content = self.send("interrupted")
    self.rcv.set_message_listener(listener)
    assert entered.wait(self.timeout())
    closer = Thread(target=self.ssn.close)
    closer.start()
    time.sleep(0.1)
    # close waits for the listener in progress
    assert closer.is_alive()
    release.set()
    closer.join(self.timeout())
    assert not closer.is_alive()
    ssn, rcv = self.peer()
    msg = rcv.receive(self.timeout())
    assert msg.text == content
    assert msg.redelivered

class ClientAcknowledgeTests(SessionBase):

  ack_mode = CLIENT_ACKNOWLEDGE

  def testCumulative(self):
    contents = self.send_all("client", 3)
    msgs = self.drain(self.rcv, 3)
    assert self.texts(msgs) == contents
    msgs[1].acknowledge()
    assert self.ssn.unacked == [msgs[2]]
    self.ssn.close()
    ssn, rcv = self.peer()
    redelivered = self.drain(rcv)
    assert self.texts(redelivered) == contents[2:]
    assert redelivered[0].redelivered

  def testAcknowledgeTwice(self):
    self.send("twice")
    msg = self.rcv.receive(self.timeout())
    msg.acknowledge()
    msg.acknowledge()
    assert self.ssn.unacked == []

  def testListenerMessagesWaitForAcknowledge(self):
    got = []
    done = Event()
    def listener(msg):
      got.append(msg)
      done.set()
    self.send("listener")
    self.rcv.set_message_listener(listener)
    assert done.wait(self.timeout())
    self.wait_for(lambda: self.ssn._dispatching is None)
    assert self.ssn.unacked == got
    got[0].acknowledge()
    assert self.ssn.unacked == []

  def testAcknowledgeAfterClose(self):
    self.send("late")
    msg = self.rcv.receive(self.timeout())
    self.ssn.close()
    self.assertRaises(SessionClosed, msg.acknowledge)

class DupsOkTests(SessionBase):

  ack_mode = DUPS_OK_ACKNOWLEDGE

  def testBatch(self):
    self.send_all("dups", DUPS_OK_BATCH)
    for i in range(DUPS_OK_BATCH - 1):
      assert self.rcv.receive(self.timeout()) is not None
    assert len(self.ssn.batch) == DUPS_OK_BATCH - 1
    assert len(self.conn._transport.unsettled) >= DUPS_OK_BATCH - 1
    self.rcv.receive(self.timeout())
    assert self.ssn.batch == []
    assert len(self.conn._transport.unsettled) == 0

  def testCloseSettlesBatch(self):
    self.send_all("dups-close", 3)
    self.drain(self.rcv, 3)
    self.ssn.close()
    assert len(self.conn._transport.unsettled) == 0
    ssn, rcv = self.peer()
    self.assertEmpty(rcv)

class PrefetchTests(SessionBase):

  def setup_receiver(self):
    return self.ssn.create_consumer(self.q, prefetch=3)

  def depth(self):
    return self.broker.depth(self.q.name)

  def testWindow(self):
    contents = self.send_all("window", 10)
    self.wait_for(lambda: len(self.ssn.incoming) == 3)
    time.sleep(0.2)
    assert len(self.ssn.incoming) == 3
    assert self.depth() == 7
    assert self.rcv.receive(self.timeout()).text == contents[0]
    self.wait_for(lambda: self.depth() == 6)
    assert len(self.ssn.incoming) <= 3
    assert self.texts(self.drain(self.rcv, 9)) == contents[1:]

  def testStoppedConnectionLeavesRest(self):
    self.conn.stop()
    contents = self.send_all("stopped", 10)
    self.wait_for(lambda: len(self.ssn.incoming) == 3)
    ssn, rcv = self.peer()
    assert self.texts(self.drain(rcv, 7)) == contents[3:]
    assert len(self.ssn.incoming) == 3

  def testListenerWindow(self):
    release = Event()
    got = []
    def listener(msg):
      got.append(msg.text)
      release.wait(self.timeout())
    self.rcv.set_message_listener(listener)
    contents = self.send_all("listener-window", 10)
    # one message in the listener, three waiting behind it
    self.wait_for(lambda: self.depth() == 6 and len(self.ssn.incoming) == 3)
    time.sleep(0.2)
    assert self.depth() == 6
    release.set()
    self.wait_for(lambda: len(got) == 10)
    assert got == contents

class ListenerTests(SessionBase):

  def testIllegalMode(self):
    self.rcv.set_message_listener(lambda m: None)
    self.assertRaises(IllegalMode, self.rcv.receive, 0)
    self.assertRaises(IllegalMode, self.rcv.receive_no_wait)

  def testListenerWhileReceiving(self):
    t = Thread(target=self.drain, args=(self.rcv, 1, 1))
    t.start()
    self.wait_for(lambda: self.rcv._receiving)
    self.assertRaises(IllegalMode, self.rcv.set_message_listener,
                      lambda m: None)
    t.join()

  def testReplaceListener(self):
    first = []
    second = Event()
    self.rcv.set_message_listener(first.append)
    self.rcv.set_message_listener(lambda m: second.set())
    assert self.rcv.message_listener is not None
    self.send("replaced")
    assert second.wait(self.timeout())
    assert first == []

  def testOrder(self):
    got = []
    done = Event()
    def listener(msg):
      got.append(msg.text)
      if len(got) == 10:
        done.set()
    contents = self.send_all("listener-order", 10)
    self.rcv.set_message_listener(listener)
    assert done.wait(self.timeout())
    assert got == contents

  def testOneListenerPerSession(self):
    other = self.ssn.create_consumer(self.queue("second"))
    snd = self.ssn.create_producer(other.destination)
    lock = Lock()
    active = []
    overlap = []
    count = []
    done = Event()
    def listener(msg):
      with lock:
        active.append(msg)
        if len(active) > 1:
          overlap.append(msg)
      time.sleep(0.02)
      with lock:
        active.remove(msg)
        count.append(msg)
        if len(count) == 10:
          done.set()
    self.rcv.set_message_listener(listener)
    other.set_message_listener(listener)
    for i in range(5):
      self.send("one", i)
      snd.send(self.ssn.create_text_message(self.content("two", i)))
    assert done.wait(self.timeout())
    assert overlap == []

  def testReceiveFromListener(self):
    other = self.ssn.create_consumer(self.queue("other"))
    errors = []
    done = Event()
    def listener(msg):
      try:
        other.receive(1)
      except IllegalState as e:
        errors.append(e)
      # a non blocking receive is fine
      other.receive_no_wait()
      done.set()
    self.rcv.set_message_listener(listener)
    self.send("reentrant")
    assert done.wait(self.timeout())
    assert len(errors) == 1

  def testStopWaitsForListener(self):
    entered = Event()
    finished = Event()
    def listener(msg):
      entered.set()
      time.sleep(0.3)
      finished.set()
    self.rcv.set_message_listener(listener)
    self.send("stop")
    assert entered.wait(self.timeout())
    self.conn.stop()
    assert finished.is_set()
    assert self.conn.state is STOPPED

  def testStopFromListener(self):
    errors = []
    done = Event()
    def listener(msg):
      try:
        self.conn.stop()
      except IllegalState as e:
        errors.append(e)
      done.set()
    self.rcv.set_message_listener(listener)
    self.send("stop-from-listener")
    assert done.wait(self.timeout())
    assert len(errors) == 1

  def testStoppedListener(self):
    got = Event()
    self.conn.stop()
    self.rcv.set_message_listener(lambda m: got.set())
    self.send("stopped")
    assert not got.wait(0.3)
    self.conn.start()
    assert got.wait(self.timeout())

class CloseTests(SessionBase):

  def blocked_receive(self, rcv):
    result = []
    def run():
      try:
        result.append(rcv.receive())
      except MessagingError as e:
        result.append(e)
    t = Thread(target=run)
    t.start()
    self.wait_for(lambda: rcv._receiving)
    return t, result

  def testConsumerCloseWakesReceive(self):
    t, result = self.blocked_receive(self.rcv)
    self.rcv.close()
    t.join(self.timeout())
    assert isinstance(result[0], ConsumerClosed), result

  def testConnectionCloseWakesReceive(self):
    t, result = self.blocked_receive(self.rcv)
    self.conn.close()
    t.join(self.timeout())
    assert not t.is_alive()
    assert isinstance(result[0], ConsumerClosed), result

  def blocked_send(self):
    self.broker.holding.add(self.q.name)
    result = []
    def run():
      try:
        self.snd.send(TextMessage("held"), delivery_mode=PERSISTENT)
        result.append(None)
      except MessagingError as e:
        result.append(e)
    t = Thread(target=run)
    t.start()
    self.wait_for(lambda: self.broker.held)
    return t, result

  def testConnectionCloseWakesSend(self):
    t, result = self.blocked_send()
    assert t.is_alive()
    self.conn.close()
    t.join(self.timeout())
    assert not t.is_alive()
    assert isinstance(result[0], ConnectionClosed), result

  def testConsumerCloseReleases(self):
    contents = self.send_all("released", 3)
    self.wait_for(lambda: len(self.ssn.incoming) == 3)
    self.rcv.close()
    ssn, rcv = self.peer()
    assert self.texts(self.drain(rcv, 3)) == contents

  def testOrderlyShutdown(self):
    self.send("shutdown")
    self.snd.close()
    self.ssn.close()
    self.conn.close()
    self.assertRaises(ProducerClosed, self.snd.send, TextMessage("after"))
    self.assertRaises(SessionClosed, self.ssn.create_producer, self.q)
    self.assertRaises(SessionClosed, self.ssn.create_text_message, "x")
    self.assertRaises(ConsumerClosed, self.rcv.receive, 0)
    self.assertRaises(ConnectionClosed, self.conn.create_session)

  def testSessionCloseCascades(self):
    self.ssn.close()
    assert self.snd.closed and self.rcv.closed
    self.assertRaises(ProducerClosed, self.snd.send, TextMessage("x"))
    self.assertRaises(ConsumerClosed, self.rcv.receive_no_wait)
    assert self.ssn not in self.conn.sessions

  def testCloseFromListener(self):
    done = Event()
    def listener(msg):
      self.conn.close()
      done.set()
    self.rcv.set_message_listener(listener)
    self.send("close-from-listener")
    assert done.wait(self.timeout())
    assert self.conn.closed

class TemporaryQueueTests(SessionBase):

  def testLifecycle(self):
    tmpq = self.ssn.create_temporary_queue()
    assert tmpq.name in self.broker.temporaries
    assert tmpq.local and tmpq.connection is self.conn
    assert tmpq in self.conn.temporaries
    rcv = self.ssn.create_consumer(tmpq)
    snd = self.ssn.create_producer(tmpq)
    snd.send(self.ssn.create_text_message("to temporary"))
    assert rcv.receive(self.timeout()).text == "to temporary"
    self.conn.close()
    assert tmpq.deleted
    assert tmpq.name not in self.broker.temporaries

  def testUniqueNames(self):
    names = set([self.ssn.create_temporary_queue().name for i in range(5)])
    assert len(names) == 5

  def testDelete(self):
    tmpq = self.ssn.create_temporary_queue()
    rcv = self.ssn.create_consumer(tmpq)
    self.assertRaises(IllegalState, tmpq.delete)
    rcv.close()
    tmpq.delete()
    assert tmpq.deleted
    assert tmpq.name not in self.broker.temporaries
    self.assertRaises(InvalidDestination, self.ssn.create_consumer, tmpq)
    self.assertRaises(InvalidDestination, self.ssn.create_producer, tmpq)

  def testOtherConnectionCannotConsume(self):
    tmpq = self.ssn.create_temporary_queue()
    ssn = self.connect().create_session()
    self.assertRaises(InvalidDestination, ssn.create_consumer, tmpq)

  def testReplyToDeletedTemporary(self):
    tmpq = self.ssn.create_temporary_queue()
    name = tmpq.name
    tmpq.delete()
    ssn = self.connect().create_session()
    snd = ssn.create_producer(None)
    self.assertRaises(InvalidDestination, snd.send, TemporaryQueue(name),
                      TextMessage("too late"), delivery_mode=NON_PERSISTENT)

  def testRequestReply(self):
    requests = self.rcv
    replier_ssn = self.connect().create_session()
    replier_ssn.connection.start()
    replier_rcv = replier_ssn.create_consumer(self.q)
    replier = replier_ssn.create_producer(None)
    requests.close()

    tmpq = self.ssn.create_temporary_queue()
    replies = self.ssn.create_consumer(tmpq)
    cid = str(uuid4())
    request = self.ssn.create_text_message("Request with String Data")
    request.reply_to = tmpq
    request.correlation_id = cid
    self.snd.send(request, delivery_mode=NON_PERSISTENT)

    req = replier_rcv.receive(self.timeout())
    assert isinstance(req.reply_to, TemporaryQueue)
    assert not req.reply_to.local
    assert req.correlation_id == cid
    reply = replier_ssn.create_text_message("Reply to \"%s\"" % req.text)
    reply.correlation_id = req.correlation_id
    replier.send(req.reply_to, reply, delivery_mode=NON_PERSISTENT)

    answer = replies.receive(self.timeout())
    assert answer.text == "Reply to \"Request with String Data\""
    assert answer.correlation_id == cid
    # the reply carries the requestor's own temporary queue
    assert answer.destination == tmpq

class FailureTests(SessionBase):

  def testExceptionListener(self):
    errors = []
    fired = Event()
    def listener(e):
      errors.append(e)
      fired.set()
    self.conn.set_exception_listener(listener)
    with self.assertLogs("solace_samples.messaging", "WARNING"):
      self.broker.kill(self.conn)
      assert fired.wait(self.timeout())
    assert isinstance(errors[0], ConnectionClosed)
    assert self.conn.state is CLOSED
    assert self.conn.error is errors[0]

  def testOperationsAfterFailure(self):
    self.broker.kill(self.conn)
    self.assertRaises(ConnectionClosed, self.conn.create_session)
    self.assertRaises(ConnectionClosed, self.ssn.create_producer, self.q)
    self.assertRaises(ConnectionClosed, self.snd.send, TextMessage("x"))
    self.assertRaises(ConnectionClosed, self.rcv.receive, 0)
    self.conn.close()
    assert self.conn.closed

  def testFailureWakesReceive(self):
    result = []
    def run():
      try:
        self.rcv.receive()
      except MessagingError as e:
        result.append(e)
    t = Thread(target=run)
    t.start()
    self.wait_for(lambda: self.rcv._receiving)
    self.broker.kill(self.conn)
    t.join(self.timeout())
    assert isinstance(result[0], ConnectionClosed), result

  def testCloseFromExceptionListener(self):
    done = Event()
    def listener(e):
      self.conn.close()
      done.set()
    self.conn.set_exception_listener(listener)
    self.broker.kill(self.conn)
    assert done.wait(self.timeout())
    assert self.conn.closed

  def testUnackedRedeliveredAfterFailure(self):
    ack_ssn = self.conn.create_session(False, CLIENT_ACKNOWLEDGE)
    rcv = ack_ssn.create_consumer(self.queue("failover"))
    snd = self.ssn.create_producer(rcv.destination)
    snd.send(TextMessage("unacked"))
    assert rcv.receive(self.timeout()).text == "unacked"
    self.broker.kill(self.conn)
    conn = self.connect()
    conn.start()
    again = conn.create_session().create_consumer(rcv.destination)
    msg = again.receive(self.timeout())
    assert msg.text == "unacked"
    assert msg.redelivered
