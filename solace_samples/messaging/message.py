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

from solace_samples.messaging.constants import *
from solace_samples.messaging.exceptions import MessageNotWriteable

def _not_writeable(*args, **kwargs):
  raise MessageNotWriteable(text="message properties are read-only")

class Properties(dict):

  """
  Application properties of a message that has been sent or
  received.
  """

  __setitem__ = _not_writeable
  __delitem__ = _not_writeable
  clear = _not_writeable
  pop = _not_writeable
  popitem = _not_writeable
  setdefault = _not_writeable
  update = _not_writeable

class Message(object):

  """
  A message consists of a standard set of headers, an application
  defined set of properties, and a body whose shape depends on the
  message class.

  @type message_id: str
  @ivar message_id: the message id, assigned when the message is sent
  @type correlation_id: str
  @ivar correlation_id: a correlation-id for the message
  @type reply_to: Destination
  @ivar reply_to: the destination to send replies to
  @type destination: Destination
  @ivar destination: the destination the message was sent to
  @type delivery_mode: Constant
  @ivar delivery_mode: PERSISTENT or NON_PERSISTENT
  @type priority: int
  @ivar priority: message priority (0-9)
  @type ttl: int
  @ivar ttl: time-to-live measured in milliseconds, 0 never expires
  @type expiration: int
  @ivar expiration: absolute expiry time in milliseconds, 0 for none
  @type timestamp: int
  @ivar timestamp: send time in milliseconds since the epoch
  @type redelivered: bool
  @ivar redelivered: true if the broker has delivered the message before
  @type properties: dict
  @ivar properties: application specific message properties
  """

  def __init__(self, correlation_id=None, reply_to=None, properties=None):
    self.message_id = None
    self.correlation_id = correlation_id
    self.reply_to = reply_to
    self.destination = None
    self.delivery_mode = DEFAULT_DELIVERY_MODE
    self.priority = DEFAULT_PRIORITY
    self.ttl = DEFAULT_TIME_TO_LIVE
    self.expiration = 0
    self.timestamp = 0
    self.redelivered = False
    self.delivery_count = 0
    if properties is None:
      self.properties = {}
    else:
      self.properties = dict(properties)
    # set by the session that delivered the message
    self._session = None
    self._consumer = None
    self._delivery = None
    self._readonly = False

  def __setattr__(self, name, value):
    if not name.startswith("_") and self.__dict__.get("_readonly"):
      raise MessageNotWriteable(text="cannot set %s, message is read-only" %
                                name)
    object.__setattr__(self, name, value)

  @property
  def readonly(self):
    return self._readonly

  def _freeze(self):
    self.properties = Properties(self.properties)
    self._readonly = True

  def acknowledge(self):
    """
    Acknowledges this message and every message delivered before it on
    the same session. Only has an effect on a CLIENT_ACKNOWLEDGE
    session.
    """
    if self._session is not None:
      self._session._client_acknowledge(self)

  def _body_repr(self):
    return None

  def __repr__(self):
    args = []
    for name in ["message_id", "correlation_id", "reply_to", "destination"]:
      value = self.__dict__[name]
      if value is not None: args.append("%s=%r" % (name, value))
    if self.delivery_mode is not DEFAULT_DELIVERY_MODE:
      args.append("delivery_mode=%r" % self.delivery_mode)
    if self.priority != DEFAULT_PRIORITY:
      args.append("priority=%r" % self.priority)
    for name in ["ttl", "redelivered", "properties"]:
      value = self.__dict__[name]
      if value: args.append("%s=%r" % (name, value))
    body = self._body_repr()
    if body is not None:
      args.append(body)
    return "%s(%s)" % (self.__class__.__name__, ", ".join(args))

class TextMessage(Message):

  def __init__(self, text=None, **kwargs):
    Message.__init__(self, **kwargs)
    self.text = text

  def _body_repr(self):
    if self.text is not None:
      return "text=%r" % self.text

class BytesMessage(Message):

  def __init__(self, data=None, **kwargs):
    Message.__init__(self, **kwargs)
    if data is not None:
      data = bytes(data)
    self.data = data

  def _body_repr(self):
    if self.data is not None:
      return "data=%r" % self.data

class MapMessage(Message):

  def __init__(self, map=None, **kwargs):
    Message.__init__(self, **kwargs)
    if map is None:
      self.map = {}
    else:
      self.map = dict(map)

  def _freeze(self):
    self.map = Properties(self.map)
    Message._freeze(self)

  def _body_repr(self):
    if self.map:
      return "map=%r" % dict(self.map)

__all__ = ["Message", "TextMessage", "BytesMessage", "MapMessage",
           "Properties"]
