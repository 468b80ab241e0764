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
Conversion between L{Message} objects and AMQP 1.0 messages. The
message class and the kind of the destination and reply-to nodes
travel in the JMS message annotations so that peers using a JMS
client see the same types.
"""

import proton
from proton import symbol, byte

from solace_samples.messaging.constants import *
from solace_samples.messaging.destinations import *
from solace_samples.messaging.exceptions import MessageFormatError
from solace_samples.messaging.message import *

JMS_MSG_TYPE = symbol("x-opt-jms-msg-type")
JMS_DEST = symbol("x-opt-jms-dest")
JMS_REPLY_TO = symbol("x-opt-jms-reply-to")

MESSAGE = 0
OBJECT_MESSAGE = 1
MAP_MESSAGE = 2
BYTES_MESSAGE = 3
STREAM_MESSAGE = 4
TEXT_MESSAGE = 5

QUEUE_TYPE = 0
TOPIC_TYPE = 1
TEMP_QUEUE_TYPE = 2
TEMP_TOPIC_TYPE = 3

OCTET_STREAM = symbol("application/octet-stream")

MSG_TYPES = {
  Message: MESSAGE,
  TextMessage: TEXT_MESSAGE,
  BytesMessage: BYTES_MESSAGE,
  MapMessage: MAP_MESSAGE
  }

MSG_CLASSES = {
  MESSAGE: Message,
  TEXT_MESSAGE: TextMessage,
  BYTES_MESSAGE: BytesMessage,
  MAP_MESSAGE: MapMessage
  }

def dest_type(destination):
  if isinstance(destination, TemporaryQueue):
    return TEMP_QUEUE_TYPE
  elif isinstance(destination, Topic):
    return TOPIC_TYPE
  else:
    return QUEUE_TYPE

def _ms(secs):
  if not secs:
    return 0
  return int(round(secs*1000))

def _secs(ms):
  if not ms:
    return 0
  # proton truncates secs*1000 on the way back to milliseconds
  return (ms + 0.5)/1000.0

def encode(message):
  """
  Builds the AMQP 1.0 message for the supplied message.

  @type message: Message
  @rtype: proton.Message
  """
  amsg = proton.Message()
  amsg.id = message.message_id
  amsg.correlation_id = message.correlation_id
  amsg.durable = message.delivery_mode is PERSISTENT
  amsg.priority = message.priority
  amsg.ttl = _secs(message.ttl)
  amsg.creation_time = _secs(message.timestamp)
  amsg.expiry_time = _secs(message.expiration)

  annotations = {JMS_MSG_TYPE: byte(MSG_TYPES[message.__class__])}
  if message.destination is not None:
    amsg.address = message.destination.name
    annotations[JMS_DEST] = byte(dest_type(message.destination))
  if message.reply_to is not None:
    amsg.reply_to = message.reply_to.name
    annotations[JMS_REPLY_TO] = byte(dest_type(message.reply_to))
  amsg.annotations = annotations

  if message.properties:
    amsg.properties = dict(message.properties)

  if isinstance(message, TextMessage):
    amsg.body = message.text
  elif isinstance(message, BytesMessage):
    amsg.content_type = OCTET_STREAM
    amsg.inferred = True
    amsg.body = message.data
  elif isinstance(message, MapMessage):
    amsg.body = dict(message.map)
  return amsg

def _destination(name, type, resolve):
  if name is None:
    return None
  if type == TEMP_QUEUE_TYPE:
    tmpq = None
    if resolve is not None:
      tmpq = resolve(name)
    if tmpq is None:
      tmpq = TemporaryQueue(name)
    return tmpq
  elif type in (TOPIC_TYPE, TEMP_TOPIC_TYPE):
    return Topic(name)
  else:
    return Queue(name)

def _msg_class(type, body):
  if type is not None:
    try:
      return MSG_CLASSES[type]
    except KeyError:
      raise MessageFormatError(text="unsupported message type: %s" % type)
  if body is None:
    return Message
  elif isinstance(body, str):
    return TextMessage
  elif isinstance(body, (bytes, bytearray, memoryview)):
    return BytesMessage
  elif isinstance(body, dict):
    return MapMessage
  else:
    raise MessageFormatError(text="unsupported body: %s" %
                             body.__class__.__name__)

def decode(amsg, resolve=None):
  """
  Builds a read-only L{Message} from a received AMQP 1.0 message.

  @type amsg: proton.Message
  @type resolve: callable
  @param resolve: maps a temporary queue name to the local
  L{TemporaryQueue} that owns it, or None
  """
  annotations = amsg.annotations or {}
  type = annotations.get(JMS_MSG_TYPE)
  if type is not None:
    type = int(type)
  body = amsg.body
  cls = _msg_class(type, body)

  msg = cls()
  if isinstance(msg, TextMessage):
    if body is not None and not isinstance(body, str):
      raise MessageFormatError(text="text message with %s body" %
                               body.__class__.__name__)
    msg.text = body
  elif isinstance(msg, BytesMessage):
    if body is not None:
      msg.data = bytes(body)
  elif isinstance(msg, MapMessage):
    msg.map = dict(body or {})

  if amsg.id is not None:
    msg.message_id = str(amsg.id)
  if amsg.correlation_id is not None:
    msg.correlation_id = str(amsg.correlation_id)
  if amsg.durable:
    msg.delivery_mode = PERSISTENT
  else:
    msg.delivery_mode = NON_PERSISTENT
  msg.priority = amsg.priority
  msg.ttl = _ms(amsg.ttl)
  msg.timestamp = _ms(amsg.creation_time)
  msg.expiration = _ms(amsg.expiry_time)
  msg.delivery_count = amsg.delivery_count
  msg.redelivered = amsg.delivery_count > 0
  msg.destination = _destination(amsg.address, annotations.get(JMS_DEST),
                                 None)
  msg.reply_to = _destination(amsg.reply_to, annotations.get(JMS_REPLY_TO),
                              resolve)
  msg.properties = dict(amsg.properties or {})
  msg._freeze()
  return msg

__all__ = ["encode", "decode", "JMS_MSG_TYPE", "JMS_DEST", "JMS_REPLY_TO"]
