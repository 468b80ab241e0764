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

## Messaging Errors

class MessagingError(Exception):

  def __init__(self, code=None, text=None, **info):
    self.code = code
    self.text = text
    self.info = info
    if self.code is None:
      msg = self.text
    else:
      msg = "%s(%s)" % (self.text, self.code)
    if info:
      msg += " " + ", ".join(["%s=%r" % (k, v) for k, v in self.info.items()])
    Exception.__init__(self, msg)

class InternalError(MessagingError):
  pass

class Interrupted(MessagingError):
  """
  Exception raised when the calling thread is interrupted while
  blocked in the messaging API.
  """
  pass

class IllegalState(MessagingError):
  pass

class IllegalMode(IllegalState):
  """
  Exception raised when synchronous receive and an asynchronous
  listener are mixed on one consumer.
  """
  pass

## Naming Errors

class NamingError(MessagingError):
  pass

class NotFound(NamingError):
  pass

class TypeMismatch(NamingError):
  pass

## Connection Errors

class ConnectionError(MessagingError):
  """
  The base class for all connection related exceptions.
  """
  pass

class ConnectError(ConnectionError):
  """
  Exception raised when there is an error connecting to the remote
  peer.
  """
  pass

class AuthenticationFailed(ConnectError):
  pass

class TransportFailed(ConnectionError):
  pass

class ConnectionClosed(ConnectionError):
  pass

## Session Errors

class SessionError(MessagingError):
  pass

class SessionClosed(SessionError):
  pass

class NontransactionalSession(SessionError):
  """
  Exception raised when commit or rollback is attempted on a non
  transactional session.
  """
  pass

## Link Errors

class LinkError(MessagingError):
  pass

class InvalidDestination(LinkError):
  pass

## Producer Errors

class ProducerError(LinkError):
  pass

class UnresolvedDestination(ProducerError):
  pass

class BrokerRejected(ProducerError):
  pass

class ProducerClosed(ProducerError):
  pass

## Consumer Errors

class ConsumerError(LinkError):
  pass

class ConsumerClosed(ConsumerError):
  pass

## Message Errors

class MessageError(MessagingError):
  pass

class MessageNotWriteable(MessageError):
  pass

class MessageFormatError(MessageError):
  pass

__all__ = ["MessagingError", "InternalError", "Interrupted", "IllegalState",
           "IllegalMode", "NamingError", "NotFound", "TypeMismatch",
           "ConnectionError", "ConnectError", "AuthenticationFailed",
           "TransportFailed", "ConnectionClosed", "SessionError",
           "SessionClosed", "NontransactionalSession", "LinkError",
           "InvalidDestination", "ProducerError", "UnresolvedDestination",
           "BrokerRejected", "ProducerClosed", "ConsumerError",
           "ConsumerClosed", "MessageError", "MessageNotWriteable",
           "MessageFormatError"]
