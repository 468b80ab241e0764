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

from solace_samples.messaging.exceptions import IllegalState

class Destination(object):

  """
  Base class of the addressable broker nodes. Two destinations are
  equal when they are of the same kind and carry the same name.

  @type name: str
  @ivar name: the node address on the broker
  """

  # terminus capability advertised on links to this kind of node
  capability = None

  def __init__(self, name):
    if not name:
      raise ValueError("destination name required")
    self.name = name

  def _key(self):
    return (self.__class__.capability, self.name)

  def __eq__(self, other):
    if not isinstance(other, Destination):
      return NotImplemented
    return self._key() == other._key()

  def __ne__(self, other):
    result = self.__eq__(other)
    if result is NotImplemented:
      return result
    return not result

  def __hash__(self):
    return hash(self._key())

  def __str__(self):
    return self.name

  def __repr__(self):
    return "%s(%r)" % (self.__class__.__name__, self.name)

class Queue(Destination):
  capability = "queue"

class Topic(Destination):

  capability = "topic"

  @property
  def levels(self):
    """
    The C{/} separated levels of the topic hierarchy.
    """
    return self.name.split("/")

class TemporaryQueue(Queue):

  """
  A queue whose name was assigned by the broker and whose lifetime is
  bound to the connection that created it. Temporary queues decoded
  from a received message carry no owning connection.
  """

  capability = "temporary-queue"

  def __init__(self, name, connection=None):
    Queue.__init__(self, name)
    self.connection = connection
    self.deleted = False

  @property
  def local(self):
    return self.connection is not None

  def delete(self):
    """
    Deletes the temporary queue. Raises L{IllegalState} if consumers
    are still open on it.
    """
    if self.connection is None:
      raise IllegalState(text="temporary queue %s is not owned by this "
                         "connection" % self.name)
    self.connection._delete_temporary(self)

__all__ = ["Destination", "Queue", "Topic", "TemporaryQueue"]
