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
Resolution of symbolic names to connection factories and destinations
from a jndi.properties style configuration file.

A typical file::

  java.naming.factory.initial=org.apache.qpid.jms.jndi.JmsInitialContextFactory
  connectionfactory.solaceConnectionLookup=amqp://localhost:5672?amqp.idleTimeout=120000
  queue.queueLookup=Q/tutorial
  topic.topicLookup=T/GettingStarted/pubsub
"""

import os
from logging import getLogger

from solace_samples.messaging.destinations import Queue, Topic
from solace_samples.messaging.endpoints import ConnectionFactory
from solace_samples.messaging.exceptions import NamingError, NotFound, \
    TypeMismatch

log = getLogger("solace_samples.naming")

DEFAULT_FILE = "jndi.properties"

INITIAL_CONTEXT_FACTORY = "java.naming.factory.initial"
PROVIDER_URL = "java.naming.provider.url"

SUPPORTED_FACTORIES = ["org.apache.qpid.jms.jndi.JmsInitialContextFactory",
                       "solace_samples.naming.Resolver"]

DYNAMIC_QUEUES = "dynamicQueues/"
DYNAMIC_TOPICS = "dynamicTopics/"

ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}

def _unescape(s):
  result = []
  i = 0
  while i < len(s):
    c = s[i]
    if c == "\\" and i + 1 < len(s):
      n = s[i+1]
      if n == "u":
        code = s[i+2:i+6]
        try:
          result.append(chr(int(code, 16)))
        except ValueError:
          raise NamingError(text="malformed \\uxxxx encoding: \\u%s" % code)
        i += 6
        continue
      result.append(ESCAPES.get(n, n))
      i += 2
    else:
      result.append(c)
      i += 1
  return "".join(result)

def _continued(line):
  count = len(line) - len(line.rstrip("\\"))
  return count % 2 == 1

def _logical_lines(lines):
  buf = None
  for line in lines:
    line = line.rstrip("\r\n")
    if buf is None:
      stripped = line.lstrip()
      if not stripped or stripped[0] in "#!":
        continue
    else:
      stripped = line.lstrip()
    if _continued(stripped):
      buf = (buf or "") + stripped[:-1]
      continue
    yield (buf or "") + stripped
    buf = None
  if buf is not None:
    yield buf

def _split(line):
  i = 0
  while i < len(line):
    c = line[i]
    if c == "\\":
      i += 2
      continue
    if c in "=: \t\f":
      break
    i += 1
  key = line[:i]
  rest = line[i:].lstrip(" \t\f")
  if rest and rest[0] in "=:":
    rest = rest[1:].lstrip(" \t\f")
  return _unescape(key), _unescape(rest)

def parse_properties(lines):
  """
  Parses the lines of a Java .properties file into a dictionary.

  @type lines: iterable of str
  @rtype: dict
  """
  props = {}
  for line in _logical_lines(lines):
    key, value = _split(line)
    props[key] = value
  return props

def load_properties(filename):
  try:
    with open(filename, encoding="latin-1") as f:
      return parse_properties(f)
  except OSError as e:
    raise NamingError(text="unable to read %s: %s" % (filename, e.strerror))

class Resolver(object):

  """
  Resolves symbolic names to L{ConnectionFactory}, L{Queue} and
  L{Topic} objects.

  Entries come from, in increasing order of precedence, the file named
  by java.naming.provider.url, the properties file and the supplied
  environment.
  """

  def __init__(self, environment=None, filename=None):
    """
    @type environment: dict
    @param environment: entries that override the file
    @type filename: str
    @param filename: the properties file, jndi.properties in the
    working directory by default; a missing default file is ignored
    """
    environment = dict(environment or {})
    if filename is None:
      if os.path.exists(DEFAULT_FILE):
        props = load_properties(DEFAULT_FILE)
      else:
        props = {}
    else:
      props = load_properties(filename)

    provider = environment.get(PROVIDER_URL, props.get(PROVIDER_URL))
    if provider:
      if provider.startswith("file://"):
        provider = provider[len("file://"):]
      entries = load_properties(provider)
    else:
      entries = {}
    entries.update(props)
    entries.update(environment)

    factory = entries.get(INITIAL_CONTEXT_FACTORY,
                          entries.get("initialContextFactory"))
    if factory is None:
      raise NamingError(text="no initial context factory configured")
    if factory not in SUPPORTED_FACTORIES:
      raise NamingError(text="unsupported initial context factory: %s" %
                        factory)

    self.entries = {}
    for key, value in entries.items():
      prefix, sep, name = key.partition(".")
      if sep and prefix in ("connectionfactory", "queue", "topic"):
        self.entries[name] = (prefix, value)
    self.closed = False
    log.debug("loaded %s names", len(self.entries))

  def __enter__(self):
    return self

  def __exit__(self, *exc_info):
    self.close()

  def _build(self, name):
    if name.startswith(DYNAMIC_QUEUES):
      return Queue(name[len(DYNAMIC_QUEUES):])
    elif name.startswith(DYNAMIC_TOPICS):
      return Topic(name[len(DYNAMIC_TOPICS):])
    try:
      kind, value = self.entries[name]
    except KeyError:
      raise NotFound(text="name not bound: %s" % name)
    if kind == "connectionfactory":
      try:
        return ConnectionFactory(value)
      except ValueError as e:
        raise NamingError(text="bad connection url for %s: %s" % (name, e))
    elif kind == "queue":
      return Queue(value)
    else:
      return Topic(value)

  def lookup(self, name, kind=None):
    """
    Looks up a name.

    @type name: str
    @param name: the symbolic name, or dynamicQueues/<queue> and
    dynamicTopics/<topic> for literal destinations
    @type kind: type
    @param kind: the expected class of the result
    @raise NotFound: the name is not bound
    @raise TypeMismatch: the name is bound to something other than kind
    """
    if self.closed:
      raise NamingError(text="resolver closed")
    obj = self._build(name)
    if kind is not None and not isinstance(obj, kind):
      raise TypeMismatch(text="%s is a %s, not a %s" %
                         (name, obj.__class__.__name__, kind.__name__))
    log.debug("LOOKUP %s: %r", name, obj)
    return obj

  def close(self):
    self.closed = True

__all__ = ["Resolver", "parse_properties", "load_properties"]
