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

import re
from urllib.parse import parse_qsl

def default(value, default):
  if value is None:
    return default
  else:
    return value

class URL:

  RE = re.compile(r"""
        # [   <scheme>://  ] [    <user>   [   / <password>   ] @]    ( <host4>     | \[    <host6>    \] )  [   :<port>   ] [ ?<options> ]
        ^ (?: ([^:/@]+)://)? (?: ([^:/@]+) (?: / ([^:/@]+)   )? @)? (?: ([^@:/\[?]+) | \[ ([a-f0-9:.]+) \] ) (?: :([0-9]+))? (?: \?(.*))? $
""", re.X | re.I)

  AMQPS = "amqps"
  AMQP = "amqp"

  def __init__(self, s=None, **kwargs):
    if s is None:
      self.scheme = kwargs.get('scheme', None)
      self.user = kwargs.get('user', None)
      self.password = kwargs.get('password', None)
      self.host = kwargs.get('host', None)
      self.port = kwargs.get('port', None)
      self.options = dict(kwargs.get('options', None) or {})
      if self.host is None:
        raise ValueError('Host required for url')
    elif isinstance(s, URL):
      self.scheme = s.scheme
      self.user = s.user
      self.password = s.password
      self.host = s.host
      self.port = s.port
      self.options = dict(s.options)
    else:
      match = URL.RE.match(s.strip())
      if match is None:
        raise ValueError(s)
      self.scheme, self.user, self.password, host4, host6, port, query = \
          match.groups()
      self.host = host4 or host6
      if port is None:
        self.port = None
      else:
        self.port = int(port)
      if query:
        self.options = dict(parse_qsl(query, keep_blank_values=True))
      else:
        self.options = {}

  def __repr__(self):
    return "URL(%r)" % str(self)

  def __str__(self):
    s = ""
    if self.scheme:
      s += "%s://" % self.scheme
    if self.user:
      s += self.user
      if self.password:
        s += "/%s" % self.password
      s += "@"
    if ':' not in self.host:
      s += self.host
    else:
      s += "[%s]" % self.host
    if self.port:
      s += ":%s" % self.port
    if self.options:
      s += "?" + "&".join(["%s=%s" % (k, v) for k, v in self.options.items()])
    return s

  def address(self):
    """
    Returns the URL without credentials or options, suitable for
    handing to the transport and for logging.
    """
    url = URL(self)
    url.user = None
    url.password = None
    url.options = {}
    return str(url)

  def __eq__(self, url):
    if isinstance(url, str):
      url = URL(url)
    if not isinstance(url, URL):
      return NotImplemented
    return \
      self.scheme==url.scheme and \
      self.user==url.user and self.password==url.password and \
      self.host==url.host and self.port==url.port and \
      self.options==url.options

  def __ne__(self, url):
    result = self.__eq__(url)
    if result is NotImplemented:
      return result
    return not result

  __hash__ = None
