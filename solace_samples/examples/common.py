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

import argparse
import logging
import sys

from solace_samples.naming import DEFAULT_FILE

FORMAT = "%(asctime)s %(levelname)-5s [%(threadName)s] %(name)s: %(message)s"

# names bound in jndi.properties
SOLACE_CONNECTION_LOOKUP = "solaceConnectionLookup"
QUEUE_LOOKUP = "queueLookup"

QUEUE_NAME = "Q/tutorial"
TOPIC_NAME = "T/GettingStarted/pubsub"

class SampleArgParser(argparse.ArgumentParser):

  """
  Argument parser of the sample programs. A usage error prints the
  one line banner of the program on stdout and exits with status 1.
  """

  def __init__(self, prog, banner, **kwargs):
    argparse.ArgumentParser.__init__(self, prog=prog, **kwargs)
    self.banner = banner
    self.add_argument("-v", "--verbose", action="store_true",
                      help="log protocol level detail")

  def error(self, message):
    sys.stdout.write("Usage: %s %s\n" % (self.prog, self.banner))
    sys.stderr.write("%s: error: %s\n" % (self.prog, message))
    self.exit(1)

  def add_config(self):
    self.add_argument("--config", metavar="FILE", default=None,
                      help="names file (default: %s)" % DEFAULT_FILE)

  def add_timeout(self):
    self.add_argument("--timeout", type=float, default=None,
                      help="seconds to wait before giving up (default: "
                      "wait forever)")

def configure_logging(verbose):
  if verbose:
    level = logging.DEBUG
  else:
    level = logging.INFO
  logging.basicConfig(level=level, format=FORMAT)

def amqp_url(host):
  """
  Accepts host:port as well as a full amqp:// url.
  """
  if "://" in host:
    return host
  return "amqp://%s" % host

__all__ = ["SampleArgParser", "configure_logging", "amqp_url",
           "SOLACE_CONNECTION_LOOKUP", "QUEUE_LOOKUP", "QUEUE_NAME",
           "TOPIC_NAME"]
