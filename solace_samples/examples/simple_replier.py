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
Answers requests arriving on the queue bound to queueLookup, sending
each reply to the temporary queue named by the request's reply-to.
"""

import sys
from logging import getLogger

from solace_samples.examples.common import *
from solace_samples.messaging import *
from solace_samples.naming import Resolver

log = getLogger("solace_samples.examples.simple_replier")

def reply(session, replier, request):
  """
  Replies to one request. Returns True if a reply was sent.
  """
  if not isinstance(request, TextMessage):
    log.warning("Unexpected data type in request: \"%s\", nothing replied.",
                request)
    return False
  log.info("Received request with string data: \"%s\"", request.text)
  if request.reply_to is None:
    log.warning("Request %s has no reply-to destination, dropped.",
                request.message_id)
    return False
  response = session.create_text_message("Reply to \"%s\"" % request.text)
  response.correlation_id = request.correlation_id
  try:
    replier.send(request.reply_to, response)
  except LinkError as e:
    log.warning("Unable to reply to %s: %s", request.reply_to, e)
    return False
  log.info("Request message replied successfully.")
  return True

def main(argv=None):
  parser = SampleArgParser("simple-replier",
                           "[--config FILE] [--count N] [--timeout SECS]")
  parser.add_config()
  parser.add_timeout()
  parser.add_argument("--count", type=int, default=1,
                      help="number of requests to answer, 0 for no limit "
                      "(default: %(default)s)")
  args = parser.parse_args(argv)
  configure_logging(args.verbose)

  try:
    with Resolver(filename=args.config) as resolver:
      factory = resolver.lookup(SOLACE_CONNECTION_LOOKUP, ConnectionFactory)
      with factory.create_connection() as connection:
        connection.set_exception_listener(log.error)
        connection.start()
        source = resolver.lookup(QUEUE_LOOKUP, Queue)
        with connection.create_session(False, AUTO_ACKNOWLEDGE) as session, \
              session.create_consumer(source) as requests, \
              session.create_producer(None) as replier:
          replier.delivery_mode = NON_PERSISTENT
          handled = 0
          while args.count == 0 or handled < args.count:
            log.info("Waiting for a request...")
            request = requests.receive(args.timeout)
            if request is None:
              log.warning("No request received within %s seconds.",
                          args.timeout)
              return 1
            reply(session, replier, request)
            handled += 1
  except MessagingError as e:
    log.error(e)
    return 1
  return 0

if __name__ == "__main__":
  sys.exit(main())
