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
Sends a request to the queue bound to queueLookup and waits for the
correlated reply on a temporary queue.
"""

import sys
from logging import getLogger
from threading import Event
from uuid import uuid4

from solace_samples.examples.common import *
from solace_samples.messaging import *
from solace_samples.naming import Resolver

log = getLogger("solace_samples.examples.simple_requestor")

class Requestor:

  def __init__(self, correlation_id):
    self.correlation_id = correlation_id
    self.reply = None
    self.error = None
    self.done = Event()

  def on_message(self, message):
    if message.correlation_id != self.correlation_id:
      log.warning("Ignoring reply with unexpected correlation id %s",
                  message.correlation_id)
      return
    if isinstance(message, TextMessage):
      log.info("Received reply: \"%s\"", message.text)
    else:
      log.info("Received reply: %s", message)
    self.reply = message
    self.done.set()

  def on_exception(self, error):
    log.error(error)
    self.error = error
    self.done.set()

def main(argv=None):
  parser = SampleArgParser("simple-requestor", "[--config FILE] [--timeout SECS]")
  parser.add_config()
  parser.add_timeout()
  args = parser.parse_args(argv)
  configure_logging(args.verbose)

  requestor = Requestor(str(uuid4()))
  try:
    with Resolver(filename=args.config) as resolver:
      factory = resolver.lookup(SOLACE_CONNECTION_LOOKUP, ConnectionFactory)
      with factory.create_connection() as connection:
        connection.set_exception_listener(requestor.on_exception)
        connection.start()
        target = resolver.lookup(QUEUE_LOOKUP, Queue)
        with connection.create_session(False, AUTO_ACKNOWLEDGE) as session, \
              session.create_producer(target) as sender:
          sender.delivery_mode = NON_PERSISTENT
          reply_queue = session.create_temporary_queue()
          with session.create_consumer(reply_queue) as receiver:
            receiver.set_message_listener(requestor.on_message)
            request = session.create_text_message("Request with String Data")
            request.reply_to = reply_queue
            request.correlation_id = requestor.correlation_id
            sender.send(request)
            log.info("Request message sent successfully, waiting for a "
                     "reply...")
            if not requestor.done.wait(args.timeout):
              log.warning("No reply received within %s seconds.", args.timeout)
              return 1
            if requestor.error is not None:
              return 1
  except MessagingError as e:
    log.error(e)
    return 1
  return 0

if __name__ == "__main__":
  sys.exit(main())
