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
Sends one persistent message to the queue bound to queueLookup.
"""

import sys
from logging import getLogger

from solace_samples.examples.common import *
from solace_samples.messaging import *
from solace_samples.naming import Resolver

log = getLogger("solace_samples.examples.queue_sender")

def main(argv=None):
  parser = SampleArgParser("queue-sender", "[--config FILE]")
  parser.add_config()
  args = parser.parse_args(argv)
  configure_logging(args.verbose)

  try:
    with Resolver(filename=args.config) as resolver:
      factory = resolver.lookup(SOLACE_CONNECTION_LOOKUP, ConnectionFactory)
      with factory.create_connection() as connection:
        connection.set_exception_listener(log.error)
        connection.start()
        target = resolver.lookup(QUEUE_LOOKUP, Queue)
        with connection.create_session(False, AUTO_ACKNOWLEDGE) as session, \
              session.create_producer(target) as sender:
          sender.delivery_mode = PERSISTENT
          message = session.create_text_message("Message with String Data")
          sender.send(message)
          log.info("Message sent successfully.")
  except MessagingError as e:
    log.error(e)
    return 1
  return 0

if __name__ == "__main__":
  sys.exit(main())
