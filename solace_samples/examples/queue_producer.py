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
Sends one persistent message to a queue, with the connection factory
and the queue created programmatically.
"""

import sys

from solace_samples.examples.common import *
from solace_samples.messaging import *

SOLACE_USERNAME = "clientUsername"
SOLACE_PASSWORD = "password"

def main(argv=None):
  parser = SampleArgParser("queue-producer", "amqp://<host:port>")
  parser.add_argument("host_url", help="amqp://<host:port> of the broker")
  args = parser.parse_args(argv)
  configure_logging(args.verbose)

  print("QueueProducer is connecting to %s..." % args.host_url)
  try:
    factory = ConnectionFactory(amqp_url(args.host_url),
                                username=SOLACE_USERNAME,
                                password=SOLACE_PASSWORD)
    with factory.create_connection() as connection:
      with connection.create_session(False, AUTO_ACKNOWLEDGE) as session:
        print("Connected with username '%s'." % SOLACE_USERNAME)
        # the durable queue must already exist on the broker
        queue = session.create_queue(QUEUE_NAME)
        with session.create_producer(queue) as producer:
          message = session.create_text_message("Hello world Queues!")
          print("Sending message '%s' to queue '%s'..." %
                (message.text, queue))
          producer.send(message, delivery_mode=PERSISTENT,
                        priority=DEFAULT_PRIORITY, ttl=DEFAULT_TIME_TO_LIVE)
          print("Sent successfully. Exiting...")
  except (MessagingError, ValueError) as e:
    print("QueueProducer failed: %s" % e)
    return 1
  return 0

if __name__ == "__main__":
  sys.exit(main())
