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
Publishes one non-persistent message to a topic through an unbound
producer.
"""

import sys

from solace_samples.examples.common import *
from solace_samples.messaging import *

def main(argv=None):
  parser = SampleArgParser("topic-publisher",
                           "amqp://<host:port> <username> <password>")
  parser.add_argument("host_url", help="amqp://<host:port> of the broker")
  parser.add_argument("username", nargs="?", default=None)
  parser.add_argument("password", nargs="?", default=None)
  args = parser.parse_args(argv)
  configure_logging(args.verbose)

  print("TopicPublisher is connecting to %s..." % args.host_url)
  try:
    factory = ConnectionFactory(amqp_url(args.host_url),
                                username=args.username,
                                password=args.password)
    with factory.create_connection() as connection:
      with connection.create_session(False, AUTO_ACKNOWLEDGE) as session:
        if args.username:
          print("Connected with client username '%s'." % args.username)
        else:
          print("Connected.")
        topic = session.create_topic(TOPIC_NAME)
        with session.create_producer(None) as producer:
          message = session.create_text_message("Hello world!")
          print("Sending message '%s' to topic '%s'..." %
                (message.text, topic))
          producer.send(topic, message, delivery_mode=NON_PERSISTENT,
                        priority=DEFAULT_PRIORITY, ttl=DEFAULT_TIME_TO_LIVE)
          print("Sent successfully. Exiting...")
  except (MessagingError, ValueError) as e:
    print("TopicPublisher failed: %s" % e)
    return 1
  return 0

if __name__ == "__main__":
  sys.exit(main())
