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
Subscribes to a topic with a message listener and waits for one
message. Given a host url the connection factory is bound
programmatically, otherwise it comes from the names file.
"""

import sys
from threading import Event

from solace_samples.examples.common import *
from solace_samples.messaging import *
from solace_samples.naming import INITIAL_CONTEXT_FACTORY, Resolver

def main(argv=None):
  parser = SampleArgParser("topic-subscriber",
                           "[amqp://<host:port>] [--timeout SECS]")
  parser.add_argument("host_url", nargs="?", default=None,
                      help="amqp://<host:port> of the broker")
  parser.add_config()
  parser.add_timeout()
  args = parser.parse_args(argv)
  configure_logging(args.verbose)

  if args.host_url is None:
    env = None
    print("TopicSubscriber is connecting...")
  else:
    env = {INITIAL_CONTEXT_FACTORY:
             "org.apache.qpid.jms.jndi.JmsInitialContextFactory",
           "connectionfactory.%s" % SOLACE_CONNECTION_LOOKUP:
             amqp_url(args.host_url)}
    print("TopicSubscriber is connecting to %s..." % args.host_url)

  latch = Event()

  def on_message(message):
    if isinstance(message, TextMessage):
      print("TextMessage received: '%s'" % message.text)
    else:
      print("Message received.")
    print("Message Content:\n%s" % (message,))
    latch.set()

  try:
    with Resolver(environment=env, filename=args.config) as resolver:
      factory = resolver.lookup(SOLACE_CONNECTION_LOOKUP, ConnectionFactory)
      with factory.create_connection() as connection:
        connection.set_exception_listener(lambda e: latch.set())
        with connection.create_session(False, AUTO_ACKNOWLEDGE) as session:
          print("Connected.")
          topic = session.create_topic(TOPIC_NAME)
          with session.create_consumer(topic) as consumer:
            consumer.set_message_listener(on_message)
            connection.start()
            print("Awaiting message...")
            if not latch.wait(args.timeout):
              print("No message received within %s seconds." % args.timeout)
              return 1
            connection.check_error()
  except MessagingError as e:
    print("TopicSubscriber failed: %s" % e)
    return 1
  return 0

if __name__ == "__main__":
  sys.exit(main())
