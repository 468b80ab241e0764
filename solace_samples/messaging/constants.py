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

AMQP_PORT = 5672
AMQPS_PORT = 5671

class Constant:

  def __init__(self, name, value=None):
    self.name = name
    self.value = value

  def __repr__(self):
    return self.name

## Acknowledgement modes

AUTO_ACKNOWLEDGE = Constant("AUTO_ACKNOWLEDGE", 1)
CLIENT_ACKNOWLEDGE = Constant("CLIENT_ACKNOWLEDGE", 2)
DUPS_OK_ACKNOWLEDGE = Constant("DUPS_OK_ACKNOWLEDGE", 3)

ACK_MODES = (AUTO_ACKNOWLEDGE, CLIENT_ACKNOWLEDGE, DUPS_OK_ACKNOWLEDGE)

# number of deliveries a DUPS_OK_ACKNOWLEDGE session holds before
# acknowledging them together
DUPS_OK_BATCH = 10

## Delivery modes

NON_PERSISTENT = Constant("NON_PERSISTENT", 1)
PERSISTENT = Constant("PERSISTENT", 2)

DELIVERY_MODES = (NON_PERSISTENT, PERSISTENT)

DEFAULT_DELIVERY_MODE = PERSISTENT
DEFAULT_PRIORITY = 4
DEFAULT_TIME_TO_LIVE = 0

DEFAULT_PREFETCH = 100

# seconds to wait for the broker to answer an open, attach or detach
DEFAULT_OPEN_TIMEOUT = 60

## Connection states

CREATED = Constant("CREATED")
STARTED = Constant("STARTED")
STOPPED = Constant("STOPPED")
CLOSED = Constant("CLOSED")

## Delivery outcomes

ACCEPTED = Constant("ACCEPTED")
RELEASED = Constant("RELEASED")
MODIFIED = Constant("MODIFIED")
REJECTED = Constant("REJECTED")

__all__ = ["AMQP_PORT", "AMQPS_PORT", "AUTO_ACKNOWLEDGE",
           "CLIENT_ACKNOWLEDGE", "DUPS_OK_ACKNOWLEDGE", "ACK_MODES",
           "DUPS_OK_BATCH", "NON_PERSISTENT", "PERSISTENT", "DELIVERY_MODES",
           "DEFAULT_DELIVERY_MODE", "DEFAULT_PRIORITY",
           "DEFAULT_TIME_TO_LIVE", "DEFAULT_PREFETCH", "DEFAULT_OPEN_TIMEOUT",
           "CREATED", "STARTED",
           "STOPPED", "CLOSED", "ACCEPTED", "RELEASED", "MODIFIED",
           "REJECTED"]
