#!/usr/bin/env python
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
from setuptools import setup

SAMPLES = ["queue-producer=solace_samples.examples.queue_producer:main",
           "queue-sender=solace_samples.examples.queue_sender:main",
           "queue-receiver=solace_samples.examples.queue_receiver:main",
           "topic-publisher=solace_samples.examples.topic_publisher:main",
           "topic-subscriber=solace_samples.examples.topic_subscriber:main",
           "simple-requestor=solace_samples.examples.simple_requestor:main",
           "simple-replier=solace_samples.examples.simple_replier:main"]

setup(name="solace-amqp-samples",
      version="0.1",
      author="Apache Qpid",
      author_email="dev@qpid.apache.org",
      packages=["solace_samples", "solace_samples.messaging",
                "solace_samples.examples", "solace_samples.tests"],
      python_requires=">=3.6",
      install_requires=["python-qpid-proton"],
      extras_require={"test": ["pytest"]},
      entry_points={"console_scripts": SAMPLES},
      url="http://qpid.apache.org/",
      license="Apache Software License",
      description="JMS style AMQP 1.0 messaging and the Solace getting "
      "started samples")
