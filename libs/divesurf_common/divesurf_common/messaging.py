"""Kafka binding of the messaging substrate.

Point-to-point queues are topics read by one shared consumer group, so each
message goes to exactly one competing consumer. Publish/subscribe topics are
read by one consumer group per durable subscriber, so each subscriber gets
its own copy.
"""

import threading
from dataclasses import dataclass
from typing import Iterator, Optional, Protocol, Sequence, Union

from confluent_kafka import Consumer, KafkaError, KafkaException, Producer
from confluent_kafka.admin import AdminClient
from logging_utils import get_kafka_logger
from pydantic import BaseModel

from .errors import MessagingError

logger = get_kafka_logger("divesurf")

ORDERS_RAW = "orders.raw"
ORDERS_ENRICHED = "orders.enriched"
VALIDATION_RESULTS = "validation.results"
ORDERS_LARGE = "orders.large"
ORDERS_SMALL = "orders.small"
ORDERS_ROUTING_ERRORS = "orders.routing-errors"


@dataclass(frozen=True)
class Envelope:
    """One consumed message."""

    channel: str
    key: Optional[str]
    value: str


class MessageBus(Protocol):
    """Interface the pipeline components need from the broker."""

    def publish(self, channel: str, message: Union[BaseModel, str], key: Optional[str] = None) -> None:
        """Deliver one message to a channel or raise MessagingError."""
        ...

    def subscribe(self, channels: Sequence[str], group: str) -> Iterator[Envelope]:
        """Stream messages of the given channels for a durable consumer group."""
        ...


class KafkaMessageBus:
    """Message bus backed by confluent-kafka.

    Publishing blocks until the broker acknowledged the message or the
    delivery timeout elapsed. Consumed offsets are committed only once the
    caller asks for the next message, which gives at-least-once delivery.

    Attributes:
        bootstrap_servers: Kafka bootstrap servers
        client_id: Client id used by the producer
    """

    def __init__(
        self,
        bootstrap_servers: str,
        client_id: str,
        delivery_timeout: float = 10.0,
        poll_timeout: float = 1.0,
    ):
        """Initialize the producer side of the bus.

        Args:
            bootstrap_servers: Comma-separated list of Kafka broker addresses
            client_id: Producer client ID
            delivery_timeout: Seconds to wait for a delivery report
            poll_timeout: Seconds one consumer poll may block
        """
        self.bootstrap_servers = bootstrap_servers
        self.client_id = client_id
        self._delivery_timeout = delivery_timeout
        self._poll_timeout = poll_timeout
        self._stopped = threading.Event()
        self._producer = Producer(
            {
                "bootstrap.servers": bootstrap_servers,
                "client.id": client_id,
                "acks": "all",
                "message.timeout.ms": int(delivery_timeout * 1000),
            }
        )

    @property
    def producer(self) -> Producer:
        """Get the underlying Kafka producer instance."""
        return self._producer

    def publish(self, channel: str, message: Union[BaseModel, str], key: Optional[str] = None) -> None:
        """Publish a message and wait for its delivery report.

        Args:
            channel: Topic to publish to
            message: Pydantic model (serialized as JSON) or raw text
            key: Optional message key, usually the order id

        Raises:
            MessagingError: If the message could not be handed to or
                acknowledged by the broker
        """
        value = message.model_dump_json() if isinstance(message, BaseModel) else message
        failures = []

        def on_delivery(err, msg) -> None:
            if err:
                failures.append(err)
                logger.error(f"Message failed delivery: {err} | topic={channel} | key={key}")
            else:
                logger.debug(f"Message delivered to {msg.topic()} [p:{msg.partition()}] offset={msg.offset()}")

        try:
            self._producer.produce(
                topic=channel,
                key=key,
                value=value.encode("utf-8"),
                on_delivery=on_delivery,
            )
        except BufferError as e:
            logger.warning("Producer buffer full, flushing...")
            self._producer.flush(self._delivery_timeout)
            raise MessagingError("Producer buffer full", channel) from e
        except KafkaException as e:
            raise MessagingError(f"Failed to produce message: {e}", channel) from e

        remaining = self._producer.flush(self._delivery_timeout)
        if failures:
            raise MessagingError(f"Message delivery failed: {failures[0]}", channel)
        if remaining > 0:
            raise MessagingError(f"{remaining} message(s) still pending delivery", channel)

    def create_consumer(self, group: str) -> Consumer:
        """Create a Kafka consumer for a durable consumer group."""
        return Consumer(
            {
                "bootstrap.servers": self.bootstrap_servers,
                "group.id": group,
                "auto.offset.reset": "earliest",
                "enable.auto.commit": False,
            }
        )

    def subscribe(self, channels: Sequence[str], group: str) -> Iterator[Envelope]:
        """Yield messages of the given channels until stop() is called.

        Args:
            channels: Topic names to subscribe to
            group: Consumer group; shared by competing consumers of a queue

        Raises:
            MessagingError: On any Kafka error other than end of partition
        """
        consumer = self.create_consumer(group)
        logger.info(f"Subscribing to topics: {list(channels)} | group={group}")
        consumer.subscribe(list(channels))
        try:
            while not self._stopped.is_set():
                msg = consumer.poll(self._poll_timeout)
                if msg is None:
                    continue
                if msg.error():
                    if msg.error().code() == KafkaError._PARTITION_EOF:
                        logger.debug("Reached end of partition")
                        continue
                    logger.error(f"Kafka error: {msg.error()}")
                    raise MessagingError(f"Kafka error: {msg.error()}", msg.topic())

                key = msg.key()
                yield Envelope(
                    channel=msg.topic(),
                    key=key.decode("utf-8") if key is not None else None,
                    value=msg.value().decode("utf-8", errors="replace"),
                )
                try:
                    consumer.commit(message=msg, asynchronous=False)
                except KafkaException as e:
                    raise MessagingError(f"Failed to commit offset: {e}", msg.topic()) from e
        finally:
            consumer.close()
            logger.info(f"Consumer closed | group={group}")

    def stop(self) -> None:
        """End every running subscription after its current poll."""
        self._stopped.set()

    def close(self) -> None:
        """Stop consuming and flush pending deliveries."""
        self.stop()
        remaining = self._producer.flush(self._delivery_timeout)
        if remaining > 0:
            logger.warning(f"{remaining} messages still pending delivery")


def check_kafka_connection(bootstrap_servers: str, timeout: float = 5.0) -> bool:
    """Check if Kafka connection is available.

    Returns:
        bool: True if Kafka is accessible, False otherwise.
    """
    try:
        admin = AdminClient({"bootstrap.servers": bootstrap_servers})
        return admin.list_topics(timeout=timeout) is not None
    except Exception as e:
        logger.error(f"Kafka connection failed: {e}")
        return False
