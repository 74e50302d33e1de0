"""
EventBridge broadcast channel.

Publishes topic messages to an AWS EventBridge bus so subscribers outside the
process (other services, websocket fan-out, audit sinks) can receive them. The
topic becomes the entry's ``DetailType``; rules on the bus match against it.
"""

import json
import time
from typing import Any, Dict, List, Optional

import boto3
from aws_lambda_powertools.metrics import MetricUnit
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import BaseModel

from context_bus.broadcast.channel import PublishResult
from context_bus.observability import logger, metrics, tracer

# Errors that will not go away by trying again
NON_RETRYABLE_ERROR_CODES = ('ValidationException', 'InvalidParameterValue', 'AccessDeniedException')


def encode_message(message: Any) -> str:
    """Serialize a message for the EventBridge Detail field."""
    if isinstance(message, BaseModel):
        return message.model_dump_json()
    return json.dumps(message, default=str)


class EventBridgeBroadcastChannel:
    """Broadcast channel backed by EventBridge PutEvents."""

    def __init__(
        self,
        event_bus_name: str = "default",
        source: str = "context-bus",
        region_name: str = "us-east-1",
        max_retries: int = 2,
        retry_backoff: float = 0.2,
        client: Optional[Any] = None,
    ):
        """
        Initialize EventBridge channel.

        Args:
            event_bus_name: Name of the EventBridge bus
            source: Value used as the entry Source
            region_name: AWS region
            max_retries: Retry attempts on throttling/transient client errors
            retry_backoff: Initial backoff time in seconds
            client: Preconfigured boto3 events client
        """
        self.event_bus_name = event_bus_name
        self.source = source
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff
        self.eventbridge = client or boto3.client('events', region_name=region_name)

        logger.info(
            "EventBridgeBroadcastChannel initialized",
            extra={"event_bus_name": event_bus_name, "source": source}
        )

    def build_entry(self, topic: str, message: Any) -> Dict[str, Any]:
        return {
            "Source": self.source,
            "DetailType": topic,
            "Detail": encode_message(message),
            "EventBusName": self.event_bus_name,
        }

    @tracer.capture_method(capture_response=False)
    def publish(self, topic: str, message: Any) -> PublishResult:
        """
        Publish one message on a topic.

        Args:
            topic: Topic string, used as DetailType
            message: Pydantic model or JSON-serializable value

        Returns:
            PublishResult; failures are reported, never raised
        """
        try:
            entry = self.build_entry(topic, message)
        except (TypeError, ValueError) as e:
            logger.error(f"Cannot encode message for topic {topic}: {e}")
            return PublishResult.failed(topic, reason=str(e), error='encoding_failed')

        try:
            response = self._put_with_retry([entry])
        except (ClientError, BotoCoreError) as e:
            logger.error(
                f"Failed to publish to topic {topic}: {e}",
                extra={"topic": topic, "event_bus_name": self.event_bus_name}
            )
            metrics.add_metric(name="BroadcastPublishError", unit=MetricUnit.Count, value=1)
            return PublishResult.failed(topic, reason=str(e))

        if response.get('FailedEntryCount', 0) > 0:
            failed_entry = (response.get('Entries') or [{}])[0]
            reason = failed_entry.get('ErrorMessage') or failed_entry.get('ErrorCode') or 'Unknown error'
            logger.error(
                f"EventBridge rejected entry for topic {topic}: {reason}",
                extra={"topic": topic, "error_code": failed_entry.get('ErrorCode')}
            )
            metrics.add_metric(name="BroadcastPublishError", unit=MetricUnit.Count, value=1)
            return PublishResult.failed(topic, reason=reason)

        entries = response.get('Entries') or [{}]
        return PublishResult.ok(topic, message_id=entries[0].get('EventId'))

    def _put_with_retry(self, entries: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Call PutEvents, retrying transient client errors with exponential backoff."""
        for attempt in range(self.max_retries + 1):
            try:
                return self.eventbridge.put_events(Entries=entries)
            except (ClientError, BotoCoreError) as e:
                error_code = getattr(e, 'response', {}).get('Error', {}).get('Code', 'Unknown')

                logger.warning(
                    f"PutEvents attempt {attempt + 1} failed: {error_code}",
                    extra={"error": str(e), "attempt": attempt + 1}
                )

                if error_code in NON_RETRYABLE_ERROR_CODES or attempt >= self.max_retries:
                    raise

                time.sleep(self.retry_backoff * (2 ** attempt))
