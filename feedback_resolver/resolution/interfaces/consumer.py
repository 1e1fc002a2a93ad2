"""
Complaint Queue Consumer
=========================

Processes batches of complaint messages from a delivery channel.

A message is acknowledged only after the complaint is persisted; any
processing error asks the channel to redeliver it. Bodies that can never
succeed (missing fields) are acknowledged and logged as rejected.
"""

import json
import logging
import uuid
from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from typing import Any, Callable, Dict, Iterable, Optional

from feedback_resolver.core import ApplicationException, ValidationException
from feedback_resolver.resolution.application import parse_complaint_payload
from feedback_resolver.shared.infrastructure.logging import get_logger


class IDeliveryMessage(ABC):
    """A message handed over by the delivery channel."""

    @property
    @abstractmethod
    def body(self) -> Any:
        """Decoded JSON object, or raw str/bytes."""

    @abstractmethod
    def ack(self) -> None:
        """Mark the message as done."""

    @abstractmethod
    def retry(self) -> None:
        """Ask for redelivery."""


def _decode(body: Any) -> Any:
    if isinstance(body, (bytes, bytearray)):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError:
            return None
    if isinstance(body, str):
        try:
            return json.loads(body)
        except ValueError:
            return None
    return body


class ComplaintBatchConsumer:
    """Runs each message through its own engine and session."""

    def __init__(
        self,
        engine_factory: Callable[[], AbstractAsyncContextManager],
        logger: Optional[logging.Logger] = None
    ):
        self._engine_factory = engine_factory
        self._logger = logger or get_logger(__name__)

    async def consume(self, messages: Iterable[IDeliveryMessage]) -> Dict[str, int]:
        """
        Process a batch sequentially.

        Returns:
            Counts of acked, retried and rejected messages
        """
        summary = {"acked": 0, "retried": 0, "rejected": 0}

        for message in messages:
            message_id = str(uuid.uuid4())

            try:
                request = parse_complaint_payload(_decode(message.body))
            except ValidationException as e:
                self._logger.warning(
                    "Rejected complaint message",
                    extra={"message_id": message_id, "error": e.message, "fields": e.fields}
                )
                message.ack()
                summary["rejected"] += 1
                continue

            try:
                async with self._engine_factory() as engine:
                    outcome = await engine.process(request.customer_email, request.text)
            except ApplicationException as e:
                self._logger.error(
                    "Complaint message failed, requesting retry",
                    extra={"message_id": message_id, "error_type": type(e).__name__, "error": e.message}
                )
                message.retry()
                summary["retried"] += 1
                continue
            except Exception as e:
                self._logger.error(
                    "Unexpected error processing complaint message, requesting retry",
                    extra={"message_id": message_id, "error_type": type(e).__name__, "error": str(e)}
                )
                message.retry()
                summary["retried"] += 1
                continue

            self._logger.info(
                "Complaint message processed",
                extra={
                    "message_id": message_id,
                    "complaint_id": outcome.complaint_id,
                    "answer_type": outcome.answer_type
                }
            )
            message.ack()
            summary["acked"] += 1

        return summary
