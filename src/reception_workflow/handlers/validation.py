"""Validation handlers for patient, insurance and payment events.

The actual lookups (patient identity, insurance plan catalog) belong to the
host application; handlers receive them as optional callables. Without a
lookup, a handler only checks that the payload carries the identifier it is
responsible for.
"""

from collections.abc import Callable
from typing import Any

from loguru import logger

from reception_workflow.event_bus.core import EventHandler
from reception_workflow.events.types import HandlerResult, WorkflowEvent

Lookup = Callable[[Any], bool]


def _payload_value(event: WorkflowEvent, key: str) -> Any:
    payload = event.payload
    if isinstance(payload, dict):
        return payload.get(key)
    return getattr(payload, key, None)


class _IdentifierValidationHandler(EventHandler):
    """Checks a payload identifier and, when configured, looks it up."""

    field: str = ""

    def __init__(self, lookup: Lookup | None = None):
        self.lookup = lookup

    def handle(self, event: WorkflowEvent) -> HandlerResult:
        value = _payload_value(event, self.field)
        if value in (None, ""):
            return HandlerResult.failed(self.name, f"Payload has no {self.field}")

        if self.lookup is not None and not self.lookup(value):
            logger.warning(
                "{handler}: {field}={value} rejected for aggregate {aggregate_id}",
                handler=self.name,
                field=self.field,
                value=value,
                aggregate_id=event.aggregate_id,
            )
            return HandlerResult.failed(self.name, f"Unknown or inactive {self.field}: {value}")

        logger.info(
            "{handler}: {field}={value} validated for aggregate {aggregate_id}",
            handler=self.name,
            field=self.field,
            value=value,
            aggregate_id=event.aggregate_id,
        )
        return HandlerResult.succeeded(self.name, {self.field: value})


class PatientValidationHandler(_IdentifierValidationHandler):
    """Validates the patient referenced by the reception."""

    field = "patient_id"


class InsuranceValidationHandler(_IdentifierValidationHandler):
    """Validates the insurance coverage referenced by the reception."""

    field = "insurance_id"


class PaymentProcessingHandler(EventHandler):
    """Checks that a payment event carries a positive amount."""

    def handle(self, event: WorkflowEvent) -> HandlerResult:
        amount = _payload_value(event, "amount")
        try:
            value = float(amount)
        except (TypeError, ValueError):
            return HandlerResult.failed(self.name, f"Invalid payment amount: {amount!r}")

        if value <= 0:
            return HandlerResult.failed(self.name, f"Payment amount must be positive, got {value}")

        logger.info("Payment of {amount} accepted for aggregate {aggregate_id}", amount=value, aggregate_id=event.aggregate_id)
        return HandlerResult.succeeded(self.name, {"amount": value})
