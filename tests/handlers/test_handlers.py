"""Tests for the concrete reception handlers."""

import pytest

from reception_workflow.events import WorkflowEvent, WorkflowEventType
from reception_workflow.handlers import (
    AnalyticsHandler,
    AuditLoggingHandler,
    EmailNotificationHandler,
    InsuranceValidationHandler,
    NotificationSendingHandler,
    PatientValidationHandler,
    PaymentProcessingHandler,
    PushNotificationHandler,
    SmsNotificationHandler,
    build_default_handler_registry,
)

T = WorkflowEventType


def _event(event_type: WorkflowEventType = T.PATIENT_VALIDATION, payload=None) -> WorkflowEvent:
    return WorkflowEvent(aggregate_id=42, event_type=event_type, payload=payload, user_id="u1")


class FakeSender:
    def __init__(self):
        self.sent = []

    async def send(self, channel: str, aggregate_id: int, message: str):
        self.sent.append((channel, aggregate_id, message))
        return f"{channel}-receipt"


class TestValidationHandlers:
    """Patient, insurance and payment validation."""

    def test_patient_present(self):
        result = PatientValidationHandler().handle(_event(payload={"patient_id": 7}))

        assert result.success
        assert result.handler_name == "PatientValidationHandler"
        assert result.result_data == {"patient_id": 7}

    def test_patient_missing(self):
        result = PatientValidationHandler().handle(_event(payload={}))

        assert not result.success
        assert result.error_message == "Payload has no patient_id"

    def test_patient_lookup(self):
        handler = PatientValidationHandler(lookup=lambda patient_id: patient_id == 7)

        assert handler.handle(_event(payload={"patient_id": 7})).success
        rejected = handler.handle(_event(payload={"patient_id": 8}))
        assert not rejected.success
        assert rejected.error_message == "Unknown or inactive patient_id: 8"

    def test_insurance_from_object_payload(self):
        class Coverage:
            insurance_id = "INS-1"

        result = InsuranceValidationHandler().handle(_event(T.INSURANCE_VALIDATION, Coverage()))

        assert result.success
        assert result.result_data == {"insurance_id": "INS-1"}

    def test_insurance_without_payload(self):
        result = InsuranceValidationHandler().handle(_event(T.INSURANCE_VALIDATION))
        assert result.error_message == "Payload has no insurance_id"

    @pytest.mark.parametrize("amount", [120, "35.50", 0.01])
    def test_valid_payment(self, amount):
        result = PaymentProcessingHandler().handle(_event(T.PAYMENT_PROCESSING, {"amount": amount}))

        assert result.success
        assert result.result_data == {"amount": float(amount)}

    def test_payment_log_carries_fields(self, log_records):
        PaymentProcessingHandler().handle(_event(T.PAYMENT_PROCESSING, {"amount": 120}))

        accepted = [r for r in log_records if r["message"].startswith("Payment of")]
        assert accepted[0]["extra"]["amount"] == 120.0
        assert accepted[0]["extra"]["aggregate_id"] == 42

    @pytest.mark.parametrize(
        "payload,message",
        [
            ({"amount": 0}, "Payment amount must be positive, got 0.0"),
            ({"amount": -5}, "Payment amount must be positive, got -5.0"),
            ({"amount": "abc"}, "Invalid payment amount: 'abc'"),
            ({}, "Invalid payment amount: None"),
        ],
    )
    def test_invalid_payment(self, payload, message):
        result = PaymentProcessingHandler().handle(_event(T.PAYMENT_PROCESSING, payload))

        assert not result.success
        assert result.error_message == message


class TestNotificationHandlers:
    """Message preparation and channel delivery."""

    def test_prepared_message(self):
        result = NotificationSendingHandler().handle(_event(T.NOTIFICATION_SENDING, {"message": "Please proceed to desk 3"}))
        assert result.result_data == {"message": "Please proceed to desk 3"}

    def test_default_message(self):
        result = NotificationSendingHandler().handle(_event(T.NOTIFICATION_SENDING))
        assert result.result_data == {"message": "Reception 42 updated"}

    @pytest.mark.asyncio
    async def test_channel_without_sender(self):
        result = await EmailNotificationHandler().handle(_event(T.NOTIFICATION_SENDING))

        assert result.success
        assert result.result_data == {"channel": "email", "delivered": False}

    @pytest.mark.asyncio
    async def test_channels_with_sender(self):
        sender = FakeSender()
        event = _event(T.NOTIFICATION_SENDING, {"message": "Ready"})

        results = [await h(sender).handle(event) for h in (EmailNotificationHandler, SmsNotificationHandler, PushNotificationHandler)]

        assert sender.sent == [("email", 42, "Ready"), ("sms", 42, "Ready"), ("push", 42, "Ready")]
        assert [r.result_data["receipt"] for r in results] == ["email-receipt", "sms-receipt", "push-receipt"]
        assert all(r.result_data["delivered"] for r in results)


class TestAuditHandlers:
    """Audit lines and analytics counters."""

    def test_audit_entry(self, log_records):
        event = _event(T.AUDIT_LOGGING)

        result = AuditLoggingHandler().handle(event)

        assert result.success
        assert result.result_data["event_id"] == event.event_id
        assert result.result_data["event_type"] == "AuditLogging"
        audit_lines = [r for r in log_records if r["extra"].get("channel") == "audit"]
        assert len(audit_lines) == 1
        assert "aggregate=42" in audit_lines[0]["message"]

    @pytest.mark.asyncio
    async def test_analytics_counts(self):
        handler = AnalyticsHandler()

        await handler.handle(_event(T.AUDIT_LOGGING))
        result = await handler.handle(_event(T.AUDIT_LOGGING))
        await handler.handle(_event(T.PAYMENT_PROCESSING))

        assert result.result_data == {"event_type": "AuditLogging", "count": 2}
        assert handler.counts == {T.AUDIT_LOGGING: 2, T.PAYMENT_PROCESSING: 1}


class TestDefaultRegistry:
    """The standard handler configuration."""

    def test_handler_counts(self):
        registry = build_default_handler_registry()

        assert registry.get_handler_count(T.PATIENT_VALIDATION) == 2
        assert registry.get_handler_count(T.INSURANCE_VALIDATION) == 2
        assert registry.get_handler_count(T.PAYMENT_PROCESSING) == 2
        assert registry.get_handler_count(T.NOTIFICATION_SENDING) == 4
        assert registry.get_handler_count(T.AUDIT_LOGGING) == 3
        assert registry.get_registered_events() == list(T)

    def test_notification_channels_are_async(self):
        registry = build_default_handler_registry()

        async_names = [type(h).__name__ for h in registry.async_handlers(T.NOTIFICATION_SENDING)]
        assert async_names == ["EmailNotificationHandler", "SmsNotificationHandler", "PushNotificationHandler"]

    def test_lookups_are_wired(self):
        registry = build_default_handler_registry(patient_lookup=lambda patient_id: False)

        patient_handler = registry.sync_handlers(T.PATIENT_VALIDATION)[0]
        assert not patient_handler(_event(payload={"patient_id": 7})).success
