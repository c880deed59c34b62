"""Concrete workflow event handlers and the default handler configuration."""

from loguru import logger

from reception_workflow.event_bus import HandlerRegistry
from reception_workflow.events.types import WorkflowEventType
from reception_workflow.handlers.audit import AnalyticsHandler, AuditLoggingHandler
from reception_workflow.handlers.notification import (
    ChannelNotificationHandler,
    EmailNotificationHandler,
    NotificationSender,
    NotificationSendingHandler,
    PushNotificationHandler,
    SmsNotificationHandler,
)
from reception_workflow.handlers.validation import (
    InsuranceValidationHandler,
    Lookup,
    PatientValidationHandler,
    PaymentProcessingHandler,
)

__all__ = [
    "AnalyticsHandler",
    "AuditLoggingHandler",
    "ChannelNotificationHandler",
    "EmailNotificationHandler",
    "InsuranceValidationHandler",
    "NotificationSender",
    "NotificationSendingHandler",
    "PatientValidationHandler",
    "PaymentProcessingHandler",
    "PushNotificationHandler",
    "SmsNotificationHandler",
    "build_default_handler_registry",
]


def build_default_handler_registry(
    patient_lookup: Lookup | None = None,
    insurance_lookup: Lookup | None = None,
    notification_sender: NotificationSender | None = None,
) -> HandlerRegistry:
    """Build the standard reception handler configuration.

    Every validation event is followed by an audit line; notifications fan out
    to email, SMS and push concurrently; audit events are also counted by the
    analytics handler.

    Args:
        patient_lookup: Returns True if a patient id is known
        insurance_lookup: Returns True if an insurance id is active
        notification_sender: Delivers channel notifications

    Returns:
        A registry ready to be passed to ``WorkflowCoordinator``
    """
    logger.debug("Building default reception handler registry")

    audit = AuditLoggingHandler()
    registry = HandlerRegistry()

    registry.on(WorkflowEventType.PATIENT_VALIDATION, PatientValidationHandler(patient_lookup))
    registry.on(WorkflowEventType.PATIENT_VALIDATION, audit)
    registry.on(WorkflowEventType.INSURANCE_VALIDATION, InsuranceValidationHandler(insurance_lookup))
    registry.on(WorkflowEventType.INSURANCE_VALIDATION, audit)
    registry.on(WorkflowEventType.PAYMENT_PROCESSING, PaymentProcessingHandler())
    registry.on(WorkflowEventType.PAYMENT_PROCESSING, audit)
    registry.on(WorkflowEventType.NOTIFICATION_SENDING, NotificationSendingHandler())
    registry.on(WorkflowEventType.AUDIT_LOGGING, audit)

    registry.on_async(WorkflowEventType.NOTIFICATION_SENDING, EmailNotificationHandler(notification_sender))
    registry.on_async(WorkflowEventType.NOTIFICATION_SENDING, SmsNotificationHandler(notification_sender))
    registry.on_async(WorkflowEventType.NOTIFICATION_SENDING, PushNotificationHandler(notification_sender))
    registry.on_async(WorkflowEventType.AUDIT_LOGGING, AuditLoggingHandler())
    registry.on_async(WorkflowEventType.AUDIT_LOGGING, AnalyticsHandler())

    logger.info("Default reception handlers registered")
    return registry
