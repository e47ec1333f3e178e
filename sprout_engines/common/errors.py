"""Categorical safety errors raised by the age policy and messaging engines.

Every error is a caller/input or configuration error; none are retryable.
The HTTP adapter maps them onto the canonical error envelope using the
``code``, ``http_status`` and ``gate`` carried on each class.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class SafetyError(Exception):
    """Base class for every error surfaced by the safety engines."""

    code = "safety.error"
    http_status = 400
    gate: Optional[str] = None

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    @property
    def user_message(self) -> str:
        return self.message


# ===== Age policy =====


class NoActivePolicy(SafetyError):
    """No ACTIVE age policy exists; bootstrap was skipped or the store is broken."""

    code = "age_policy.no_active_policy"
    http_status = 503
    gate = "age_gate"

    def __init__(self) -> None:
        super().__init__("No active age policy is configured")


class InvalidPolicyShape(SafetyError):
    code = "age_policy.invalid_shape"
    http_status = 422
    gate = "age_gate"


class UnknownRiskCategory(SafetyError):
    code = "age_policy.unknown_risk_category"
    http_status = 422
    gate = "age_gate"

    def __init__(self, risk_category: Any) -> None:
        super().__init__(
            f"Unknown risk category: {risk_category}",
            details={"risk_category": str(risk_category)},
        )
        self.risk_category = risk_category


# ===== Messaging =====


class UnknownIntent(SafetyError):
    code = "messaging.unknown_intent"
    http_status = 404
    gate = "intent_catalog"

    def __init__(self, intent: Any) -> None:
        super().__init__(f"Unknown message intent: {intent}", details={"intent": str(intent)})
        self.intent = intent


class VariableError(SafetyError):
    """Base for errors tied to one submitted template variable."""

    http_status = 422
    gate = "intent_catalog"

    def __init__(self, variable_name: str, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        merged = {"variable": variable_name}
        if details:
            merged.update(details)
        super().__init__(message, details=merged)
        self.variable_name = variable_name


class MissingRequiredVariable(VariableError):
    code = "messaging.missing_required_variable"

    def __init__(self, variable_name: str, label: Optional[str] = None) -> None:
        super().__init__(variable_name, f"{label or variable_name} is required")


class InvalidType(VariableError):
    code = "messaging.invalid_type"

    def __init__(self, variable_name: str, expected: str) -> None:
        super().__init__(
            variable_name,
            f"Field {variable_name} must be {expected}",
            details={"expected": expected},
        )
        self.expected = expected


class InvalidChoice(VariableError):
    code = "messaging.invalid_choice"

    def __init__(self, variable_name: str, options: Any) -> None:
        options = list(options)
        super().__init__(
            variable_name,
            f"Field {variable_name} must be one of: {', '.join(options)}",
            details={"options": options},
        )


class ValueTooLong(VariableError):
    code = "messaging.value_too_long"

    def __init__(self, variable_name: str, max_length: int) -> None:
        super().__init__(
            variable_name,
            f"Field {variable_name} exceeds max length of {max_length}",
            details={"max_length": max_length},
        )
        self.max_length = max_length


class ValueOutOfRange(VariableError):
    code = "messaging.value_out_of_range"

    def __init__(self, variable_name: str, min_value: Optional[float], max_value: Optional[float]) -> None:
        super().__init__(
            variable_name,
            f"Field {variable_name} must be between {min_value} and {max_value}",
            details={"min_value": min_value, "max_value": max_value},
        )


class EmojiOnlyValue(VariableError):
    code = "messaging.emoji_only"

    def __init__(self, variable_name: str) -> None:
        super().__init__(variable_name, "Messages cannot contain only emojis")


class MissingConversationContext(SafetyError):
    code = "messaging.missing_conversation"
    http_status = 422
    gate = "intent_catalog"

    def __init__(self) -> None:
        super().__init__("Messages must be sent within a conversation")


class NoExtraneousVariables(SafetyError):
    code = "messaging.extraneous_variables"
    http_status = 422
    gate = "intent_catalog"

    def __init__(self, names: Any) -> None:
        names = sorted(names)
        super().__init__(f"Unknown field: {', '.join(names)}", details={"variables": names})
        self.names = names


# Gentle copy shown instead of a generic validation error.
CONTACT_INFO_COPY_MINOR = (
    "For your safety, sharing contact information is not allowed. "
    "Please keep all communication on Sprout."
)
CONTACT_INFO_COPY_YOUNG_ADULT = (
    "Please keep all communication on Sprout for your safety. Contact sharing detected."
)
CONTACT_INFO_COPY_DEFAULT = "Sharing contact information is not allowed for safety reasons."


class ContactInfoDetected(SafetyError):
    code = "messaging.contact_info_detected"
    http_status = 422
    gate = "contact_leak"

    def __init__(self, variable_name: str, matched_pattern: str, user_copy: Optional[str] = None) -> None:
        super().__init__(
            f"Field {variable_name} contains prohibited content ({matched_pattern})",
            details={"variable": variable_name, "pattern": matched_pattern},
        )
        self.variable_name = variable_name
        self.matched_pattern = matched_pattern
        self._user_copy = user_copy or CONTACT_INFO_COPY_DEFAULT

    @property
    def user_message(self) -> str:
        return self._user_copy


class LegacyMessageReadOnly(SafetyError):
    code = "messaging.legacy_read_only"
    http_status = 409
    gate = "intent_catalog"

    def __init__(self, message_id: str) -> None:
        super().__init__(
            "Legacy messages are read-only and cannot be replied to",
            details={"message_id": message_id},
        )
