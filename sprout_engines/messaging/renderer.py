"""Structured message renderer.

Validates submitted values against an intent's declared variables and renders
the final text server-side. Free text never reaches the other party except
inside a validated, leak-screened placeholder value.
"""
from __future__ import annotations

import logging
import re
import unicodedata
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Mapping, Optional, Union

from sprout_engines.age_policy.gate import AgeBand, resolve_age
from sprout_engines.common.errors import (
    CONTACT_INFO_COPY_DEFAULT,
    CONTACT_INFO_COPY_MINOR,
    CONTACT_INFO_COPY_YOUNG_ADULT,
    ContactInfoDetected,
    EmojiOnlyValue,
    InvalidChoice,
    InvalidType,
    LegacyMessageReadOnly,
    MissingRequiredVariable,
    NoExtraneousVariables,
    ValueOutOfRange,
    ValueTooLong,
)
from sprout_engines.guardrails.contact_leak.engine import RegexContactLeakDetector
from sprout_engines.guardrails.contact_leak.schemas import ContactLeakDetector
from sprout_engines.messaging.catalog import IntentCatalog
from sprout_engines.messaging.models import (
    PLACEHOLDER_RE,
    ChoiceVariable,
    IntentId,
    MessageIntent,
    MessageRecord,
    NumberVariable,
    RenderedMessage,
    TextVariable,
)

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")

# Decimal exponent bound for submitted numbers, either direction.
MAX_NUMBER_EXPONENT = 15

# Joiners, variation selectors and the keycap mark that glue emoji sequences together.
_EMOJI_MARKS = frozenset("\u200d\ufe0e\ufe0f\u20e3")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _is_emoji_char(ch: str) -> bool:
    # Skin-tone modifiers are category Sk; every pictograph is So.
    return ch in _EMOJI_MARKS or unicodedata.category(ch) == "So" or "\U0001f3fb" <= ch <= "\U0001f3ff"


def is_emoji_only(text: str) -> bool:
    visible = [ch for ch in text if not ch.isspace()]
    return bool(visible) and all(_is_emoji_char(ch) for ch in visible)


def _normalise_number(var: NumberVariable, value: Any) -> str:
    if isinstance(value, bool):
        raise InvalidType(var.name, "a number")
    try:
        if isinstance(value, int):
            number = Decimal(value)
        elif isinstance(value, float):
            number = Decimal(str(value))
        elif isinstance(value, str):
            number = Decimal(value.strip())
        else:
            raise InvalidType(var.name, "a number")
    except InvalidOperation as exc:
        raise InvalidType(var.name, "a number") from exc
    if not number.is_finite():
        raise InvalidType(var.name, "a number")
    if number and abs(number.adjusted()) > MAX_NUMBER_EXPONENT:
        raise InvalidType(var.name, f"a number with at most {MAX_NUMBER_EXPONENT} digits")
    if var.integer and number != number.to_integral_value():
        raise InvalidType(var.name, "a whole number")
    if (var.min_value is not None and number < Decimal(str(var.min_value))) or (
        var.max_value is not None and number > Decimal(str(var.max_value))
    ):
        raise ValueOutOfRange(var.name, var.min_value, var.max_value)
    text = str(int(number)) if var.integer else format(number.normalize(), "f")
    if var.max_length and len(text) > var.max_length:
        raise ValueTooLong(var.name, var.max_length)
    return text


def _normalise_text(var: TextVariable, value: Any) -> str:
    if not isinstance(value, str):
        raise InvalidType(var.name, "text")
    # Collapsed here so the screened value is exactly the substituted one.
    text = _WHITESPACE_RE.sub(" ", value).strip()
    if len(text) > var.max_length:
        raise ValueTooLong(var.name, var.max_length)
    if is_emoji_only(text):
        raise EmojiOnlyValue(var.name)
    return text


def _normalise_choice(var: ChoiceVariable, value: Any) -> str:
    if not isinstance(value, str) or value.strip() not in var.options:
        raise InvalidChoice(var.name, var.options)
    text = value.strip()
    if var.max_length and len(text) > var.max_length:
        raise ValueTooLong(var.name, var.max_length)
    return text


def contact_info_copy(age: Union[int, AgeBand, str, None]) -> str:
    """User-facing copy for a blocked message, softer for young adults than for minors."""
    floor, _ = resolve_age(age)
    if floor is None:
        return CONTACT_INFO_COPY_DEFAULT
    if floor < 18:
        return CONTACT_INFO_COPY_MINOR
    if floor <= 20:
        return CONTACT_INFO_COPY_YOUNG_ADULT
    return CONTACT_INFO_COPY_DEFAULT


def substitute(template: str, values: Mapping[str, str]) -> str:
    """Single-pass literal substitution; placeholder syntax inside values is not expanded.

    Values arrive already collapsed, so the final tidy only touches template
    whitespace and the gaps left by omitted optional values.
    """
    rendered = PLACEHOLDER_RE.sub(lambda m: values.get(m.group(1), ""), template)
    return _WHITESPACE_RE.sub(" ", rendered).strip()


class MessageRenderer:
    def __init__(
        self,
        catalog: IntentCatalog,
        detector: Optional[ContactLeakDetector] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._catalog = catalog
        self._detector = detector or RegexContactLeakDetector()
        self._clock = clock or _utc_now

    def validate(self, intent: MessageIntent, submitted: Mapping[str, Any]) -> Dict[str, str]:
        """Return normalised values keyed by variable name, raising on the first violation."""
        extraneous = set(submitted) - {v.name for v in intent.variables}
        if extraneous:
            raise NoExtraneousVariables(extraneous)

        values: Dict[str, str] = {}
        for var in intent.variables:
            value = submitted.get(var.name)
            if _is_blank(value):
                if var.required:
                    raise MissingRequiredVariable(var.name, var.label)
                continue
            if isinstance(var, NumberVariable):
                values[var.name] = _normalise_number(var, value)
            elif isinstance(var, ChoiceVariable):
                values[var.name] = _normalise_choice(var, value)
            else:
                values[var.name] = _normalise_text(var, value)
        return values

    def screen(
        self,
        intent: MessageIntent,
        values: Mapping[str, str],
        sender_age: Union[int, AgeBand, str, None] = None,
    ) -> None:
        for var in intent.variables:
            if not isinstance(var, TextVariable) or var.name not in values:
                continue
            findings = self._detector.scan(values[var.name])
            if findings:
                kind = findings[0].kind.value
                logger.warning("contact info blocked in %s.%s (%s)", intent.intent.value, var.name, kind)
                raise ContactInfoDetected(var.name, kind, user_copy=contact_info_copy(sender_age))

    def render(
        self,
        intent_id: Union[IntentId, str],
        submitted: Optional[Mapping[str, Any]] = None,
        *,
        sender_id: Optional[str] = None,
        job_id: Optional[str] = None,
        conversation_id: Optional[str] = None,
        reply_to: Optional[MessageRecord] = None,
        sender_age: Union[int, AgeBand, str, None] = None,
    ) -> RenderedMessage:
        intent = self._catalog.get_intent(intent_id)
        if reply_to is not None and reply_to.is_legacy:
            raise LegacyMessageReadOnly(reply_to.id)
        values = self.validate(intent, submitted or {})
        self.screen(intent, values, sender_age=sender_age)
        return RenderedMessage(
            intent=intent.intent,
            rendered_text=substitute(intent.template, values),
            variables=values,
            sender_id=sender_id,
            job_id=job_id,
            conversation_id=conversation_id,
            created_at=self._clock(),
            is_legacy=False,
        )
