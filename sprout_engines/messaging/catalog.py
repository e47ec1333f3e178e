from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Tuple, Union

from sprout_engines.common.errors import UnknownIntent
from sprout_engines.messaging.intents import DEFAULT_INTENTS
from sprout_engines.messaging.models import IntentDirection, IntentId, MessageIntent, UserRole

_ROLE_DIRECTIONS = {
    UserRole.YOUTH: {IntentDirection.ANY, IntentDirection.YOUTH_TO_ADULT},
    UserRole.EMPLOYER: {IntentDirection.ANY, IntentDirection.ADULT_TO_YOUTH},
    UserRole.ADMIN: {IntentDirection.ANY, IntentDirection.ADULT_TO_YOUTH},
}


class IntentCatalog:
    """Closed, read-only set of message intents, built once at startup."""

    def __init__(self, intents: Iterable[MessageIntent]) -> None:
        by_id = {}
        for intent in intents:
            if intent.intent in by_id:
                raise ValueError(f"duplicate intent in catalog: {intent.intent.value}")
            by_id[intent.intent] = intent
        self._by_id: Mapping[IntentId, MessageIntent] = MappingProxyType(by_id)
        self._ordered: Tuple[MessageIntent, ...] = tuple(by_id.values())

    def get_all_intents(self) -> Tuple[MessageIntent, ...]:
        return self._ordered

    def get_intent(self, intent_id: Union[IntentId, str, None]) -> MessageIntent:
        try:
            key = IntentId(intent_id)
        except ValueError as exc:
            raise UnknownIntent(intent_id) from exc
        intent = self._by_id.get(key)
        if intent is None:
            raise UnknownIntent(intent_id)
        return intent

    def intents_for_role(self, role: Union[UserRole, str]) -> Tuple[MessageIntent, ...]:
        allowed = _ROLE_DIRECTIONS[UserRole(role)]
        return tuple(i for i in self._ordered if i.direction in allowed)

    def __contains__(self, intent_id: object) -> bool:
        try:
            return IntentId(intent_id) in self._by_id
        except ValueError:
            return False

    def __len__(self) -> int:
        return len(self._ordered)


def default_catalog(extra: Optional[Iterable[MessageIntent]] = None) -> IntentCatalog:
    return IntentCatalog(list(DEFAULT_INTENTS) + list(extra or ()))
