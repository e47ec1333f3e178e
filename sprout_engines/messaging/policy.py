"""Conversation safety gates.

Pure checks over snapshots supplied by the caller; no lookups happen here.
A failed check is an ordinary result, not an exception, so callers can show
the reason and decide how to respond.
"""
from __future__ import annotations

from enum import Enum
from typing import FrozenSet, Iterable, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict

from sprout_engines.age_policy.gate import AgeBand, evaluate, resolve_age
from sprout_engines.age_policy.models import AgePolicy, RiskCategory
from sprout_engines.messaging.models import IntentDirection, MessageIntent, UserRole

BlockedPairs = Iterable[Tuple[str, str]]


class SafetyCheckResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    allowed: bool
    reason: Optional[str] = None
    code: Optional[str] = None


ALLOWED = SafetyCheckResult(allowed=True)


class JobStatus(str, Enum):
    OPEN = "OPEN"
    ASSIGNED = "ASSIGNED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ConversationStatus(str, Enum):
    ACTIVE = "ACTIVE"
    FROZEN = "FROZEN"
    CLOSED = "CLOSED"


class Participant(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    role: UserRole
    age: Union[int, AgeBand, None] = None
    is_verified_adult: bool = False
    do_not_disturb: bool = False

    @property
    def is_adult_role(self) -> bool:
        return self.role in (UserRole.EMPLOYER, UserRole.ADMIN)


class JobSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    status: JobStatus = JobStatus.OPEN
    is_paused: bool = False
    risk_category: RiskCategory = RiskCategory.LOW_RISK
    minimum_age: Optional[int] = None


class ConversationSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    participant_ids: Tuple[str, str]
    status: ConversationStatus = ConversationStatus.ACTIVE
    job_id: Optional[str] = None


def _blocked(a: str, b: str, blocked_pairs: BlockedPairs) -> bool:
    pairs: FrozenSet[Tuple[str, str]] = frozenset(tuple(p) for p in blocked_pairs)
    return (a, b) in pairs or (b, a) in pairs


def _is_minor(participant: Participant) -> bool:
    # An unknown age counts as a minor.
    floor, _ = resolve_age(participant.age)
    return floor is None or floor < 18


def _age_restricted(youth: Participant, job: JobSnapshot, policy: AgePolicy) -> bool:
    decision = evaluate(youth.age, job.risk_category, policy)
    if not decision.eligible:
        return True
    return job.minimum_age is not None and (decision.age_floor or 0) < job.minimum_age


def can_initiate_conversation(
    initiator: Participant,
    recipient: Participant,
    job: JobSnapshot,
    blocked_pairs: BlockedPairs = (),
    policy: Optional[AgePolicy] = None,
) -> SafetyCheckResult:
    if job.is_paused or job.status == JobStatus.CANCELLED:
        return SafetyCheckResult(allowed=False, reason="This job is not available", code="JOB_UNAVAILABLE")

    if _blocked(initiator.id, recipient.id, blocked_pairs):
        return SafetyCheckResult(allowed=False, reason="Cannot message this user", code="USER_BLOCKED")

    if recipient.do_not_disturb:
        return SafetyCheckResult(
            allowed=False,
            reason="This user is not accepting messages at this time",
            code="DO_NOT_DISTURB",
        )

    if initiator.is_adult_role and recipient.role == UserRole.YOUTH and _is_minor(recipient):
        if not initiator.is_verified_adult:
            return SafetyCheckResult(
                allowed=False,
                reason="BankID verification is required to contact youth workers.",
                code="BANKID_REQUIRED",
            )

    if policy is not None:
        for person in (initiator, recipient):
            if person.role == UserRole.YOUTH and _age_restricted(person, job, policy):
                return SafetyCheckResult(
                    allowed=False,
                    reason="This job is not available for this age group",
                    code="AGE_RESTRICTED",
                )

    return ALLOWED


def can_send_message(
    sender_id: str,
    conversation: ConversationSnapshot,
    blocked_pairs: BlockedPairs = (),
) -> SafetyCheckResult:
    if sender_id not in conversation.participant_ids:
        return SafetyCheckResult(allowed=False, reason="Not a participant", code="NOT_PARTICIPANT")

    if conversation.status == ConversationStatus.FROZEN:
        return SafetyCheckResult(
            allowed=False,
            reason="This conversation has been frozen due to a safety report",
            code="CONVERSATION_FROZEN",
        )
    if conversation.status == ConversationStatus.CLOSED:
        return SafetyCheckResult(
            allowed=False,
            reason="This conversation has been closed",
            code="CONVERSATION_CLOSED",
        )

    blocked_pairs = list(blocked_pairs)
    for other in conversation.participant_ids:
        if other != sender_id and _blocked(sender_id, other, blocked_pairs):
            return SafetyCheckResult(
                allowed=False,
                reason="Cannot send messages to this user",
                code="USER_BLOCKED",
            )
    return ALLOWED


def can_use_intent(sender_role: Union[UserRole, str], intent: MessageIntent) -> SafetyCheckResult:
    role = UserRole(sender_role)
    if intent.direction == IntentDirection.ADULT_TO_YOUTH and role == UserRole.YOUTH:
        return SafetyCheckResult(
            allowed=False,
            reason="This message type is for employers only",
            code="DIRECTION_RESTRICTED",
        )
    if intent.direction == IntentDirection.YOUTH_TO_ADULT and role != UserRole.YOUTH:
        return SafetyCheckResult(
            allowed=False,
            reason="This message type is for youth workers only",
            code="DIRECTION_RESTRICTED",
        )
    return ALLOWED
