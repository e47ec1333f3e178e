import pytest
from pydantic import ValidationError

from sprout_engines.common.errors import UnknownIntent
from sprout_engines.messaging.catalog import IntentCatalog, default_catalog
from sprout_engines.messaging.intents import DEFAULT_INTENTS
from sprout_engines.messaging.models import (
    IntentDirection,
    IntentId,
    IntentView,
    MessageIntent,
    TextVariable,
    UserRole,
)


def test_default_catalog_holds_every_intent_once() -> None:
    catalog = default_catalog()
    assert len(catalog) == len(IntentId)
    assert [i.intent for i in catalog.get_all_intents()] == [i.intent for i in DEFAULT_INTENTS]


def test_get_intent_accepts_enum_or_string() -> None:
    catalog = default_catalog()
    assert catalog.get_intent("RUNNING_LATE") is catalog.get_intent(IntentId.RUNNING_LATE)
    assert "CONFIRM_ARRIVAL" in catalog
    assert "SHARE_PHONE" not in catalog


@pytest.mark.parametrize("intent_id", ["SHARE_PHONE", "", None])
def test_get_intent_unknown(intent_id) -> None:
    with pytest.raises(UnknownIntent):
        default_catalog().get_intent(intent_id)


def test_catalog_rejects_duplicates() -> None:
    with pytest.raises(ValueError):
        IntentCatalog([DEFAULT_INTENTS[0], DEFAULT_INTENTS[0]])


def test_intents_for_role_respects_direction() -> None:
    catalog = default_catalog()
    youth = {i.intent for i in catalog.intents_for_role(UserRole.YOUTH)}
    employer = {i.intent for i in catalog.intents_for_role("EMPLOYER")}
    assert IntentId.CONFIRM_COMPLETION in youth
    assert IntentId.CONFIRM_COMPLETION not in employer
    assert IntentId.CONFIRM_LOCATION in youth and IntentId.CONFIRM_LOCATION in employer
    assert all(
        catalog.get_intent(i).direction != IntentDirection.YOUTH_TO_ADULT for i in employer
    )


def test_template_placeholders_must_match_variables() -> None:
    with pytest.raises(ValidationError):
        MessageIntent(
            intent=IntentId.ASK_CLARIFICATION,
            label="Ask",
            description="Ask",
            template="Question: {question} {extra}",
            variables=(TextVariable(name="question", label="Question"),),
        )
    with pytest.raises(ValidationError):
        MessageIntent(
            intent=IntentId.ASK_CLARIFICATION,
            label="Ask",
            description="Ask",
            template="No placeholders",
            variables=(TextVariable(name="question", label="Question"),),
        )


def test_text_variable_default_max_length() -> None:
    assert TextVariable(name="note", label="Note").max_length == 120


def test_intent_view_hides_template() -> None:
    view = IntentView.from_intent(default_catalog().get_intent(IntentId.RUNNING_LATE))
    dumped = view.model_dump()
    assert "template" not in dumped
    assert dumped["variables"][0]["type"] == "number"
    assert dumped["variables"][0]["min_value"] == 1
