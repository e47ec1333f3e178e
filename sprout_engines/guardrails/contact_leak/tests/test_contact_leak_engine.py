import pytest

from sprout_engines.guardrails.contact_leak.engine import RegexContactLeakDetector, run
from sprout_engines.guardrails.contact_leak.schemas import ContactLeakRequest, ContactLeakResult, FindingKind

detector = RegexContactLeakDetector()


def _kinds(text: str) -> list:
    return [f.kind for f in detector.scan(text)]


@pytest.mark.parametrize(
    "text",
    ["call me at 555-123-4567", "reach me at a@b.com", "http://example.com"],
)
def test_contact_info_is_found(text: str) -> None:
    assert detector.scan(text)


def test_ordinary_sentence_is_clean() -> None:
    assert detector.scan("Looking forward to Saturday!") == []


def test_email_wins_over_embedded_domain() -> None:
    findings = detector.scan("email me at jo.smith@example.com")
    assert [f.kind for f in findings] == [FindingKind.EMAIL]
    assert findings[0].matched_text == "jo.smith@example.com"


def test_url_trailing_punctuation_is_not_part_of_match() -> None:
    findings = detector.scan("see www.example.com/profile.")
    assert findings[0].kind == FindingKind.URL
    assert findings[0].matched_text == "www.example.com/profile"


def test_bare_domain_is_a_url() -> None:
    assert _kinds("find me on example.org") == [FindingKind.URL]


def test_international_phone_number() -> None:
    assert _kinds("call me on +47 912 34 567") == [FindingKind.PHONE]


def test_platform_handles() -> None:
    assert _kinds("add me on snap: coolkid_99") == [FindingKind.SOCIAL_HANDLE]
    assert _kinds("dm @cool.kid") == [FindingKind.SOCIAL_HANDLE]


@pytest.mark.parametrize(
    "text",
    [
        "I can start at 3pm on Monday",
        "Meet @3pm by the gate",
        "The job is on 2024-05-01",
        "I have 2 years of experience",
        "I'm running 15 minutes late",
        "It's at the front door",
    ],
)
def test_everyday_text_is_not_flagged(text: str) -> None:
    assert detector.scan(text) == []


def test_empty_text() -> None:
    assert detector.scan("") == []


def test_findings_are_ordered_by_position() -> None:
    findings = detector.scan("mail a@b.com or visit example.org")
    assert [f.kind for f in findings] == [FindingKind.EMAIL, FindingKind.URL]
    assert findings[0].start < findings[1].start


def test_run_reports_blocked_and_distinct_kinds() -> None:
    res = run(ContactLeakRequest(text="a@b.com, c@d.com or example.org"))
    assert isinstance(res, ContactLeakResult)
    assert res.blocked is True
    assert res.kinds == [FindingKind.EMAIL, FindingKind.URL]
    assert len(res.findings) == 3


def test_run_clean_text() -> None:
    res = run(ContactLeakRequest(text="Thanks, see you then"))
    assert res.blocked is False
    assert res.findings == [] and res.kinds == []
