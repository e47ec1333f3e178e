"""Contact-info leak detector (regex-based).

Tuned for precision over recall: a missed handle is preferable to blocking
ordinary conversation. Findings are never redacted; callers reject the
submission and ask the sender to rephrase.
"""
from __future__ import annotations

import re
from typing import List, Optional, Pattern, Sequence, Tuple

from sprout_engines.guardrails.contact_leak.schemas import (
    ContactLeakDetector,
    ContactLeakRequest,
    ContactLeakResult,
    Finding,
    FindingKind,
)

DEFAULT_TLDS: Tuple[str, ...] = (
    "com", "org", "net", "no", "io", "co", "uk", "de", "fr", "es", "se", "dk",
    "fi", "nl", "be", "ch", "at", "ie", "eu", "info", "biz", "app", "dev", "ly", "gg", "tv",
)
SOCIAL_PLATFORMS: Tuple[str, ...] = (
    "snapchat", "snap", "instagram", "insta", "ig", "tiktok", "telegram",
    "discord", "whatsapp", "kik", "facebook", "fb",
)

EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
SCHEME_URL_RE = re.compile(r"\b(?:https?://|www\.)[^\s<>\"']+", re.IGNORECASE)
PHONE_RE = re.compile(r"(?<![\w+])\+?\d(?:[\s().-]{0,2}\d){6,}(?!\w)")
MENTION_RE = re.compile(r"(?<![\w@.])@[A-Za-z0-9_](?:[A-Za-z0-9_.]{0,29}[A-Za-z0-9_])?")

# Digit runs that look like dates, not phone numbers.
_DATE_LIKE = (
    re.compile(r"\d{4}-\d{2}-\d{2}"),
    re.compile(r"\d{1,2}[./-]\d{1,2}[./-]\d{2,4}"),
)
_TIME_MENTION = re.compile(r"@\d{1,2}(?::\d{2})?(?:am|pm)?", re.IGNORECASE)
_TRAILING_PUNCT = ".,!?;:)]}'\""


def _bare_domain_re(tlds: Sequence[str]) -> Pattern[str]:
    label = r"[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?"
    return re.compile(
        rf"(?<![\w@.-]){label}(?:\.{label})*\.(?:{'|'.join(tlds)})\b(?:/[^\s<>\"']*)?",
        re.IGNORECASE,
    )


def _platform_handle_re(platforms: Sequence[str]) -> Pattern[str]:
    return re.compile(
        rf"\b(?:{'|'.join(platforms)})\s*[:=]\s*@?[A-Za-z0-9_.]{{2,}}",
        re.IGNORECASE,
    )


def _overlaps(start: int, end: int, taken: List[Tuple[int, int]]) -> bool:
    return any(start < t_end and t_start < end for t_start, t_end in taken)


class RegexContactLeakDetector:
    """Pattern-based ``ContactLeakDetector``; e-mail matches take precedence on overlap."""

    def __init__(
        self,
        tlds: Optional[Sequence[str]] = None,
        platforms: Optional[Sequence[str]] = None,
    ) -> None:
        self._bare_domain = _bare_domain_re(tlds or DEFAULT_TLDS)
        self._platform_handle = _platform_handle_re(platforms or SOCIAL_PLATFORMS)

    def _candidates(self, text: str) -> List[Tuple[FindingKind, int, int]]:
        found: List[Tuple[FindingKind, int, int]] = []
        for m in EMAIL_RE.finditer(text):
            found.append((FindingKind.EMAIL, m.start(), m.end()))
        for m in SCHEME_URL_RE.finditer(text):
            end = m.end()
            while end > m.start() and text[end - 1] in _TRAILING_PUNCT:
                end -= 1
            found.append((FindingKind.URL, m.start(), end))
        for m in self._bare_domain.finditer(text):
            found.append((FindingKind.URL, m.start(), m.end()))
        for m in PHONE_RE.finditer(text):
            if any(p.fullmatch(m.group(0)) for p in _DATE_LIKE):
                continue
            found.append((FindingKind.PHONE, m.start(), m.end()))
        for m in self._platform_handle.finditer(text):
            found.append((FindingKind.SOCIAL_HANDLE, m.start(), m.end()))
        for m in MENTION_RE.finditer(text):
            if _TIME_MENTION.fullmatch(m.group(0)):
                continue
            found.append((FindingKind.SOCIAL_HANDLE, m.start(), m.end()))
        return found

    def scan(self, text: str) -> List[Finding]:
        if not text or not isinstance(text, str):
            return []
        taken: List[Tuple[int, int]] = []
        findings: List[Finding] = []
        for kind, start, end in self._candidates(text):
            if _overlaps(start, end, taken):
                continue
            taken.append((start, end))
            findings.append(Finding(kind=kind, matched_text=text[start:end], start=start, end=end))
        return sorted(findings, key=lambda f: f.start)


def run(request: ContactLeakRequest, detector: Optional[ContactLeakDetector] = None) -> ContactLeakResult:
    findings = (detector or RegexContactLeakDetector()).scan(request.text or "")
    kinds: List[FindingKind] = []
    for finding in findings:
        if finding.kind not in kinds:
            kinds.append(finding.kind)
    return ContactLeakResult(findings=findings, kinds=kinds, blocked=bool(findings))
