"""Contact-info leak detection schemas."""
from __future__ import annotations

from enum import Enum
from typing import List, Protocol

from pydantic import BaseModel


class FindingKind(str, Enum):
    URL = "URL"
    PHONE = "PHONE"
    EMAIL = "EMAIL"
    SOCIAL_HANDLE = "SOCIAL_HANDLE"


class Finding(BaseModel):
    kind: FindingKind
    matched_text: str
    start: int
    end: int


class ContactLeakRequest(BaseModel):
    text: str


class ContactLeakResult(BaseModel):
    findings: List[Finding]
    kinds: List[FindingKind]
    blocked: bool


class ContactLeakDetector(Protocol):
    def scan(self, text: str) -> List[Finding]: ...
