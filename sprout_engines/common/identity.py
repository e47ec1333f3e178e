"""Shared identity helpers and FastAPI context builder."""
from __future__ import annotations

import os
import re
import uuid
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Header, HTTPException

VALID_TENANT_PATTERN = re.compile(r"^t_[a-z0-9_-]+$")
ADMIN_ROLES = frozenset({"owner", "admin"})


def _default_env() -> str:
    env_value = os.getenv("ENV") or os.getenv("APP_ENV")
    return env_value.lower() if env_value else "dev"


@dataclass
class RequestContext:
    tenant_id: str
    env: Optional[str] = None
    user_id: Optional[str] = None
    membership_role: Optional[str] = None
    is_system: bool = False
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self) -> None:
        if not self.tenant_id:
            raise ValueError("tenant_id is required")
        if not VALID_TENANT_PATTERN.match(self.tenant_id):
            raise ValueError(
                f"tenant_id must match pattern ^t_[a-z0-9_-]+$, got: {self.tenant_id}"
            )
        if not self.request_id:
            raise ValueError("request_id is required")
        self.env = (self.env or _default_env()).lower()

    @property
    def actor_type(self) -> str:
        return "human" if self.user_id and not self.is_system else "system"

    @classmethod
    def system(cls, tenant_id: str = "t_system", env: Optional[str] = None) -> "RequestContext":
        return cls(tenant_id=tenant_id, env=env, is_system=True)


def require_admin(ctx: RequestContext) -> None:
    if ctx.is_system:
        return
    if (ctx.membership_role or "").lower() not in ADMIN_ROLES:
        raise HTTPException(status_code=403, detail="admin role required")


async def get_request_context(
    header_tenant: Optional[str] = Header(default=None, alias="X-Tenant-Id"),
    header_user: Optional[str] = Header(default=None, alias="X-User-Id"),
    header_role: Optional[str] = Header(default=None, alias="X-Membership-Role"),
    header_request_id: Optional[str] = Header(default=None, alias="X-Request-Id"),
) -> RequestContext:
    if not header_tenant:
        raise HTTPException(status_code=400, detail="X-Tenant-Id header is required")
    try:
        return RequestContext(
            tenant_id=header_tenant,
            user_id=header_user,
            membership_role=header_role,
            request_id=header_request_id or uuid.uuid4().hex,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
