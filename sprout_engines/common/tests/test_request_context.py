import pytest
from fastapi import Depends, FastAPI, HTTPException
from fastapi.testclient import TestClient

from sprout_engines.common.identity import RequestContext, get_request_context, require_admin

app = FastAPI()


@app.get("/context")
def _context_sample(context: RequestContext = Depends(get_request_context)) -> dict:
    return {
        "tenant_id": context.tenant_id,
        "user_id": context.user_id,
        "role": context.membership_role,
        "request_id": context.request_id,
        "actor_type": context.actor_type,
    }


client = TestClient(app)


def test_headers_populate_context() -> None:
    resp = client.get(
        "/context",
        headers={"X-Tenant-Id": "t_sprout", "X-User-Id": "u_1", "X-Membership-Role": "admin", "X-Request-Id": "req-1"},
    )
    assert resp.status_code == 200
    assert resp.json() == {
        "tenant_id": "t_sprout",
        "user_id": "u_1",
        "role": "admin",
        "request_id": "req-1",
        "actor_type": "human",
    }


def test_missing_tenant_is_400() -> None:
    resp = client.get("/context")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "X-Tenant-Id header is required"


def test_malformed_tenant_is_400() -> None:
    resp = client.get("/context", headers={"X-Tenant-Id": "Sprout"})
    assert resp.status_code == 400


def test_require_admin() -> None:
    require_admin(RequestContext(tenant_id="t_sprout", user_id="u", membership_role="Owner"))
    require_admin(RequestContext.system())
    with pytest.raises(HTTPException) as exc:
        require_admin(RequestContext(tenant_id="t_sprout", user_id="u", membership_role="member"))
    assert exc.value.status_code == 403


def test_system_context_is_system_actor() -> None:
    ctx = RequestContext.system(env="PROD")
    assert ctx.actor_type == "system"
    assert ctx.env == "prod"
