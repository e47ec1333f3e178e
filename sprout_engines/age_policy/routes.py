"""FastAPI routes for the versioned age policy and eligibility checks."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from sprout_engines.age_policy.gate import evaluate
from sprout_engines.age_policy.models import AgePolicyCreate, EligibilityRequest
from sprout_engines.common.error_envelope import error_response
from sprout_engines.common.identity import RequestContext, get_request_context, require_admin
from sprout_engines.runtime import SafetyRuntime, get_runtime

router = APIRouter(prefix="/age-policy", tags=["age-policy"])


@router.get("/active")
def get_active_policy(runtime: SafetyRuntime = Depends(get_runtime)):
    return runtime.policy_service.get_active_policy()


@router.get("/versions")
def list_policy_versions(runtime: SafetyRuntime = Depends(get_runtime)):
    return {"items": runtime.policy_service.list_versions()}


@router.get("/versions/{version}")
def get_policy_version(version: int, runtime: SafetyRuntime = Depends(get_runtime)):
    policy = runtime.policy_service.get_version(version)
    if policy is None:
        error_response(
            code="age_policy.version_not_found",
            message=f"Age policy version {version} not found",
            status_code=404,
            gate="age_gate",
        )
    return policy


@router.post("/versions", status_code=201)
def create_policy_version(
    req: AgePolicyCreate,
    context: RequestContext = Depends(get_request_context),
    runtime: SafetyRuntime = Depends(get_runtime),
):
    require_admin(context)
    return runtime.policy_service.create_version(
        req.policy_json,
        description=req.description,
        created_by=context.user_id,
        ctx=context,
    )


@router.post("/eligibility")
def check_eligibility(req: EligibilityRequest, runtime: SafetyRuntime = Depends(get_runtime)):
    policy = runtime.policy_service.get_active_policy()
    user_age = req.age if req.age is not None else req.age_band
    return evaluate(user_age, req.risk_category, policy)
