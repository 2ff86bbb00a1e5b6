"""
FastAPI Endpoints for Claim Processing

Provides REST API for submitting claims and acting on them per role.

The acting role is taken from the request. It is a demo stand-in for an
authenticated identity and must not be treated as authorization.
"""
import logging
from typing import List, NoReturn, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, Query, Request, UploadFile, status
from pydantic import BaseModel, ValidationError

from claimflow.agents.vision_agent import DamageImage
from claimflow.core.errors import (
    ClaimNotFoundError,
    ClaimValidationError,
    InvalidTransitionError,
    TerminalStateError,
    WorkflowError,
)
from claimflow.core.models import Claim, ClaimCreate, Estimate
from claimflow.core.states import ClaimIntent, ClaimStatus, UserRole
from claimflow.state_machine.engine import WorkflowEngine

logger = logging.getLogger(__name__)

# Initialize router
router = APIRouter(prefix="/claims", tags=["claims"])


def get_engine(request: Request) -> WorkflowEngine:
    """The session's workflow engine, created at application startup."""
    return request.app.state.engine


def _raise_http(error: Exception) -> NoReturn:
    """Translate a workflow error into the matching HTTP error."""
    if isinstance(error, ClaimNotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, (InvalidTransitionError, TerminalStateError)):
        code = status.HTTP_409_CONFLICT
    elif isinstance(error, ClaimValidationError):
        code = status.HTTP_422_UNPROCESSABLE_ENTITY
    else:
        code = status.HTTP_400_BAD_REQUEST
    raise HTTPException(status_code=code, detail=error.to_dict())


class ClaimResponse(BaseModel):
    """Response model for claim operations."""
    claim: Claim
    message: str
    valid_intents: List[ClaimIntent]
    active_estimate: Optional[Estimate] = None


class TransitionRequest(BaseModel):
    """Request model for a status change."""
    role: UserRole
    intent: ClaimIntent
    reason: Optional[str] = None


class ApproveRequest(BaseModel):
    role: UserRole = UserRole.INSURANCE_AGENT


class RejectRequest(BaseModel):
    role: UserRole = UserRole.INSURANCE_AGENT
    reason: str


class EstimateProposalRequest(BaseModel):
    """Request model for a negotiated estimate."""
    role: UserRole
    total_amount: float
    justification: str


class EstimateReviewRequest(BaseModel):
    total_amount: float
    justification: str


class EstimateReviewResponse(BaseModel):
    claim_id: str
    verdict: str


class CommentRequest(BaseModel):
    role: UserRole
    text: str
    author_name: Optional[str] = None


def _respond(engine: WorkflowEngine, claim: Claim, message: str, role: UserRole) -> ClaimResponse:
    return ClaimResponse(
        claim=claim,
        message=message,
        valid_intents=engine.state_machine.get_valid_intents(claim, role),
        active_estimate=claim.active_estimate()
    )


@router.post("/", response_model=ClaimResponse, status_code=status.HTTP_201_CREATED)
async def create_claim(
    background_tasks: BackgroundTasks,
    policy_number: str = Form(...),
    vehicle_model: str = Form(...),
    vehicle_year: str = Form(...),
    accident_details: str = Form(...),
    policyholder_name: str = Form("Current User"),
    location: Optional[str] = Form(None),
    images: Optional[List[UploadFile]] = File(None, description="Photos of the vehicle damage"),
    engine: WorkflowEngine = Depends(get_engine)
) -> ClaimResponse:
    """
    Submit a new claim.

    The claim is returned in AI Review; damage analysis and repair shop
    search run in the background and move it to Estimated.
    """
    damage_images = []
    for photo in images or []:
        if not photo.content_type or not photo.content_type.startswith("image/"):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"File {photo.filename} must be an image (JPEG, PNG, etc.)"
            )
        damage_images.append(DamageImage(data=await photo.read(), mime_type=photo.content_type))

    try:
        data = ClaimCreate(
            policy_number=policy_number,
            policyholder_name=policyholder_name,
            vehicle_model=vehicle_model,
            vehicle_year=vehicle_year,
            accident_details=accident_details,
            location=location
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.errors(include_url=False)
        )
    claim = engine.create_claim(data, damage_images)
    background_tasks.add_task(engine.process_intake, claim.id, damage_images, data.location)

    logger.info(f"Claim {claim.id} queued for AI review with {len(damage_images)} image(s)")

    return _respond(
        engine, claim, f"Claim created successfully with ID {claim.id}", UserRole.POLICYHOLDER
    )


@router.get("/", response_model=List[Claim])
async def list_claims(
    q: Optional[str] = None,
    claim_status: Optional[ClaimStatus] = Query(None, alias="status"),
    engine: WorkflowEngine = Depends(get_engine)
) -> List[Claim]:
    """
    List claims, most recent first, optionally searching by policy number or id.
    """
    return engine.list_claims(query=q, status=claim_status)


@router.get("/{claim_id}", response_model=ClaimResponse)
async def get_claim(
    claim_id: str,
    role: UserRole = UserRole.POLICYHOLDER,
    engine: WorkflowEngine = Depends(get_engine)
) -> ClaimResponse:
    """
    Get details of a specific claim and the actions open to `role`.
    """
    try:
        claim = engine.get_claim(claim_id)
    except ClaimNotFoundError as e:
        _raise_http(e)
    return _respond(engine, claim, f"Claim {claim_id} retrieved", role)


@router.post("/{claim_id}/transitions", response_model=ClaimResponse)
async def apply_transition(
    claim_id: str,
    request: TransitionRequest,
    engine: WorkflowEngine = Depends(get_engine)
) -> ClaimResponse:
    """
    Apply a status intent (receive vehicle, complete repair, confirm pickup, ...).
    """
    try:
        previous = engine.get_claim(claim_id).status
        claim = engine.apply_transition(claim_id, request.role, request.intent, request.reason)
    except (ClaimNotFoundError, WorkflowError) as e:
        _raise_http(e)
    return _respond(
        engine, claim,
        f"Claim moved from {previous.value} to {claim.status.value}",
        request.role
    )


@router.post("/{claim_id}/ai-review", response_model=ClaimResponse)
async def retry_ai_review(
    claim_id: str,
    background_tasks: BackgroundTasks,
    location: Optional[str] = None,
    engine: WorkflowEngine = Depends(get_engine)
) -> ClaimResponse:
    """
    Re-run AI review on the stored photos of a claim that fell back to Submitted.
    """
    try:
        claim = engine.requeue_for_ai_review(claim_id)
    except (ClaimNotFoundError, WorkflowError) as e:
        _raise_http(e)
    background_tasks.add_task(engine.process_intake, claim_id, (), location)
    return _respond(
        engine, claim, f"Claim {claim_id} queued for AI review", UserRole.POLICYHOLDER
    )


@router.post("/{claim_id}/approve", response_model=ClaimResponse)
async def approve_estimate(
    claim_id: str,
    request: Optional[ApproveRequest] = None,
    engine: WorkflowEngine = Depends(get_engine)
) -> ClaimResponse:
    """
    Insurance agent approves the current estimate.
    """
    role = request.role if request else UserRole.INSURANCE_AGENT
    try:
        claim = engine.approve_estimate(claim_id, role)
    except (ClaimNotFoundError, WorkflowError) as e:
        _raise_http(e)
    return _respond(engine, claim, f"Estimate approved by {role.value}", role)


@router.post("/{claim_id}/reject", response_model=ClaimResponse)
async def reject_claim(
    claim_id: str,
    request: RejectRequest,
    engine: WorkflowEngine = Depends(get_engine)
) -> ClaimResponse:
    """
    Insurance agent rejects the claim with a reason.
    """
    try:
        claim = engine.reject_claim(claim_id, request.reason, request.role)
    except (ClaimNotFoundError, WorkflowError) as e:
        _raise_http(e)
    return _respond(
        engine, claim, f"Claim rejected by {request.role.value}. Reason: {request.reason}", request.role
    )


@router.post("/{claim_id}/estimates", response_model=ClaimResponse)
async def propose_estimate(
    claim_id: str,
    request: EstimateProposalRequest,
    engine: WorkflowEngine = Depends(get_engine)
) -> ClaimResponse:
    """
    Repair shop or insurance agent proposes a new estimate.
    """
    try:
        claim = engine.propose_estimate(
            claim_id, request.role, request.total_amount, request.justification
        )
    except (ClaimNotFoundError, WorkflowError) as e:
        _raise_http(e)
    return _respond(engine, claim, claim.comments[-1].text, request.role)


@router.post("/{claim_id}/estimate-review", response_model=EstimateReviewResponse)
async def review_estimate(
    claim_id: str,
    request: EstimateReviewRequest,
    engine: WorkflowEngine = Depends(get_engine)
) -> EstimateReviewResponse:
    """
    Ask the AI judge whether a proposed amount is reasonable before posting it.
    """
    try:
        verdict = await engine.review_estimate_proposal(
            claim_id, request.total_amount, request.justification
        )
    except (ClaimNotFoundError, WorkflowError) as e:
        _raise_http(e)
    return EstimateReviewResponse(claim_id=claim_id, verdict=verdict)


@router.post("/{claim_id}/comments", response_model=ClaimResponse)
async def add_comment(
    claim_id: str,
    request: CommentRequest,
    engine: WorkflowEngine = Depends(get_engine)
) -> ClaimResponse:
    """
    Append a comment to the claim's activity feed.
    """
    try:
        claim = engine.add_comment(claim_id, request.role, request.text, request.author_name)
    except (ClaimNotFoundError, WorkflowError) as e:
        _raise_http(e)
    return _respond(engine, claim, "Comment added", request.role)
