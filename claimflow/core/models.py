"""
Claim Pydantic Models

Defines the claim record, its value objects and the intake payload.
"""
from datetime import datetime, timedelta, timezone
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from .states import ClaimStatus, EstimateSource, UserRole


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def next_timestamp(previous: Optional[datetime] = None) -> datetime:
    """Current time, nudged forward so it never goes backwards from `previous`."""
    now = utcnow()
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now


class Estimate(BaseModel):
    """A costed repair proposal with a declared author."""
    model_config = ConfigDict(frozen=True)

    total_cost: float = Field(..., ge=0, description="Total repair cost in USD")
    labor_cost: float = Field(..., ge=0, description="Labor share of the total")
    parts_cost: float = Field(..., ge=0, description="Parts share of the total")
    details: str = Field(default="", description="Free-text repair details or justification")
    source: EstimateSource = Field(..., description="Who authored the estimate")

    @property
    def is_balanced(self) -> bool:
        """Whether labor and parts add up to the total (to the cent)."""
        return round(self.labor_cost + self.parts_cost, 2) == round(self.total_cost, 2)


class Comment(BaseModel):
    """Entry in the claim activity feed."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid4().hex, description="Unique within a claim")
    author_role: UserRole
    author_name: str
    text: str = Field(..., min_length=1)
    timestamp: datetime = Field(default_factory=utcnow)


class RepairShopSuggestion(BaseModel):
    """A repair shop proposed by the AI gateway."""
    model_config = ConfigDict(frozen=True)

    name: str
    address: str
    rating: Optional[str] = None
    website_uri: Optional[str] = None


class ClaimCreate(BaseModel):
    """Request model for submitting a new claim."""
    model_config = ConfigDict(str_strip_whitespace=True)

    policy_number: str = Field(..., min_length=1, description="Policy the claim is filed against")
    policyholder_name: str = Field(default="Current User", min_length=1)
    vehicle_model: str = Field(..., min_length=1)
    vehicle_year: str = Field(..., min_length=1)
    accident_details: str = Field(..., min_length=1, description="What happened")
    location: Optional[str] = Field(
        default=None,
        description="Where to look for repair shops; falls back to the configured default"
    )

    @property
    def vehicle_info(self) -> str:
        return f"{self.vehicle_year} {self.vehicle_model}"


class Claim(BaseModel):
    """
    Auto Damage Claim Record

    The aggregate root tracked through the workflow. Status changes only
    through ClaimStateMachine; comments are append-only.
    """
    id: str = Field(default_factory=lambda: str(uuid4()), description="Unique claim identifier")
    policy_number: str
    policyholder_name: str
    vehicle_model: str
    vehicle_year: str
    accident_details: str
    damage_images: List[str] = Field(
        default_factory=list,
        description="Base64 encoded damage photos, in upload order"
    )
    status: ClaimStatus = Field(default=ClaimStatus.SUBMITTED)
    status_history: List[ClaimStatus] = Field(
        default_factory=list,
        description="Statuses the claim has been in, oldest first"
    )

    ai_damage_assessment: Optional[str] = None
    ai_estimate: Optional[Estimate] = None
    ai_confidence_score: Optional[float] = Field(default=None, ge=0, le=100)
    suggested_shops: List[RepairShopSuggestion] = Field(default_factory=list)

    current_estimate: Optional[Estimate] = Field(
        default=None,
        description="The active estimate being worked on"
    )
    repair_shop_estimate: Optional[Estimate] = None
    agent_estimate: Optional[Estimate] = None

    comments: List[Comment] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def vehicle_info(self) -> str:
        return f"{self.vehicle_year} {self.vehicle_model}"

    def active_estimate(self) -> Optional[Estimate]:
        """Agent estimate, else repair shop estimate, else the AI estimate."""
        return self.agent_estimate or self.repair_shop_estimate or self.ai_estimate

    def touch(self) -> None:
        self.updated_at = next_timestamp(self.updated_at)

    def record_status_change(self, new_status: ClaimStatus) -> None:
        """Record a status transition in history."""
        if not self.status_history or self.status_history[-1] != self.status:
            self.status_history.append(self.status)
        self.status = new_status
        self.status_history.append(new_status)
        self.touch()

    def add_comment(self, author_role: UserRole, author_name: str, text: str) -> Comment:
        """Append a comment to the activity feed."""
        comment = Comment(author_role=author_role, author_name=author_name, text=text)
        self.comments.append(comment)
        self.touch()
        return comment
