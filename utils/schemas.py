"""
Pydantic Schemas / Data Transfer Objects (DTOs)

This script defines request/response models for the API.
"""

from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Optional

# Re-export governance models for API use
from governance.models import (
    AuditReport,
    BulkActionResult,
    Context,
    EligibilityResult,
    GovernanceOverview,
    InterventionKind,
    InvokeCheck,
    StatusChangeResult
)


class EligibilityRequest(BaseModel):
    """Request model for checking eligibility when a context fires."""
    user_id: str
    context: Context
    local_time: Optional[datetime] = Field(default=None, description="Caller's local time (ISO with offset). Defaults to now in the product timezone.")


class CanInvokeRequest(BaseModel):
    """Request model for the pre-check before showing an intervention."""
    user_id: str
    intervention_id: str
    context: Optional[Context] = None
    local_time: Optional[datetime] = None


class UserRequest(BaseModel):
    """Request model for actions that only need the user."""
    user_id: str


class PauseByKindRequest(BaseModel):
    """Request model for pausing every intervention of one kind."""
    user_id: str
    kind: InterventionKind


class BulkActionResponse(BaseModel):
    """Response model for bulk pause actions."""
    action: str
    affected_count: int
    affected_ids: List[str]
