"""
Pydantic schemas for worker messages and API responses.
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import date, datetime

# Worker messages (sent over the isolation boundary as plain dicts)
class RowError(BaseModel):
    """A row that failed during import."""
    row: int = Field(description="1-based data row number")
    error: str
    record: str = Field(description="Policy number of the row, or N/A")

class ProgressMessage(BaseModel):
    type: Literal["progress"] = "progress"
    processed: int
    total: int

class DoneMessage(BaseModel):
    type: Literal["done"] = "done"
    success: bool = True
    processed: int
    errors: int
    total: int
    errors_list: List[RowError] = Field(default_factory=list, alias="errorsList")

class ErrorMessage(BaseModel):
    type: Literal["error"] = "error"
    error: str

# Upload / import job responses
class UploadAccepted(BaseModel):
    """Immediate acknowledgement for an upload."""
    status: str = "processing"
    message: str
    file: str
    import_id: str

class ImportStatusResponse(BaseModel):
    """Polling view of an import job."""
    import_id: str
    file: str
    state: str
    processed: int = 0
    total: Optional[int] = None
    errors: int = 0
    errors_list: List[RowError] = Field(default_factory=list)
    error: Optional[str] = None
    started_at: datetime
    finished_at: Optional[datetime] = None

# Policy query responses
class PersonSummary(BaseModel):
    id: int
    firstname: str
    email: str
    phone: str
    address: str
    state: str
    zip: str
    dob: Optional[date] = None
    gender: Optional[str] = None
    user_type: Optional[str] = None

class PolicySummary(BaseModel):
    policy_number: str
    policy_start_date: date
    policy_end_date: date
    policy_category: Optional[str] = None
    company_name: Optional[str] = None

class PolicySearchItem(PolicySummary):
    user: PersonSummary

class PolicySearchResponse(BaseModel):
    message: str
    count: int
    policies: List[PolicySearchItem]

class PersonPolicies(BaseModel):
    user: PersonSummary
    policy_count: int
    policies: List[PolicySummary]

class AggregatedPoliciesResponse(BaseModel):
    message: str
    total_users: int
    total_policies: int
    data: List[PersonPolicies]
