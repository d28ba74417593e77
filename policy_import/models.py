"""
SQLModel database models for imported policy data.
"""

from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime, date, timezone

def utc_now() -> datetime:
    """Timezone-aware current time for created_at columns."""
    return datetime.now(timezone.utc)

class Agent(SQLModel, table=True):
    """Agent that sold the policy."""
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(unique=True, index=True)
    created_at: datetime = Field(default_factory=utc_now)

class LineOfBusiness(SQLModel, table=True):
    """Policy category (line of business)."""
    id: Optional[int] = Field(default=None, primary_key=True)
    category_name: str = Field(unique=True, index=True)
    created_at: datetime = Field(default_factory=utc_now)

class Carrier(SQLModel, table=True):
    """Insurance carrier (company collection)."""
    id: Optional[int] = Field(default=None, primary_key=True)
    company_name: str = Field(unique=True, index=True)
    created_at: datetime = Field(default_factory=utc_now)

class UserAccount(SQLModel, table=True):
    """Account a policyholder belongs to."""
    id: Optional[int] = Field(default=None, primary_key=True)
    account_name: str = Field(unique=True, index=True)
    created_at: datetime = Field(default_factory=utc_now)

class Person(SQLModel, table=True):
    """Policyholder. Deduplicated by (firstname, email) when both are known."""
    id: Optional[int] = Field(default=None, primary_key=True)
    firstname: str = Field(default="", index=True)
    dob: Optional[date] = None
    address: str = ""
    phone: str = ""
    state: str = ""
    zip: str = ""
    email: str = Field(default="", index=True)
    gender: str = ""
    user_type: str = ""
    created_at: datetime = Field(default_factory=utc_now)

class Policy(SQLModel, table=True):
    """Normalized policy record."""
    id: Optional[int] = Field(default=None, primary_key=True)
    policy_number: str = Field(unique=True, index=True)
    policy_start_date: date
    policy_end_date: date
    policy_category_id: int = Field(foreign_key="lineofbusiness.id")
    company_collection_id: int = Field(foreign_key="carrier.id")
    person_id: int = Field(foreign_key="person.id", index=True)
    created_at: datetime = Field(default_factory=utc_now)
