"""
Policies router for querying imported policies.
"""

from collections import defaultdict
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session
from typing import Dict, List, Optional

from policy_import.schemas import (
    PersonSummary,
    PolicySummary,
    PolicySearchItem,
    PolicySearchResponse,
    PersonPolicies,
    AggregatedPoliciesResponse,
)
from policy_import.db import get_session
from policy_import.models import Policy, Person, LineOfBusiness, Carrier

router = APIRouter()

def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")

def _person_summary(person: Person) -> PersonSummary:
    return PersonSummary(
        id=person.id,
        firstname=person.firstname,
        email=person.email,
        phone=person.phone,
        address=person.address,
        state=person.state,
        zip=person.zip,
        dob=person.dob,
        gender=person.gender,
        user_type=person.user_type
    )

def _policy_summary(policy: Policy, lob: Optional[LineOfBusiness], carrier: Optional[Carrier]) -> PolicySummary:
    return PolicySummary(
        policy_number=policy.policy_number,
        policy_start_date=policy.policy_start_date,
        policy_end_date=policy.policy_end_date,
        policy_category=lob.category_name if lob else None,
        company_name=carrier.company_name if carrier else None
    )

def _policies_with_references(session: Session, person_ids: Optional[List[int]] = None):
    """Policies joined to their category and carrier (outer joins)."""
    query = (
        session.query(Policy, LineOfBusiness, Carrier)
        .outerjoin(LineOfBusiness, Policy.policy_category_id == LineOfBusiness.id)
        .outerjoin(Carrier, Policy.company_collection_id == Carrier.id)
    )
    if person_ids is not None:
        query = query.filter(Policy.person_id.in_(person_ids))
    return query.order_by(Policy.id).all()

@router.get("/policies/search", response_model=PolicySearchResponse)
async def search_policies(
    username: Optional[str] = Query(None, description="Policyholder first name (partial, case-insensitive)"),
    session: Session = Depends(get_session)
):
    """Find policies of every person whose first name contains the given text."""
    if not username:
        raise HTTPException(status_code=400, detail="Username parameter is required")

    persons = session.query(Person).filter(
        Person.firstname.ilike(f"%{_escape_like(username)}%", escape="\\")
    ).all()
    if not persons:
        raise HTTPException(status_code=404, detail="No user found with the provided username")

    by_id: Dict[int, Person] = {person.id: person for person in persons}
    rows = _policies_with_references(session, list(by_id))

    policies = [
        PolicySearchItem(
            **_policy_summary(policy, lob, carrier).dict(),
            user=_person_summary(by_id[policy.person_id])
        )
        for policy, lob, carrier in rows
    ]

    return PolicySearchResponse(
        message=f"Found {len(policies)} policy(s) for username: {username}",
        count=len(policies),
        policies=policies
    )

@router.get("/policies/aggregated", response_model=AggregatedPoliciesResponse)
async def aggregated_policies(session: Session = Depends(get_session)):
    """Policies grouped by policyholder, largest groups first."""
    grouped: Dict[int, List[PolicySummary]] = defaultdict(list)
    for policy, lob, carrier in _policies_with_references(session):
        grouped[policy.person_id].append(_policy_summary(policy, lob, carrier))

    persons = session.query(Person).filter(Person.id.in_(list(grouped))).all() if grouped else []

    data = [
        PersonPolicies(
            user=_person_summary(person),
            policy_count=len(grouped[person.id]),
            policies=grouped[person.id]
        )
        for person in persons
    ]
    data.sort(key=lambda item: (-item.policy_count, item.user.id))

    return AggregatedPoliciesResponse(
        message=f"Found {len(data)} user(s) with policies",
        total_users=len(data),
        total_policies=sum(item.policy_count for item in data),
        data=data
    )
