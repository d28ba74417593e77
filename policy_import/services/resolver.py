"""
Entity resolver for denormalized import rows.

Maps agent, category, carrier and account labels (and person field bundles)
to stored row ids, creating rows that do not exist yet. Each resolver keeps
its own caches and belongs to exactly one import run.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Optional, Type
import logging

from sqlmodel import Session, SQLModel, select

from policy_import.models import Agent, LineOfBusiness, Carrier, UserAccount, Person

logger = logging.getLogger("policy_import")

# Accepted date layouts, tried in order
DATE_FORMATS = (
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%m/%d/%y",
    "%Y/%m/%d",
    "%d-%b-%Y",
    "%b %d, %Y",
)

def parse_date(value: Optional[str]) -> Optional[date]:
    """
    Parse a date string into a calendar date.

    Args:
        value: Raw date text

    Returns:
        The parsed date, or None if the text is empty or not a real date
    """
    if not value:
        return None
    text = value.strip()
    # fromisoformat only accepts a "Z" suffix from Python 3.11
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None

@dataclass(frozen=True)
class PersonFields:
    """Person attributes as read from one row; absent values are None."""
    firstname: Optional[str] = None
    dob: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    email: Optional[str] = None
    gender: Optional[str] = None
    user_type: Optional[str] = None

    @property
    def cache_key(self) -> str:
        # Raw DOB text, not the parsed date: differently formatted DOBs
        # of the same person get separate cache entries.
        return f"{self.firstname or ''}_{self.email or ''}_{self.dob or ''}"

class EntityResolver:
    """Get-or-create resolution of reference entities with a per-run cache."""

    def __init__(self, session: Session):
        self.session = session
        self._agents: Dict[str, int] = {}
        self._lobs: Dict[str, int] = {}
        self._carriers: Dict[str, int] = {}
        self._accounts: Dict[str, int] = {}
        self._persons: Dict[str, int] = {}

    def resolve_agent(self, name: Optional[str]) -> Optional[int]:
        return self._get_or_create(Agent, "name", name, self._agents)

    def resolve_lob(self, category_name: Optional[str]) -> Optional[int]:
        return self._get_or_create(LineOfBusiness, "category_name", category_name, self._lobs)

    def resolve_carrier(self, company_name: Optional[str]) -> Optional[int]:
        return self._get_or_create(Carrier, "company_name", company_name, self._carriers)

    def resolve_account(self, account_name: Optional[str]) -> Optional[int]:
        return self._get_or_create(UserAccount, "account_name", account_name, self._accounts)

    def resolve_person(self, fields: PersonFields) -> int:
        """
        Resolve a person, reusing a stored match on (firstname, email).

        Without both a first name and an email there is nothing to match on,
        so a new person is always created, even within one run. Stored
        attributes are never updated.
        """
        matchable = bool(fields.firstname and fields.email)
        key = fields.cache_key
        if matchable and key in self._persons:
            return self._persons[key]

        person = None
        if matchable:
            person = self.find(Person, firstname=fields.firstname, email=fields.email)

        if person is None:
            person = self.create(
                Person,
                firstname=fields.firstname or "",
                dob=parse_date(fields.dob),
                address=fields.address or "",
                phone=fields.phone or "",
                state=fields.state or "",
                zip=fields.zip or "",
                email=fields.email or "",
                gender=fields.gender or "",
                user_type=fields.user_type or "",
            )

        if matchable:
            self._persons[key] = person.id
        return person.id

    def find(self, model: Type[SQLModel], **filters: Any) -> Optional[SQLModel]:
        """Return the first stored row matching all filters, if any."""
        statement = select(model)
        for column, value in filters.items():
            statement = statement.where(getattr(model, column) == value)
        return self.session.exec(statement).first()

    def create(self, model: Type[SQLModel], **values: Any) -> SQLModel:
        """Insert and commit a new row, returning it with its id."""
        row = model(**values)
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return row

    def rollback(self):
        """Discard a failed row's pending work so the session stays usable."""
        self.session.rollback()

    def _get_or_create(
        self,
        model: Type[SQLModel],
        column: str,
        label: Optional[str],
        cache: Dict[str, int]
    ) -> Optional[int]:
        if not label:
            return None

        if label in cache:
            return cache[label]

        row = self.find(model, **{column: label})
        if row is None:
            row = self.create(model, **{column: label})
            logger.debug(f"Created {model.__name__} | {column}={label} | id={row.id}")

        cache[label] = row.id
        return row.id
