"""
Batch import engine.

Drives the entity resolver over parsed rows in fixed-size batches, creates
policies, and keeps the counters and error detail reported back to the host.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional
import logging
import os

from sqlalchemy.exc import DBAPIError

from policy_import.models import Policy
from policy_import.schemas import ProgressMessage, RowError
from policy_import.services.resolver import EntityResolver, PersonFields, parse_date

logger = logging.getLogger("policy_import")

BATCH_SIZE = int(os.getenv("IMPORT_BATCH_SIZE", "100"))
PROGRESS_EVERY = int(os.getenv("IMPORT_PROGRESS_EVERY", "50"))
MAX_REPORTED_ERRORS = 10

def _value(record: Mapping[str, Any], column: str) -> Optional[str]:
    """Column value with blanks and missing columns mapped to None."""
    raw = record.get(column)
    if raw is None:
        return None
    text = str(raw).strip()
    return text or None

@dataclass(frozen=True)
class PolicyRow:
    """One import row with every field explicitly present or None."""
    agent: Optional[str]
    category_name: Optional[str]
    company_name: Optional[str]
    account_name: Optional[str]
    policy_number: Optional[str]
    policy_start_date: Optional[str]
    policy_end_date: Optional[str]
    person: PersonFields

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "PolicyRow":
        return cls(
            agent=_value(record, "agent"),
            category_name=_value(record, "category_name"),
            company_name=_value(record, "company_name"),
            account_name=_value(record, "account_name"),
            policy_number=_value(record, "policy_number"),
            policy_start_date=_value(record, "policy_start_date"),
            policy_end_date=_value(record, "policy_end_date"),
            person=PersonFields(
                firstname=_value(record, "firstname"),
                dob=_value(record, "dob"),
                address=_value(record, "address"),
                phone=_value(record, "phone"),
                state=_value(record, "state"),
                zip=_value(record, "zip"),
                email=_value(record, "email"),
                gender=_value(record, "gender"),
                user_type=_value(record, "userType"),
            ),
        )

class ImportState(str, Enum):
    """Lifecycle of one import run."""
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

class RowStatus(str, Enum):
    CREATED = "created"
    SKIPPED = "skipped"
    FAILED = "failed"

@dataclass(frozen=True)
class RowResult:
    """Outcome of processing a single row."""
    status: RowStatus
    detail: Optional[str] = None

    @classmethod
    def created(cls) -> "RowResult":
        return cls(RowStatus.CREATED)

    @classmethod
    def skipped(cls, reason: str) -> "RowResult":
        return cls(RowStatus.SKIPPED, reason)

    @classmethod
    def failed(cls, message: str) -> "RowResult":
        return cls(RowStatus.FAILED, message)

@dataclass
class ImportSummary:
    """Counters for a finished run. errors_list holds every row failure."""
    total: int = 0
    processed: int = 0
    created: int = 0
    skipped: int = 0
    errors: int = 0
    errors_list: List[RowError] = field(default_factory=list)

    @property
    def reported_errors(self) -> List[RowError]:
        return self.errors_list[:MAX_REPORTED_ERRORS]

class BatchImporter:
    """
    Sequential row importer for one run.

    Rows are handled one at a time, which is what lets the resolver cache
    go without locking. A failing row is rolled back and recorded; it never
    stops the run. Only a lost database connection escapes.
    """

    def __init__(
        self,
        resolver: EntityResolver,
        emit: Callable[[Dict[str, Any]], None],
        batch_size: int = BATCH_SIZE,
        progress_every: int = PROGRESS_EVERY
    ):
        if batch_size <= 0 or progress_every <= 0:
            raise ValueError("batch_size and progress_every must be positive")
        self.resolver = resolver
        self.emit = emit
        self.batch_size = batch_size
        self.progress_every = progress_every
        self.state = ImportState.IDLE

    def run(self, records: List[Mapping[str, Any]]) -> ImportSummary:
        """
        Import all rows.

        Args:
            records: Parsed rows (header-keyed mappings)

        Returns:
            ImportSummary with counters and all row errors
        """
        summary = ImportSummary(total=len(records))
        self.state = ImportState.RUNNING

        try:
            for start in range(0, len(records), self.batch_size):
                batch = records[start:start + self.batch_size]
                logger.debug(f"Importing batch | first_row={start + 1} | size={len(batch)}")

                for offset, record in enumerate(batch):
                    row_number = start + offset + 1
                    result = self.process_row(record)
                    self._record(summary, row_number, record, result)
        except Exception:
            self.state = ImportState.FAILED
            raise

        self.state = ImportState.COMPLETED
        logger.info(
            f"Import finished | total={summary.total} | processed={summary.processed} | "
            f"created={summary.created} | skipped={summary.skipped} | errors={summary.errors}"
        )
        return summary

    def process_row(self, record: Mapping[str, Any]) -> RowResult:
        """Resolve one row's references and create its policy if possible."""
        try:
            return self._import_row(PolicyRow.from_record(record))
        except DBAPIError as e:
            if e.connection_invalidated:
                raise
            self.resolver.rollback()
            return RowResult.failed(str(e.orig) if e.orig is not None else str(e))
        except Exception as e:
            self.resolver.rollback()
            return RowResult.failed(str(e) or e.__class__.__name__)

    def _import_row(self, row: PolicyRow) -> RowResult:
        resolver = self.resolver

        resolver.resolve_agent(row.agent)
        lob_id = resolver.resolve_lob(row.category_name)
        carrier_id = resolver.resolve_carrier(row.company_name)
        person_id = resolver.resolve_person(row.person)
        resolver.resolve_account(row.account_name)

        start_date = parse_date(row.policy_start_date)
        end_date = parse_date(row.policy_end_date)

        if not row.policy_number:
            return RowResult.skipped("missing policy number")
        if lob_id is None or carrier_id is None or person_id is None:
            return RowResult.skipped("missing category, carrier or person")
        if start_date is None or end_date is None:
            return RowResult.skipped("invalid policy dates")

        if resolver.find(Policy, policy_number=row.policy_number) is not None:
            return RowResult.skipped("policy already exists")

        resolver.create(
            Policy,
            policy_number=row.policy_number,
            policy_start_date=start_date,
            policy_end_date=end_date,
            policy_category_id=lob_id,
            company_collection_id=carrier_id,
            person_id=person_id,
        )
        return RowResult.created()

    def _record(
        self,
        summary: ImportSummary,
        row_number: int,
        record: Mapping[str, Any],
        result: RowResult
    ):
        if result.status == RowStatus.FAILED:
            summary.errors += 1
            summary.errors_list.append(RowError(
                row=row_number,
                error=result.detail or "Unknown error",
                record=_value(record, "policy_number") or "N/A",
            ))
            logger.warning(f"Row failed | row={row_number} | error={result.detail}")
            return

        if result.status == RowStatus.CREATED:
            summary.created += 1
        else:
            summary.skipped += 1
            logger.debug(f"Row skipped | row={row_number} | reason={result.detail}")

        summary.processed += 1
        if summary.processed % self.progress_every == 0:
            self.emit(ProgressMessage(processed=summary.processed, total=summary.total).dict())
