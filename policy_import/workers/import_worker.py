"""
Import worker process.

The import runs in its own process: it gets the payload once at start and
reports back only through messages put on a queue, in this order:
any number of ``progress`` messages, then exactly one ``done`` or ``error``.
"""

from typing import Any, Optional, Protocol, Union
import logging

from sqlmodel import Session

from policy_import.db import create_db_engine, create_db_and_tables
from policy_import.middleware import LOG_FORMAT
from policy_import.schemas import DoneMessage, ErrorMessage
from policy_import.services.importer import BATCH_SIZE, PROGRESS_EVERY, BatchImporter, ImportSummary
from policy_import.services.parser import parse_records
from policy_import.services.resolver import EntityResolver

logger = logging.getLogger("policy_import")

class MessageChannel(Protocol):
    """Outbound side of the boundary (a multiprocessing queue in production)."""

    def put(self, message: Any) -> None: ...

def _execute(
    payload: Union[str, bytes],
    channel: MessageChannel,
    database_url: Optional[str],
    batch_size: int,
    progress_every: int
) -> ImportSummary:
    engine = create_db_engine(database_url)
    try:
        create_db_and_tables(engine)
        records = list(parse_records(payload))
        logger.info(f"Import started | total={len(records)}")

        with Session(engine) as session:
            importer = BatchImporter(
                EntityResolver(session),
                emit=channel.put,
                batch_size=batch_size,
                progress_every=progress_every,
            )
            return importer.run(records)
    finally:
        engine.dispose()

def run_import(
    payload: Union[str, bytes],
    channel: MessageChannel,
    database_url: Optional[str] = None,
    batch_size: int = BATCH_SIZE,
    progress_every: int = PROGRESS_EVERY
) -> None:
    """
    Run one import and report the outcome on the channel.

    Args:
        payload: Raw CSV text
        channel: Object with a put() method receiving message dicts
        database_url: Storage URL, defaults to DATABASE_URL
        batch_size: Rows per batch
        progress_every: Emit progress every N processed rows
    """
    try:
        summary = _execute(payload, channel, database_url, batch_size, progress_every)
    except Exception as e:
        logger.exception(f"Import failed | error={e}")
        channel.put(ErrorMessage(error=str(e) or e.__class__.__name__).dict())
        return

    done = DoneMessage(
        processed=summary.processed,
        errors=summary.errors,
        total=summary.total,
        errorsList=summary.reported_errors,
    )
    channel.put(done.dict(by_alias=True))

def worker_main(
    payload: Union[str, bytes],
    channel: MessageChannel,
    database_url: Optional[str] = None
) -> None:
    """Process entry point."""
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    run_import(payload, channel, database_url)
