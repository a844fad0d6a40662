"""Statement ingestion: extract, classify, parse and persist one document."""

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

from backend.config import settings
from backend.db.sqlite import db
from backend.models import IngestionOutcome, ParseResult, ParserType, StatementStatus
from backend.parsers.registry import get_parser
from backend.services.classifier import classify
from backend.services.text_extractor import ExtractionError, extract_text

logger = logging.getLogger(__name__)

UNKNOWN_DOCUMENT_TYPE = "Unknown document type"


class StatementNotFoundError(Exception):
    """Raised when reprocessing a statement id that does not exist."""

    pass


@dataclass
class PipelineResult:
    """What extraction, classification and parsing produced for one document."""

    parser_type: ParserType | None = None
    parse_result: ParseResult | None = None
    text: str = ""
    error: str | None = None

    @property
    def status(self) -> StatementStatus:
        return StatementStatus.ERROR if self.error else StatementStatus.PROCESSED

    @property
    def statement_date(self) -> str | None:
        return self.parse_result.statement_date if self.parse_result else None


async def run_pipeline(file_path: Path, file_name: str) -> PipelineResult:
    """
    Extract, classify and parse a document without touching the database.

    Every failure is captured on the result rather than raised, so the caller
    can always record the attempt.
    """
    try:
        extraction = await asyncio.to_thread(extract_text, file_path)
    except ExtractionError as e:
        logger.warning(f"Extraction failed for {file_name}: {e}")
        return PipelineResult(error=str(e))

    logger.info(f"Extracted text from {file_name} via {extraction.method.value}")

    parser_type = classify(extraction.text, file_name)
    if parser_type is None:
        logger.warning(f"Could not determine document type for {file_name}")
        return PipelineResult(text=extraction.text, error=UNKNOWN_DOCUMENT_TYPE)

    logger.info(f"Using {parser_type.value} parser for {file_name}")
    try:
        parse_result = get_parser(parser_type).parse(extraction.text)
    except Exception as e:
        logger.warning(f"{parser_type.value} parser failed on {file_name}: {e}")
        return PipelineResult(parser_type=parser_type, text=extraction.text, error=str(e) or type(e).__name__)

    return PipelineResult(parser_type=parser_type, parse_result=parse_result, text=extraction.text)


def _store_transactions(statement_id: int, pipeline: PipelineResult, conn) -> int:
    if pipeline.error or pipeline.parse_result is None:
        return 0

    for candidate in pipeline.parse_result.transactions:
        db.create_transaction(statement_id, candidate, pipeline.text, pipeline.parser_type, conn=conn)
    return len(pipeline.parse_result.transactions)


def _build_outcome(statement_id: int, file_name: str, pipeline: PipelineResult, created: int) -> IngestionOutcome:
    message = pipeline.error or f"Processed {created} transactions"
    return IngestionOutcome(
        statement_id=statement_id,
        file_name=file_name,
        status=pipeline.status,
        parser_type=pipeline.parser_type,
        transactions_created=created,
        message=message,
    )


async def ingest_file(file_path: Path | str, file_name: str | None = None) -> IngestionOutcome:
    """
    Ingest one document and record the attempt as a statement.

    Extraction, classification and parsing failures produce a statement with
    status ``error`` and no transactions. Database errors propagate and leave
    nothing behind.

    Args:
        file_path: Path to the stored document
        file_name: Display name; defaults to the file's name on disk
    """
    path = Path(file_path)
    file_name = file_name or path.name
    logger.info(f"Ingesting {file_name}")

    pipeline = await run_pipeline(path, file_name)

    with db.transaction() as conn:
        statement_id = db.create_statement(
            file_name=file_name,
            file_path=str(path),
            statement_date=pipeline.statement_date,
            source_type=pipeline.parser_type,
            status=pipeline.status,
            error_message=pipeline.error,
            conn=conn,
        )
        created = _store_transactions(statement_id, pipeline, conn)

    if pipeline.error:
        logger.warning(f"Recorded {file_name} as statement {statement_id} with error: {pipeline.error}")
    else:
        logger.info(f"Processed {file_name}: {created} transactions created (statement {statement_id})")

    return _build_outcome(statement_id, file_name, pipeline, created)


async def reprocess_statement(statement_id: int) -> IngestionOutcome:
    """
    Re-run the pipeline on a stored statement's file and replace its transactions.

    The delete, the statement update and the inserts share one database
    transaction, so a failure leaves the previous transactions in place.

    Raises:
        StatementNotFoundError: If no statement has this id
    """
    statement = db.get_statement(statement_id)
    if statement is None:
        raise StatementNotFoundError(f"Statement {statement_id} not found")

    logger.info(f"Reprocessing statement {statement_id}: {statement.file_name}")
    pipeline = await run_pipeline(Path(statement.file_path), statement.file_name)

    with db.transaction() as conn:
        removed = db.delete_transactions(statement_id, conn=conn)
        db.update_statement(
            statement_id,
            status=pipeline.status,
            source_type=pipeline.parser_type,
            error_message=pipeline.error,
            statement_date=pipeline.statement_date,
            conn=conn,
        )
        created = _store_transactions(statement_id, pipeline, conn)

    logger.info(f"Reprocessed statement {statement_id}: removed {removed}, created {created} transactions")
    return _build_outcome(statement_id, statement.file_name, pipeline, created)


def save_upload(filename: str, contents: bytes) -> Path:
    """
    Store an uploaded document under the uploads directory.

    The stored name gets a unique prefix so repeated uploads of the same
    statement never overwrite each other.
    """
    settings.ensure_directories()
    safe_name = Path(filename).name
    stored_path = settings.uploads_path / f"{int(time.time() * 1000)}-{uuid4().hex[:8]}-{safe_name}"
    stored_path.write_bytes(contents)
    logger.info(f"Saved upload {safe_name} to {stored_path}")
    return stored_path
