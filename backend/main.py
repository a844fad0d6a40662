"""FastAPI application for LoanLedger."""

import logging
from pathlib import Path

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from backend.config import settings
from backend.db.sqlite import db
from backend.models import IngestionOutcome, Statement, StatementDetail, StatementStatus
from backend.parsers.registry import validate_registry
from backend.services.ingestion import (
    UNKNOWN_DOCUMENT_TYPE,
    StatementNotFoundError,
    ingest_file,
    reprocess_statement,
    save_upload,
)
from backend.services.text_extractor import SUPPORTED_EXTENSIONS
from backend.services.watcher import DirectoryWatcher, WatcherHandle

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("loanledger")

app = FastAPI(
    title="LoanLedger",
    description="Student loan statement ingestion and payment ledger",
    version="0.1.0",
)

# CORS for the dashboard frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


async def ingest_watched_file(file_path: Path) -> IngestionOutcome:
    """Watcher callback: ingest a file that appeared in the watch directory."""
    return await ingest_file(file_path)


watcher = DirectoryWatcher(on_file=ingest_watched_file, stability_threshold=settings.watch_stability_ms)
watcher_handle: WatcherHandle | None = None


@app.on_event("startup")
async def startup():
    """Initialize on startup."""
    global watcher_handle

    settings.ensure_directories()
    settings.log_config()
    validate_registry()

    if not settings.watch_enabled:
        return
    if settings.watch_dir is None or not settings.watch_dir.is_dir():
        logger.warning(f"Watch directory not found, file watcher not started: {settings.watch_dir}")
        return

    watcher_handle = watcher.start(
        settings.watch_dir,
        extensions=settings.watch_extensions,
        poll_interval=settings.watch_poll_interval_ms,
    )


@app.on_event("shutdown")
async def shutdown():
    """Stop the file watcher."""
    global watcher_handle

    if watcher_handle is not None:
        await watcher.stop(watcher_handle)
        watcher_handle = None


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "transaction_count": db.get_transaction_count(),
        "watcher": watcher.status().model_dump(),
    }


@app.post("/statements/upload", response_model=IngestionOutcome, status_code=201)
async def upload_statement(file: UploadFile = File(...)):
    """Upload a loan or bank statement (PDF, image or CSV) and process it."""
    if not file.filename:
        raise HTTPException(status_code=400, detail="No filename provided")

    extension = Path(file.filename).suffix.lower()
    if extension not in SUPPORTED_EXTENSIONS:
        raise HTTPException(status_code=400, detail=f"Unsupported file type: {extension or file.filename}")

    contents = await file.read()
    if not contents:
        raise HTTPException(status_code=400, detail="Empty file")
    if len(contents) > settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail="File exceeds the upload size limit")

    stored_path = save_upload(file.filename, contents)

    try:
        outcome = await ingest_file(stored_path, file_name=file.filename)
    except Exception as e:
        logger.exception(f"Error processing upload {file.filename}")
        raise HTTPException(status_code=500, detail=f"Error processing file: {str(e)}")

    if outcome.status == StatementStatus.ERROR and outcome.message == UNKNOWN_DOCUMENT_TYPE:
        raise HTTPException(
            status_code=400,
            detail={"error": "Could not determine document type", "statement_id": outcome.statement_id},
        )
    return outcome


@app.post("/statements/{statement_id}/process", response_model=IngestionOutcome)
async def process_statement(statement_id: int):
    """Reprocess a stored statement, replacing its transactions."""
    try:
        return await reprocess_statement(statement_id)
    except StatementNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.exception(f"Error reprocessing statement {statement_id}")
        raise HTTPException(status_code=500, detail=f"Error reprocessing statement: {str(e)}")


@app.get("/statements", response_model=list[Statement])
async def get_statements(limit: int = 1000):
    """Get all statements with their transaction counts."""
    return db.get_statements(limit=limit)


@app.get("/statements/{statement_id}", response_model=StatementDetail)
async def get_statement(statement_id: int):
    """Get a statement with its transactions."""
    statement = db.get_statement(statement_id)
    if statement is None:
        raise HTTPException(status_code=404, detail="Statement not found")

    transactions = db.get_transactions_for_statement(statement_id)
    return StatementDetail(**statement.model_dump(), transactions=transactions)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "backend.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.dev_mode,
    )
