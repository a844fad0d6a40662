"""Data models for LoanLedger."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

ISO_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


class ParserType(str, Enum):
    """Statement formats the ingestion pipeline knows how to parse."""

    MOHELA = "mohela"
    NAVIENT = "navient"
    KEYBANK = "keybank"
    TRUIST = "truist"
    QUICKBOOKS = "quickbooks"


class ExtractionMethod(str, Enum):
    """How the text of a document was obtained."""

    PDF = "pdf-extraction"
    OCR = "ocr"
    CSV = "csv-read"


class StatementStatus(str, Enum):
    """Outcome of an ingestion attempt."""

    PROCESSED = "processed"
    ERROR = "error"


class ExtractionResult(BaseModel):
    """Plain text extracted from a document."""

    model_config = ConfigDict(frozen=True)

    text: str
    method: ExtractionMethod
    confidence: float | None = None  # OCR only, 0-100
    page_count: int | None = None


class TransactionCandidate(BaseModel):
    """A transaction produced by a parser, before it is persisted."""

    date: str = Field(pattern=ISO_DATE_PATTERN)
    description: str = ""
    check_number: str | None = None
    amount: float = 0.0
    principal: float = 0.0
    interest: float = 0.0
    capitalized_interest: float = 0.0
    late_fees: float = 0.0
    balance: float | None = None
    comment: str | None = None


class ParseResult(BaseModel):
    """Result of parsing one statement's text.

    Parsers subclass this to add statement-level summary fields.
    """

    statement_date: str | None = Field(default=None, pattern=ISO_DATE_PATTERN)
    transactions: list[TransactionCandidate] = Field(default_factory=list)


class Statement(BaseModel):
    """An ingested document and the outcome of its last processing run."""

    id: int
    file_name: str
    file_path: str
    statement_date: str | None = None
    source_type: ParserType | None = None
    status: StatementStatus
    error_message: str | None = None
    date_processed: str
    transaction_count: int = 0


class StoredTransaction(BaseModel):
    """A persisted transaction."""

    id: int
    statement_id: int
    transaction_date: str
    description: str
    check_number: str | None = None
    amount: float
    principal: float
    interest: float
    capitalized_interest: float
    late_fees: float
    balance_after: float | None = None
    source: ParserType
    raw_ocr_text: str | None = None
    verification_status: str = "Unverified"


class StatementDetail(Statement):
    """A statement together with its transactions."""

    transactions: list[StoredTransaction] = Field(default_factory=list)


class IngestionOutcome(BaseModel):
    """Response after a document has been ingested or reprocessed."""

    statement_id: int
    file_name: str
    status: StatementStatus
    parser_type: ParserType | None = None
    transactions_created: int = 0
    message: str


class WatcherStatus(BaseModel):
    """Current state of the folder watcher."""

    is_watching: bool
    path: str | None = None
