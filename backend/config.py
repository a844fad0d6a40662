"""Configuration management for LoanLedger."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_WATCH_EXTENSIONS = [".pdf", ".jpg", ".jpeg", ".png", ".tiff", ".tif", ".bmp", ".csv"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Development mode
    dev_mode: bool = True

    # Data directory
    data_dir: Path = Path.home() / ".loanledger"

    # Folder watcher
    watch_enabled: bool = False
    watch_dir: Path | None = None  # e.g. a synced Dropbox folder
    watch_extensions: list[str] = DEFAULT_WATCH_EXTENSIONS
    watch_poll_interval_ms: int = 5000
    watch_stability_ms: int = 2000  # quiet period before a new file is ingested

    # Extraction / ingestion
    ocr_language: str = "eng"
    raw_text_limit: int = 5000  # chars of extracted text kept per transaction
    max_upload_bytes: int = 50 * 1024 * 1024

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,  # WATCH_DIR and watch_dir both work
        extra="ignore",  # Ignore extra environment variables
    )

    @property
    def db_path(self) -> Path:
        """Get the SQLite database path."""
        suffix = "dev" if self.dev_mode else "prod"
        return self.data_dir / f"loanledger_{suffix}.db"

    @property
    def uploads_path(self) -> Path:
        """Get the uploads directory path."""
        return self.data_dir / "uploads"

    def ensure_directories(self) -> None:
        """Create necessary directories if they don't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.uploads_path.mkdir(parents=True, exist_ok=True)

    def log_config(self) -> None:
        """Print the effective configuration."""
        import os

        print("\n" + "=" * 60)
        print("📋 CONFIGURATION LOADED")
        print("=" * 60)

        env_file_path = os.path.join(os.getcwd(), ".env")
        print(f"Working Directory:   {os.getcwd()}")
        print(f".env file exists:    {os.path.exists(env_file_path)}")
        print("-" * 60)

        print(f"Dev Mode:            {self.dev_mode}")
        print(f"Data Directory:      {self.data_dir}")
        print(f"Database:            {self.db_path}")
        print(f"Uploads:             {self.uploads_path}")
        print(f"Watcher Enabled:     {self.watch_enabled}")
        print(f"Watch Directory:     {self.watch_dir or '✗ Not set'}")
        print(f"Watch Extensions:    {', '.join(self.watch_extensions)}")
        print(f"Poll Interval:       {self.watch_poll_interval_ms} ms")
        print(f"Quiet Period:        {self.watch_stability_ms} ms")
        print(f"OCR Language:        {self.ocr_language}")
        print(f"API Host:            {self.api_host}:{self.api_port}")
        print("=" * 60 + "\n")


# Global settings instance
settings = Settings()
