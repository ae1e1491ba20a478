import json
import os
import logging
import logging.handlers
from datetime import tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

import colorlog
from pydantic import BaseModel, Field, field_validator

# Directory of the kiosk_app package, relative paths in the config resolve against it
KIOSK_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DEFAULT_CONFIG_PATH = os.path.join(KIOSK_DIR, 'config.json')


class ConsoleLoggingConfig(BaseModel):
    enabled: bool
    level: str
    format: str
    date_format: str

    def get_level(self) -> int:
        return getattr(logging, self.level.upper())


class FileLoggingConfig(ConsoleLoggingConfig):
    log_dir: str
    filename: str
    max_bytes: int
    backup_count: int


class LoggingConfig(BaseModel):
    console: ConsoleLoggingConfig
    file: FileLoggingConfig


class ServerConfig(BaseModel):
    host: str
    port: int
    secret_key: str


class DatabaseConfig(BaseModel):
    db_name: str = 'kiosk.db'
    database_url: Optional[str] = None

    @property
    def db_path(self) -> str:
        if os.path.isabs(self.db_name):
            return self.db_name
        return os.path.join(KIOSK_DIR, self.db_name)

    @property
    def url(self) -> str:
        """The explicit database_url if set, otherwise a SQLite file next to the app."""
        return self.database_url or f'sqlite:///{self.db_path}'


class KioskConfig(BaseModel):
    name: str = 'Artemis'
    staff_passcode: str
    timezone: Optional[str] = None
    default_language: str = 'en'

    @field_validator('timezone')
    @classmethod
    def check_timezone(cls, v):
        if v is not None:
            # Raises if the zone is unknown
            ZoneInfo(v)
        return v

    @field_validator('default_language')
    @classmethod
    def check_language(cls, v):
        if v not in ('en', 'ms'):
            raise ValueError(f"Unsupported language: {v}")
        return v

    def get_tz(self) -> Optional[tzinfo]:
        return ZoneInfo(self.timezone) if self.timezone else None


class ConfigModel(BaseModel):
    server: ServerConfig
    logging: LoggingConfig
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    kiosk: KioskConfig
    debug: bool = False


class Config:
    """Configuration manager that loads and validates config from JSON."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration from a JSON file.

        Args:
            config_path: Path to the configuration JSON file. Falls back to the
                KIOSK_CONFIG environment variable, then kiosk_app/config.json.
        """
        self.config_path = config_path or os.environ.get('KIOSK_CONFIG') or DEFAULT_CONFIG_PATH
        # Load and validate config using Pydantic
        config_data = self._load_config(self.config_path)
        self._config = ConfigModel(**config_data)

    def _load_config(self, config_path: str) -> dict:
        """Load configuration from JSON file."""
        try:
            with open(config_path, 'r') as f:
                return json.load(f)
        except Exception as e:
            raise RuntimeError(f"Failed to load config from {config_path}: {e}")

    def __getattr__(self, name: str):
        """Delegate attribute access to the Pydantic model."""
        if name == '_config':
            raise AttributeError(name)
        try:
            return getattr(self._config, name)
        except AttributeError:
            raise AttributeError(f"'Config' object has no attribute '{name}'")

    def setup_logging(self):
        """Set up logging configuration."""
        # Clear any existing handlers
        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

        # Set up console logging if enabled
        if self._config.logging.console.enabled:
            console_handler = logging.StreamHandler()
            console_handler.setLevel(self._config.logging.console.get_level())
            console_formatter = colorlog.ColoredFormatter(
                fmt='%(log_color)s' + self._config.logging.console.format,
                datefmt=self._config.logging.console.date_format,
                reset=True,
                log_colors={
                    'DEBUG': 'cyan',
                    'INFO': 'green',
                    'WARNING': 'yellow',
                    'ERROR': 'red',
                    'CRITICAL': 'red,bg_white',
                }
            )
            console_handler.setFormatter(console_formatter)
            root_logger.addHandler(console_handler)

        # Set up file logging if enabled
        if self._config.logging.file.enabled:
            log_dir = self._config.logging.file.log_dir
            if not os.path.isabs(log_dir):
                log_dir = os.path.join(KIOSK_DIR, log_dir)
            os.makedirs(log_dir, exist_ok=True)
            log_path = os.path.join(log_dir, self._config.logging.file.filename)
            file_handler = logging.handlers.RotatingFileHandler(
                log_path,
                maxBytes=self._config.logging.file.max_bytes,
                backupCount=self._config.logging.file.backup_count
            )
            file_handler.setLevel(self._config.logging.file.get_level())
            file_formatter = logging.Formatter(
                fmt=self._config.logging.file.format,
                datefmt=self._config.logging.file.date_format
            )
            file_handler.setFormatter(file_formatter)
            root_logger.addHandler(file_handler)

        # Set root logger level to the minimum of console and file levels
        min_level = min(
            self._config.logging.console.get_level() if self._config.logging.console.enabled else logging.CRITICAL,
            self._config.logging.file.get_level() if self._config.logging.file.enabled else logging.CRITICAL
        )
        root_logger.setLevel(min_level)
