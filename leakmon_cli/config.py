# leakmon_cli/config.py
import os
import re
import logging
import tempfile
from typing import Dict, Any, Optional, List, Literal, Union
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, HttpUrl, ConfigDict, ValidationError, field_validator, model_validator

from .exceptions import ConfigError, ConfigValidationError

logger = logging.getLogger('leakmon-cli.config')

DEFAULT_CONFIG_FILENAME = 'leakmon_config.yaml'
SEARCH_QUERY_LABEL = 'Search Query'

# --- Type Definitions ---
SignaturePart = Literal['filename', 'path', 'extension', 'contents']

_LEGACY_TOKEN_RE = re.compile(r'^[0-9a-f]{40}$')
_TOKEN_PREFIXES = ('ghp_', 'gho_', 'ghu_', 'ghs_', 'github_pat_')


def _default_threads() -> int:
    return os.cpu_count() or 4


# --- Base Models for Configuration ---
class GeneralConfig(BaseModel):
    debug: bool = Field(default=False, description="Print debugging information")
    silent: bool = Field(default=False, description="Suppress all output except important matches")
    color: Optional[bool] = Field(default=None, description="Force coloured console output on/off (None = auto)")
    threads: int = Field(default_factory=_default_threads, gt=0, le=256, description="Workers per dispatch queue")
    queue_size: int = Field(default=1000, gt=0, description="Capacity of each dispatch queue")
    temp_directory: Path = Field(default_factory=lambda: Path(tempfile.gettempdir()) / 'leakmon')
    csv_path: Optional[Path] = Field(default=None, description="Append findings to this CSV file")
    clone_timeout: int = Field(default=300, gt=0, description="Seconds before a git clone is abandoned")

    @field_validator('temp_directory', 'csv_path', mode='before')
    @classmethod
    def resolve_paths(cls, v):
        if v is None: return v
        try:
            return Path(v).expanduser().resolve(strict=False)
        except TypeError:
            logger.warning(f"Could not resolve path for value: {v}")
            return v

class GitHubConfig(BaseModel):
    tokens: List[str] = Field(default_factory=list, description="GitHub personal access tokens")
    api_url: HttpUrl = Field(default='https://api.github.com', validate_default=True, description="GitHub API URL (for GHE, change this)")
    minimum_stars: int = Field(default=0, ge=0, description="Only scan repositories with at least this many stars")
    maximum_repository_size: int = Field(default=5120, gt=0, description="Maximum repository size to clone, in KB")
    process_gists: bool = Field(default=True, description="Also discover and scan public gists")
    poll_interval: float = Field(default=30.0, gt=0, description="Seconds between discovery polls")
    request_timeout: int = Field(default=15, gt=0)

    @field_validator('tokens', mode='before')
    @classmethod
    def strip_empty_tokens(cls, v):
        if v is None: return []
        return [t.strip() for t in v if isinstance(t, str) and t.strip()]

    @field_validator('tokens')
    @classmethod
    def check_github_token_format(cls, v: List[str]) -> List[str]:
        for token in v:
            if not (token.startswith(_TOKEN_PREFIXES) or _LEGACY_TOKEN_RE.match(token)):
                raise ValueError(f"Invalid GitHub token format: '{token[:10]}...'")
        return v

class ScanConfig(BaseModel):
    search_query: Optional[str] = Field(default=None, description="Regular expression used as a pre-filter for targets")
    keep_signatures: bool = Field(default=False, description="Also run signature checks on targets matching the query")
    path_checks: bool = Field(default=True, description="Report files matched by path-based signatures")
    entropy_threshold: float = Field(default=0.0, ge=0.0, le=8.0, description="Minimum line entropy to report (0 disables)")
    maximum_file_size: int = Field(default=256 * 1024, gt=0, description="Skip files larger than this many bytes")
    blacklisted_extensions: List[str] = Field(default_factory=lambda: [
        '.exe', '.jpg', '.jpeg', '.psd', '.gif', '.png', '.bmp', '.ico', '.tif', '.tiff',
        '.woff', '.woff2', '.ttf', '.eot', '.mp3', '.mp4', '.mov', '.avi', '.pdf', '.zip',
        '.gz', '.tar', '.7z', '.rar', '.jar', '.class', '.pyc', '.so', '.dll', '.dylib',
        '.lock', '.min.js', '.map',
    ])
    blacklisted_paths: List[str] = Field(default_factory=lambda: [
        '.git', 'node_modules', 'vendor', 'bower_components', '__pycache__', '.venv',
    ])
    blacklisted_entropy_extensions: List[str] = Field(default_factory=lambda: [
        '.pem', 'id_rsa', 'secret_token.rb',
    ])

    @field_validator('search_query', mode='before')
    @classmethod
    def blank_query_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator('search_query')
    @classmethod
    def check_query_compiles(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            try:
                re.compile(v)
            except re.error as e:
                raise ValueError(f"search_query is not a valid regular expression: {e}")
        return v

    @field_validator('blacklisted_extensions', 'blacklisted_entropy_extensions')
    @classmethod
    def lowercase_extensions(cls, v: List[str]) -> List[str]:
        return [ext.lower() for ext in v]

class WebhookConfig(BaseModel):
    url: Optional[HttpUrl] = Field(default=None)
    payload: str = Field(default='{"text": "%s"}', description="JSON template; %s is replaced by the message")

    @field_validator('payload')
    @classmethod
    def check_placeholder(cls, v: str) -> str:
        if '%s' not in v:
            raise ValueError("Webhook payload template must contain a '%s' placeholder.")
        return v

class TelegramConfig(BaseModel):
    token: Optional[str] = Field(default=None)
    chat_id: Optional[str] = Field(default=None)
    proxy_address: Optional[str] = Field(default=None, description="SOCKS5 proxy as host:port")
    proxy_username: Optional[str] = Field(default=None)
    proxy_password: Optional[str] = Field(default=None)

    @field_validator('chat_id', mode='before')
    @classmethod
    def chat_id_as_string(cls, v):
        if v is None: return v
        return str(v)

    @property
    def enabled(self) -> bool:
        return bool(self.token and self.chat_id)

    @model_validator(mode='after')
    def warn_on_partial_config(self) -> 'TelegramConfig':
        if bool(self.token) != bool(self.chat_id):
            logger.warning("⚠️ Telegram needs both token and chat_id. Telegram notifications disabled.")
        return self

class NotificationsConfig(BaseModel):
    webhook: WebhookConfig = Field(default_factory=WebhookConfig)
    telegram: TelegramConfig = Field(default_factory=TelegramConfig)

class SignatureConfig(BaseModel):
    name: str
    part: SignaturePart
    match: Optional[str] = None
    regex: Optional[str] = None

    @model_validator(mode='after')
    def exactly_one_matcher(self) -> 'SignatureConfig':
        if (self.match is None) == (self.regex is None):
            raise ValueError(f"Signature '{self.name}' must define exactly one of 'match' or 'regex'.")
        return self

class AppConfig(BaseModel):
    model_config = ConfigDict(extra='forbid', validate_assignment=True)

    general: GeneralConfig = Field(default_factory=GeneralConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    notifications: NotificationsConfig = Field(default_factory=NotificationsConfig)
    signatures: List[SignatureConfig] = Field(default_factory=list, description="Custom signatures (built-ins used when empty)")

    @model_validator(mode='after')
    def validate_top_level_config(self) -> 'AppConfig':
        if self.scan.keep_signatures and not self.scan.search_query:
            logger.warning("⚠️ keep_signatures has no effect without a search_query.")
        return self


class ConfigManager:
    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        self.config_path = Path(config_path or os.environ.get('LEAKMON_CONFIG_PATH', DEFAULT_CONFIG_FILENAME))
        self.config: AppConfig
        self._load_and_validate_config()

    def _load_and_validate_config(self):
        """Loads configuration from YAML and validates."""
        logger.debug(f"Loading configuration from: {self.config_path.resolve()}")
        config_data: Dict[str, Any] = {}

        if self.config_path.exists() and self.config_path.is_file():
            try:
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    yaml_config = yaml.safe_load(f)
            except yaml.YAMLError as e_yaml:
                raise ConfigError(f"Error parsing YAML from '{self.config_path}': {e_yaml}", original_error=e_yaml)
            except OSError as e_file:
                raise ConfigError(f"Error reading config file '{self.config_path}': {e_file}", original_error=e_file)

            if yaml_config and isinstance(yaml_config, dict):
                config_data = yaml_config
            elif yaml_config:
                raise ConfigError(f"Config file {self.config_path} does not contain a valid YAML dictionary structure.")
            else:
                logger.debug(f"Config file {self.config_path} is empty. Using defaults.")
        else:
            logger.warning(f"Config file not found at '{self.config_path.resolve()}'. Using defaults.")

        try:
            self.config = AppConfig(**config_data)
            logger.debug(f"Configuration loaded and validated successfully from {self.config_path}.")
        except ValidationError as e_val:
            logger.error(f"Configuration validation failed. Errors:\n{e_val}")
            raise ConfigValidationError(
                f"Configuration validation failed. Check messages above. Source: {self.config_path}.",
                config_path=str(self.config_path),
                original_error=e_val
            )

    def get_config_model(self) -> AppConfig:
        """Return the validated AppConfig model."""
        return self.config


def apply_overrides(config: AppConfig, **sections: Dict[str, Any]) -> AppConfig:
    """
    Return a copy of ``config`` with CLI overrides merged in and re-validated.

    Each keyword names a section (``general``, ``github``, ``scan``) and maps
    field names to values; ``None`` values mean "not given" and are skipped.
    """
    data = config.model_dump(mode='json')
    for section, values in sections.items():
        if section not in data:
            raise ConfigError(f"Unknown configuration section '{section}'")
        for key, value in (values or {}).items():
            if value is not None:
                data[section][key] = value
    try:
        return AppConfig(**data)
    except ValidationError as e_val:
        raise ConfigValidationError(f"Invalid command line override: {e_val}", original_error=e_val)
