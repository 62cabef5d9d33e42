"""
leakmon-cli: Leaked Credential Monitor

A command-line tool that discovers freshly pushed public GitHub repositories
and gists, clones them, and scans every file against a library of secret
signatures and an entropy heuristic.

This package provides:
- Bounded dispatch queues drained by parallel clone/scan workers
- Signature, search-query and entropy based detection
- Per-file retention of matching content for inspection
- Severity-gated console output with webhook and Telegram alerts
- CSV persistence of every finding
"""

from typing import List

# Package metadata
__title__ = "leakmon-cli"
__version__ = "1.0.0"
__author__ = "Security Team"
__email__ = "security@example.com"
__description__ = "CLI tool for hunting leaked secrets in public GitHub activity"

# --- Import Custom Exceptions ---
from .exceptions import (
    LeakmonBaseError,
    ConfigError,
    ConfigValidationError,
    SetupError,
    DiscoveryError,
    ScanError,
    CloneError,
    PersistenceError,
    SignatureError,
    NotificationError,
)

# --- Import Core Components ---
from .config import AppConfig, ConfigManager
from .alerts import AlertLogger
from .notifications import NotificationManager
from .signatures import Part, Signature, SimpleSignature, PatternSignature, load_signatures
from .files import MatchFile, get_entropy, get_matching_files
from .findings import Finding, CsvFindingWriter
from .workspace import Workspace, get_hash
from .dispatcher import ScanReport, SignatureDispatcher
from .context import AppContext, build_context
from .pipeline import ScanPipeline, ScanTarget, TargetKind, scan_local
from .workers import TargetQueue, WorkerPool

# Define what gets imported with "from leakmon_cli import *"
__all__: List[str] = [
    # Package metadata
    "__title__",
    "__version__",
    "__author__",
    "__email__",
    "__description__",

    # Exceptions
    "LeakmonBaseError",
    "ConfigError",
    "ConfigValidationError",
    "SetupError",
    "DiscoveryError",
    "ScanError",
    "CloneError",
    "PersistenceError",
    "SignatureError",
    "NotificationError",

    # Core components
    "AppConfig",
    "ConfigManager",
    "AlertLogger",
    "NotificationManager",
    "Part",
    "Signature",
    "SimpleSignature",
    "PatternSignature",
    "load_signatures",
    "MatchFile",
    "get_entropy",
    "get_matching_files",
    "Finding",
    "CsvFindingWriter",
    "Workspace",
    "get_hash",
    "ScanReport",
    "SignatureDispatcher",
    "AppContext",
    "build_context",
    "ScanPipeline",
    "ScanTarget",
    "TargetKind",
    "scan_local",
    "TargetQueue",
    "WorkerPool",
]
