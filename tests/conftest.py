from __future__ import annotations

import io
from pathlib import Path
from typing import List, Optional

import pytest

from leakmon_cli.alerts import AlertLogger, PlainStyler
from leakmon_cli.config import AppConfig
from tests.helpers import AWS_SIGNATURE, PEM_SIGNATURE


@pytest.fixture
def stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def exits() -> List[int]:
    """Exit codes requested by FATAL log calls."""
    return []


@pytest.fixture
def log(stream: io.StringIO, exits: List[int]) -> AlertLogger:
    return AlertLogger(stream=stream, styler=PlainStyler(), exit_func=exits.append)


@pytest.fixture
def make_config(tmp_path: Path):
    def _make(scan: Optional[dict] = None, general: Optional[dict] = None, signatures=None) -> AppConfig:
        general_cfg = {"temp_directory": str(tmp_path / "work"), "color": False}
        general_cfg.update(general or {})
        return AppConfig(
            general=general_cfg,
            scan=scan or {},
            signatures=signatures if signatures is not None else [AWS_SIGNATURE, PEM_SIGNATURE],
        )
    return _make
