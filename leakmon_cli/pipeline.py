# leakmon_cli/pipeline.py
"""
Clone-scan-cleanup lifecycle for one scan target.

    Queued -> Provisioned -> Retrieved -> Dispatched -> Retained | Removed

Every failure is confined to the target being processed: it is logged, the
workspace is released, and ``process`` returns ``None``.
"""

import os
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .context import AppContext
from .dispatcher import ScanReport
from .exceptions import CloneError, ScanError
from .workspace import Workspace

logger = logging.getLogger('leakmon-cli.pipeline')


class TargetKind(str, Enum):
    REPOSITORY = 'repository'
    GIST = 'gist'


@dataclass(frozen=True)
class ScanTarget:
    url: str
    kind: TargetKind = TargetKind.REPOSITORY


def apply_retention(workspace: Workspace, report: ScanReport) -> None:
    """Keep the files that produced a finding; remove the workspace when nothing matched."""
    if report.matched:
        workspace.retain_only(report.matched_files)
    else:
        workspace.release()


class ScanPipeline:
    def __init__(self, context: AppContext):
        self.context = context
        self.log = context.log
        self.temp_directory = context.config.general.temp_directory

    def process(self, target: ScanTarget) -> Optional[ScanReport]:
        url = target.url
        workspace = Workspace.for_url(self.temp_directory, url)
        try:
            workspace.provision()
        except OSError as e:
            self.log.error("[%s] Could not prepare workspace %s: %s", url, workspace.path, e)
            return None

        try:
            self.context.cloner.clone(url, workspace.path)
        except CloneError as e:
            self.log.debug("[%s] Cloning failed: %s", url, e.specific_message)
            workspace.release()
            return None
        except Exception as e:
            self.log.debug("[%s] Cloning failed: %s: %s", url, type(e).__name__, e)
            workspace.release()
            return None

        self.log.debug("[%s] Cloning in to %s", url, workspace.name)

        try:
            report = self.context.dispatcher.scan_directory(workspace.path, url)
        except ScanError as e:
            self.log.error("[%s] Scan aborted: %s", url, e)
            workspace.release()
            return None
        except Exception as e:
            logger.debug(f"Unexpected error scanning {url}", exc_info=True)
            self.log.error("[%s] Unexpected error while scanning: %s: %s", url, type(e).__name__, e)
            workspace.release()
            return None

        try:
            apply_retention(workspace, report)
        except OSError as e:
            self.log.error("[%s] Could not prune workspace %s: %s", url, workspace.path, e)
            workspace.release()
        return report


def scan_local(context: AppContext, path: Union[str, os.PathLike]) -> int:
    """Scan a local directory once; nothing is deleted. Returns 1 if anything matched, else 0."""
    report = context.dispatcher.scan_directory(path, str(path))
    return 1 if report.matched else 0
