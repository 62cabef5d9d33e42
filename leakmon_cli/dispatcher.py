# leakmon_cli/dispatcher.py
"""
Signature dispatch for the files of one scan target.

Three operating modes are selected by the scan configuration:

* signature mode (no search query): every signature is evaluated against
  every file;
* query-only mode (search query, ``keep_signatures`` off): only occurrences
  of the query are reported;
* two-pass mode (search query and ``keep_signatures``): the query gates the
  target, and signature mode runs only if the query matched somewhere.

Any finding, query findings included, marks both its file and its target as
matched. ``ScanReport.matched_files`` drives the retention decision made by
the pipeline: matched files are kept, everything else is deleted.
"""

import os
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set, Union

from .alerts import AlertLogger, IMPORTANT, WARN
from .config import ScanConfig, SEARCH_QUERY_LABEL
from .files import MatchFile, get_entropy, get_matching_files
from .findings import Finding, NullFindingWriter
from .signatures import Part, Signature
from .workspace import relative_path

MIN_ENTROPY_LINE_LENGTH = 7
MAX_ENTROPY_LINE_LENGTH = 99


def pluralize(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


def blob_url(url: str) -> str:
    """Browsable base for a clone URL (``.../repo.git`` -> ``.../repo/blob/master``)."""
    if url.endswith('.git'):
        return url[:-len('.git')] + '/blob/master'
    return url.rstrip('/')


@dataclass
class ScanReport:
    url: str
    findings: List[Finding] = field(default_factory=list)
    matched_files: Set[str] = field(default_factory=set)
    files_scanned: int = 0

    @property
    def matched(self) -> bool:
        return bool(self.findings)

    def add(self, file: MatchFile, findings: Sequence[Finding]) -> None:
        if findings:
            self.findings.extend(findings)
            self.matched_files.add(file.path)


class SignatureDispatcher:
    def __init__(self, signatures: Sequence[Signature], config: ScanConfig, log: AlertLogger, writer=None):
        self.signatures = list(signatures)
        self.config = config
        self.log = log
        self.writer = writer or NullFindingWriter()
        self.styler = log.styler
        self.query = re.compile(config.search_query) if config.search_query else None

    # --- Single file ---
    def _record(self, finding: Finding) -> Finding:
        self.writer.write(finding)
        return finding

    def check_search_query(self, file: MatchFile) -> List[str]:
        if self.query is None:
            return []
        return [m.group(0) for m in self.query.finditer(file.text)]

    def check_entropy(self, file: MatchFile, signature: Signature, relative_file: str, url: str) -> List[Finding]:
        findings = []
        location = f"{blob_url(url)}/{relative_file}"
        for line in file.text.split("\n"):
            line = line.rstrip("\r")
            if not MIN_ENTROPY_LINE_LENGTH <= len(line) <= MAX_ENTROPY_LINE_LENGTH:
                continue
            if get_entropy(line) >= self.config.entropy_threshold:
                self.log.important("Potential secret in %s = %s", location, self.styler.highlight(line))
                findings.append(self._record(Finding(url, signature.name, relative_file, line)))
        return findings

    def check_file(self, file: MatchFile, relative_file: str, url: str) -> List[Finding]:
        """Evaluate every signature against ``file`` and persist the resulting findings."""
        findings: List[Finding] = []
        location = f"{blob_url(url)}/{relative_file}"

        for signature in self.signatures:
            matched, part = signature.match(file)
            if not matched:
                continue

            if part is Part.CONTENTS:
                matches = signature.contents_matches(file)
                if matches:
                    count = len(matches)
                    self.log.important("%d %s for %s in file %s: %s", count, pluralize(count, "match", "matches"),
                                       self.styler.highlight(signature.name), location,
                                       self.styler.emphasis(", ".join(matches)))
                    findings.extend(self._record(Finding(url, signature.name, relative_file, m)) for m in matches)
                continue

            if self.config.path_checks:
                self.log.important("Matching file %s for %s", location, self.styler.highlight(signature.name))
                findings.append(self._record(Finding(url, signature.name, relative_file)))

            if self.config.entropy_threshold > 0 and file.can_check_entropy(self.config):
                findings.extend(self.check_entropy(file, signature, relative_file, url))

        return findings

    def check_query_file(self, file: MatchFile, relative_file: str, url: str, level: int) -> List[Finding]:
        matches = self.check_search_query(file)
        if not matches:
            return []
        count = len(matches)
        self.log.log(level, "%d %s for %s in file %s: %s", count, pluralize(count, "match", "matches"),
                     self.styler.highlight(SEARCH_QUERY_LABEL), f"{blob_url(url)}/{relative_file}",
                     self.styler.emphasis(", ".join(matches)))
        return [self._record(Finding(url, SEARCH_QUERY_LABEL, relative_file, m)) for m in matches]

    # --- Whole target ---
    def scan_directory(self, root: Union[str, os.PathLike], url: Optional[str] = None) -> ScanReport:
        """Scan every matchable file below ``root`` in the configured operating mode."""
        url = url if url is not None else str(root)
        report = ScanReport(url=url)
        files = [(f, relative_path(f.path, root)) for f in get_matching_files(root, self.config)]
        report.files_scanned = len(files)

        if self.query is None:
            for file, rel in files:
                report.add(file, self.check_file(file, rel, url))
            return report

        if not self.config.keep_signatures:
            for file, rel in files:
                report.add(file, self.check_query_file(file, rel, url, IMPORTANT))
            return report

        for file, rel in files:
            report.add(file, self.check_query_file(file, rel, url, WARN))
        if not report.matched:
            return report

        for file, rel in files:
            report.add(file, self.check_file(file, rel, url))
        return report
