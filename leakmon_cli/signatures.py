# leakmon_cli/signatures.py
"""Named rules that flag a file by its name, path, extension or contents."""

import re
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from .config import SignatureConfig
from .exceptions import SignatureError
from .files import MatchFile


class Part(str, Enum):
    FILENAME = 'filename'
    PATH = 'path'
    EXTENSION = 'extension'
    CONTENTS = 'contents'

    @property
    def is_path_based(self) -> bool:
        return self is not Part.CONTENTS


def _part_value(file: MatchFile, part: Part) -> str:
    if part is Part.FILENAME:
        return file.filename
    if part is Part.PATH:
        return file.path
    if part is Part.EXTENSION:
        return file.extension
    return file.text


class Signature:
    def __init__(self, name: str, part: Part):
        self.name = name
        self.part = Part(part)

    def match(self, file: MatchFile) -> Tuple[bool, Part]:
        raise NotImplementedError

    def contents_matches(self, file: MatchFile) -> List[str]:
        return []

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, part={self.part.value!r})"


class SimpleSignature(Signature):
    """Exact comparison against one part of the file; extensions compare lowercased."""

    def __init__(self, name: str, part: Part, match: str):
        super().__init__(name, part)
        self.value = match.lower() if self.part is Part.EXTENSION else match

    def match(self, file: MatchFile) -> Tuple[bool, Part]:
        return _part_value(file, self.part) == self.value, self.part

    def contents_matches(self, file: MatchFile) -> List[str]:
        if self.part is not Part.CONTENTS:
            return []
        return [self.value] * file.text.count(self.value)


class PatternSignature(Signature):
    """Regular expression searched for in one part of the file."""

    def __init__(self, name: str, part: Part, regex: str):
        super().__init__(name, part)
        try:
            self.pattern = re.compile(regex)
        except re.error as e:
            raise SignatureError(name, f"bad regular expression {regex!r}: {e}", original_error=e)

    def match(self, file: MatchFile) -> Tuple[bool, Part]:
        return self.pattern.search(_part_value(file, self.part)) is not None, self.part

    def contents_matches(self, file: MatchFile) -> List[str]:
        if self.part is not Part.CONTENTS:
            return []
        return [m.group(0) for m in self.pattern.finditer(file.text)]


DEFAULT_SIGNATURES: List[SignatureConfig] = [
    SignatureConfig(name='Potential cryptographic private key', part='extension', match='.pem'),
    SignatureConfig(name='Private SSH key', part='filename', regex=r'^.*_rsa$'),
    SignatureConfig(name='Environment configuration file', part='filename', regex=r'^\.env(\..*)?$'),
    SignatureConfig(name='Shell command history file', part='filename', regex=r'^\.?(bash_|zsh_)?history$'),
    SignatureConfig(name='PKCS #12 key store', part='extension', regex=r'^\.(p12|pfx)$'),
    SignatureConfig(name='AWS Access Key ID', part='contents', regex=r'AKIA[0-9A-Z]{16}'),
    SignatureConfig(name='Private key block', part='contents', regex=r'-----BEGIN (?:RSA |EC |DSA |OPENSSH )?PRIVATE KEY-----'),
    SignatureConfig(name='GitHub personal access token', part='contents', regex=r'ghp_[0-9A-Za-z]{36}'),
    SignatureConfig(name='Slack token', part='contents', regex=r'xox[baprs]-[0-9A-Za-z-]{10,48}'),
    SignatureConfig(name='Google API key', part='contents', regex=r'AIza[0-9A-Za-z_-]{35}'),
    SignatureConfig(name='Stripe live secret key', part='contents', regex=r'sk_live_[0-9a-zA-Z]{24,}'),
    SignatureConfig(name='Telegram bot token', part='contents', regex=r'[0-9]{8,10}:AA[0-9A-Za-z_-]{33}'),
]


def load_signatures(entries: Optional[Sequence[SignatureConfig]] = None) -> List[Signature]:
    """Build signatures from configuration entries, or the built-in set when none are given."""
    signatures: List[Signature] = []
    for entry in entries or DEFAULT_SIGNATURES:
        if entry.regex is not None:
            signatures.append(PatternSignature(entry.name, Part(entry.part), entry.regex))
        else:
            signatures.append(SimpleSignature(entry.name, Part(entry.part), entry.match))
    return signatures
