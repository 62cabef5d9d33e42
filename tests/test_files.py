"""Tests for leakmon_cli.files."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from leakmon_cli.config import ScanConfig
from leakmon_cli.files import MatchFile, get_entropy, get_matching_files
from tests.helpers import write_tree


@pytest.mark.parametrize(
    "text, expected",
    [
        ("", 0.0),
        ("aaaa", 0.0),
        ("ab", 1.0),
        ("abcd", 2.0),
        ("0123456789abcdef", 4.0),
    ],
)
def test_entropy_values(text: str, expected: float) -> None:
    assert get_entropy(text) == pytest.approx(expected)


def test_entropy_orders_random_above_repetitive() -> None:
    assert get_entropy("wJalrXUtnFEMI/K7MDENG/bPxRfiCY") > get_entropy("password=password")


def test_matching_files_skips_deny_listed_entries(tmp_path: Path) -> None:
    write_tree(tmp_path, {
        "src/app.py": "print('hi')",
        "src/logo.PNG": "not really an image",
        "bundle.min.js": "x",
        "node_modules/dep/index.js": "x",
        ".git/config": "[core]",
        "big.txt": "x" * 200,
        "notes/readme.md": "hello",
    })
    config = ScanConfig(maximum_file_size=100)

    found = [Path(f.path).relative_to(tmp_path).as_posix() for f in get_matching_files(tmp_path, config)]

    assert found == ["notes/readme.md", "src/app.py"]


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks not supported")
def test_matching_files_skips_symlinks(tmp_path: Path) -> None:
    target = tmp_path / "outside.txt"
    target.write_text("secret", encoding="utf-8")
    repo = tmp_path / "repo"
    write_tree(repo, {"real.txt": "x"})
    (repo / "link.txt").symlink_to(target)

    found = [f.filename for f in get_matching_files(repo, ScanConfig())]

    assert found == ["real.txt"]


def test_match_file_properties() -> None:
    file = MatchFile(path="/w/conf/Server.PEM", contents=b"key")

    assert file.filename == "Server.PEM"
    assert file.extension == ".pem"
    assert file.text == "key"
    assert not file.is_binary()


def test_entropy_eligibility() -> None:
    config = ScanConfig(maximum_file_size=10)

    assert MatchFile("/w/a.txt", b"short").can_check_entropy(config)
    assert not MatchFile("/w/a.txt", b"x" * 11).can_check_entropy(config)
    assert not MatchFile("/w/a.bin", b"ab\x00cd").can_check_entropy(config)
    assert not MatchFile("/w/key.pem", b"abc").can_check_entropy(config)
    assert not MatchFile("/w/.ssh/id_rsa", b"abc").can_check_entropy(config)
