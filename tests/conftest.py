"""Shared fixtures: fake ``bazel`` and ``genhtml`` executables."""

import stat
import textwrap
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in ("BAZELCOV_BAZEL", "BAZELCOV_GENHTML", "BAZELCOV_OUTPUT"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def make_script(tmp_path):
    """Return a factory writing an executable shell script into *tmp_path*/bin."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()

    def _make(name: str, body: str) -> str:
        path = bin_dir / name
        path.write_text("#!/bin/sh\n" + textwrap.dedent(body), encoding="utf-8")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(path)

    return _make


@pytest.fixture
def workspace(tmp_path) -> Path:
    ws = tmp_path / "ws"
    ws.mkdir()
    return ws


@pytest.fixture
def fake_genhtml(make_script):
    """genhtml stand-in: copies its input into the output directory.

    Also records its arguments and working directory next to the copy.
    """
    return make_script("genhtml", """\
        for last; do :; done
        out=""
        for arg; do
          case "$arg" in
            --output-directory=*) out="${arg#--output-directory=}" ;;
          esac
        done
        mkdir -p "$out"
        cp "$last" "$out/input.info"
        printf '%s\\n' "$@" > "$out/args.txt"
        pwd > "$out/cwd.txt"
        """)
