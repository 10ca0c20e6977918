"""Developer tasks powered by Invoke."""

from __future__ import annotations

import pathlib
import subprocess
from typing import Sequence

from invoke import task

ROOT = pathlib.Path(__file__).parent.resolve()
RESULTS_DIR = ROOT / "results"
PACKAGE = "src/serviceselector"


def _uv(*args: str) -> None:
    subprocess.run(["uv", "run", *args], check=True, cwd=ROOT)


def _pytest_args(extra: Sequence[str] = ()) -> list[str]:
    return ["pytest", "tests/", *extra]


@task
def tests(_context, verbose=False):
    """Run the unit tests."""
    _uv(*_pytest_args(["-v"] if verbose else ["-q"]))


@task
def coverage(_context):
    """Run tests under coverage and write reports to results/."""
    RESULTS_DIR.mkdir(exist_ok=True)
    _uv("coverage", "erase")
    _uv("coverage", "run", "--source", PACKAGE, "-m",
        *_pytest_args(["--junitxml=results/pytest.xml"]))
    _uv("coverage", "report", "--fail-under=90")
    _uv("coverage", "xml", "-o", "results/coverage.xml")


@task
def lint(_context):
    """Check formatting and types."""
    _uv("black", "--check", "src", "tests", "tasks.py")
    _uv("mypy", PACKAGE)


@task
def build(_context):
    """Build sdist and wheel."""
    subprocess.run(["uv", "build"], check=True, cwd=ROOT)
