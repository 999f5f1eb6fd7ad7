"""Unit tests for package version resolution."""

from __future__ import annotations

import importlib.metadata
import importlib.util
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

import pytest

import learnbridge
from learnbridge.config import HttpSettings


def test_version_from_metadata_or_fallback() -> None:
    try:
        expected = version("learnbridge")
    except PackageNotFoundError:
        expected = "0.0.0+unknown"

    assert learnbridge.__version__ == expected


def test_default_user_agent_carries_version() -> None:
    assert HttpSettings().user_agent == f"learnbridge/{learnbridge.__version__}"


def test_missing_metadata_warns_and_falls_back(monkeypatch: pytest.MonkeyPatch) -> None:
    def _raise_package_not_found(_name: str) -> str:
        raise PackageNotFoundError

    monkeypatch.setattr(importlib.metadata, "version", _raise_package_not_found)

    init_path = Path(__file__).resolve().parents[2] / "src" / "learnbridge" / "__init__.py"
    spec = importlib.util.spec_from_file_location("learnbridge_version_test", init_path)
    assert spec is not None
    assert spec.loader is not None

    module = importlib.util.module_from_spec(spec)
    with pytest.warns(RuntimeWarning, match="Package metadata for 'learnbridge' not found"):
        spec.loader.exec_module(module)

    assert module.__version__ == "0.0.0+unknown"
