"""
Shared fixtures for buildsrc-versions tests.
"""

import json
import os

import pytest

from src.buildsrc_versions.cli_config import ENV_PREFIX, reset_config
from src.buildsrc_versions.dependency import AvailableVersions, DependencyRecord


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch, tmp_path):
    """Every test starts from the default configuration."""
    monkeypatch.setenv("HOME", str(tmp_path))
    for key in list(os.environ):
        if key.startswith(ENV_PREFIX):
            monkeypatch.delenv(key)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def temp_dir(tmp_path):
    return tmp_path


@pytest.fixture
def make_dependency():
    """Factory for unresolved dependency records."""

    def _make(group, module, version="1.0.0", release=None):
        available = AvailableVersions(release=release) if release else None
        return DependencyRecord(
            group=group, module=module, version=version, available=available
        )

    return _make


@pytest.fixture
def sample_report_data():
    """A dependency-updates report with every naming situation in it."""
    return {
        "current": {
            "count": 2,
            "dependencies": [
                {
                    "group": "com.squareup.okhttp3",
                    "name": "okhttp",
                    "version": "3.12.1",
                    "projectUrl": "https://square.github.io/okhttp/",
                },
                {"group": "com.example", "name": "core", "version": "1.0.0"},
            ],
        },
        "outdated": {
            "count": 3,
            "dependencies": [
                {
                    "group": "org.jetbrains.kotlinx",
                    "name": "kotlinx-coroutines-core",
                    "version": "1.3.2",
                    "available": {
                        "release": "1.3.3",
                        "milestone": None,
                        "integration": None,
                    },
                },
                {
                    "group": "org.jetbrains.kotlinx",
                    "name": "kotlinx-coroutines-android",
                    "version": "1.3.2",
                    "available": {"release": "1.3.3"},
                },
                {
                    "group": "com.example.auth",
                    "name": "auth",
                    "version": "2.0.0",
                    "available": {"release": "2.1.0"},
                },
            ],
        },
        "exceeded": {"count": 0, "dependencies": []},
        "unresolved": {
            "count": 1,
            "dependencies": [
                {"group": "org.acme.auth", "name": "auth", "version": "0.9.0"}
            ],
        },
        "gradle": {
            "running": {"version": "5.6.2"},
            "current": {"version": "6.0.1"},
        },
    }


@pytest.fixture
def sample_report_json(temp_dir, sample_report_data):
    report = temp_dir / "report.json"
    report.write_text(json.dumps(sample_report_data, indent=2))
    return report
