from __future__ import annotations

from pathlib import Path

import pytest

from .fakes import FakeCloudApi


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    for name in (
        "TRITON_URL",
        "TRITON_ACCOUNT",
        "TRITON_KEY_ID",
        "TRITON_PROFILE",
        "TRITON_TLS_INSECURE",
        "TRITON_LOG_LEVEL",
        "SDC_URL",
        "SDC_ACCOUNT",
        "SDC_KEY_ID",
        "SDC_TLS_INSECURE",
    ):
        monkeypatch.delenv(name, raising=False)
    config_dir = tmp_path / "triton-config"
    monkeypatch.setenv("TRITON_CONFIG_DIR", str(config_dir))
    return config_dir


@pytest.fixture
def fake_cloud() -> FakeCloudApi:
    return FakeCloudApi()
