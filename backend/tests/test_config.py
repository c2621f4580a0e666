"""Tests for settings sources: defaults, config.yaml and AUTOTUBE_ env vars."""

from pathlib import Path

import pytest

from autotube.config import Settings


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_defaults_without_config_file():
    config = Settings()

    assert config.storage.job_store == "memory"
    assert config.storage.tmp_dir == Path("tmp")
    assert config.tts.voices["dramatic"] == "onyx"
    assert config.publish.client_id is None


def test_yaml_file_is_loaded(isolated_cwd):
    (isolated_cwd / "config.yaml").write_text(
        "tts:\n  model: tts-1-hd\nstorage:\n  tmp_dir: artifacts\n"
    )

    config = Settings()

    assert config.tts.model == "tts-1-hd"
    assert config.storage.tmp_dir == Path("artifacts")


def test_env_overrides_yaml(isolated_cwd, monkeypatch):
    (isolated_cwd / "config.yaml").write_text("storage:\n  job_store: memory\n")
    monkeypatch.setenv("AUTOTUBE_STORAGE__JOB_STORE", "sql")
    monkeypatch.setenv("AUTOTUBE_PUBLISH__REFRESH_TOKEN", "refresh-1")

    config = Settings()

    assert config.storage.job_store == "sql"
    assert config.publish.refresh_token == "refresh-1"
