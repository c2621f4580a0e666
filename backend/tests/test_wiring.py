"""Tests for artifact storage, provider routing and executor wiring."""

import pytest

from autotube.config import Settings
from autotube.db.store import SqlJobStore
from autotube.orchestrator.factory import build_executor, create_job_store
from autotube.orchestrator.store import InMemoryJobStore
from autotube.services.file_manager import FileManager
from autotube.services.llm import get_adapter
from autotube.services.llm.ollama_adapter import OllamaAdapter
from autotube.services.llm.vertex_adapter import VertexAIAdapter


def test_run_dirs_are_isolated(tmp_path):
    files = FileManager(tmp_path)

    audio = files.save_audio("run-a", b"ID3")
    output = files.get_output_path("run-b")

    assert audio == tmp_path.resolve() / "run-a" / "audio" / "narration.mp3"
    assert output.parent == tmp_path.resolve() / "run-b" / "output"
    assert output.parent.is_dir()


@pytest.mark.parametrize("run_id", ["../escape", "..", "."])
def test_run_dir_traversal_rejected(tmp_path, run_id):
    with pytest.raises(ValueError, match="Invalid run path"):
        FileManager(tmp_path).get_run_dir(run_id)


def test_adapter_routing():
    ollama = get_adapter("ollama/llama3.1", Settings())
    vertex = get_adapter("gemini-2.5-flash", Settings())

    assert isinstance(ollama, OllamaAdapter)
    assert ollama.model_id == "ollama/llama3.1"
    assert isinstance(vertex, VertexAIAdapter)


@pytest.mark.asyncio
async def test_create_job_store_backends(tmp_path):
    memory = await create_job_store(Settings())
    sql = await create_job_store(
        Settings(storage={"job_store": "sql", "database_url": "sqlite+aiosqlite:///:memory:"})
    )
    try:
        assert isinstance(memory, InMemoryJobStore)
        assert isinstance(sql, SqlJobStore)
        assert await sql.list() == []
    finally:
        await sql.close()


def test_build_executor_from_settings(tmp_path):
    config = Settings(
        llm={"script_model": "ollama/llama3.1"},
        storage={"tmp_dir": str(tmp_path / "runs")},
    )
    store = InMemoryJobStore()

    executor = build_executor(store, config)

    assert executor.store is store
    assert (tmp_path / "runs").is_dir()
