"""Tests for the docmind CLI with model calls mocked out."""

from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from docmind.cli.app import app

runner = CliRunner()


@pytest.fixture
def mocked_models():
    with (
        patch("docmind.llm.ModelClient.extract_text", new_callable=AsyncMock) as extract,
        patch("docmind.llm.ModelClient.embed", new_callable=AsyncMock) as embed,
        patch("docmind.llm.ModelClient.complete", new_callable=AsyncMock) as complete,
    ):
        extract.return_value = "Refunds are issued within 30 days of purchase."
        embed.return_value = [1.0, 0.0, 0.0]
        complete.return_value = "Within 30 days."
        yield {"extract": extract, "embed": embed, "complete": complete}


@pytest.fixture
def sample_file(tmp_path):
    p = tmp_path / "refunds.txt"
    p.write_text("Refunds are issued within 30 days of purchase.")
    return p


def test_documents_empty():
    result = runner.invoke(app, ["documents"])
    assert result.exit_code == 0
    assert "No documents" in result.output


def test_ingest_then_list_and_delete(mocked_models, sample_file):
    result = runner.invoke(app, ["--json", "ingest", str(sample_file)])
    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["ingested"] == 1
    doc_id = payload["documents"][0]["document_id"]

    listed = json.loads(runner.invoke(app, ["--json", "documents"]).stdout)
    assert listed[0]["name"] == "refunds.txt"
    assert listed[0]["processed"] is True
    assert listed[0]["chunks"] == 1

    result = runner.invoke(app, ["delete", str(doc_id), "--yes"])
    assert result.exit_code == 0
    assert json.loads(runner.invoke(app, ["--json", "documents"]).stdout) == []


def test_ingest_failure_exits_nonzero(mocked_models, sample_file):
    from docmind.errors import ExtractionError

    mocked_models["extract"].side_effect = ExtractionError("model down")
    result = runner.invoke(app, ["--json", "ingest", str(sample_file)])

    assert result.exit_code == 1
    payload = json.loads(result.stdout)
    assert payload["failed"] == 1
    assert payload["documents"][0]["step"] == "extracting"


def test_chat_records_session(mocked_models, sample_file):
    runner.invoke(app, ["ingest", str(sample_file)])

    result = runner.invoke(app, ["--json", "chat", "How long for refunds?"])
    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["answer"] == "Within 30 days."
    assert payload["sources"] == ["refunds.txt"]

    follow_up = runner.invoke(
        app, ["--json", "chat", "And exchanges?", "--session", str(payload["session"])]
    )
    assert follow_up.exit_code == 0, follow_up.output
    messages = mocked_models["complete"].call_args.args[0]
    assert [m["content"] for m in messages[1:-1]] == ["How long for refunds?", "Within 30 days."]


def test_chat_unknown_user(mocked_models):
    result = runner.invoke(app, ["chat", "Hi", "--user", "ghost@example.com"])
    assert result.exit_code == 1


def test_register_and_login():
    result = runner.invoke(
        app,
        ["register", "--name", "Ana", "--email", "ana@example.com", "--password", "pw"],
    )
    assert result.exit_code == 0, result.output

    duplicate = runner.invoke(
        app,
        ["register", "--name", "Ana", "--email", "ana@example.com", "--password", "pw"],
    )
    assert duplicate.exit_code == 1

    ok = runner.invoke(app, ["--json", "login", "--email", "ana@example.com", "--password", "pw"])
    assert ok.exit_code == 0
    assert json.loads(ok.stdout)["role"] == "client"

    bad = runner.invoke(app, ["login", "--email", "ana@example.com", "--password", "nope"])
    assert bad.exit_code == 1


@pytest.mark.parametrize("args, level", [([], logging.INFO), (["-v"], logging.DEBUG)])
def test_log_level(args, level):
    with patch("logging.basicConfig") as basic_config:
        result = runner.invoke(app, [*args, "documents"])
    assert result.exit_code == 0, result.output
    assert basic_config.call_args.kwargs["level"] == level


def test_ask_file_interactive(mocked_models, sample_file):
    mocked_models["complete"].side_effect = ["About refunds.", "30 days."]

    result = runner.invoke(
        app, ["ask-file", str(sample_file)], input="What is it?\nHow long?\n\n"
    )

    assert result.exit_code == 0, result.output
    assert "About refunds." in result.output
    assert "30 days." in result.output
    second_call = mocked_models["complete"].call_args_list[1].args[0]
    assert [m["content"] for m in second_call[-3:]] == ["What is it?", "About refunds.", "How long?"]


@pytest.fixture
def config_root(tmp_path, monkeypatch):
    monkeypatch.setenv("DOCMIND_ROOT", str(tmp_path))
    shutil.copy(Path(__file__).parent.parent / "config.default.yaml", tmp_path)
    return tmp_path


def test_config_set_and_show(config_root):
    result = runner.invoke(app, ["config", "set", "chat.top_k", "8"])
    assert result.exit_code == 0, result.output
    assert (config_root / "config.yaml").exists()

    shown = runner.invoke(app, ["--json", "config", "show"])
    assert shown.exit_code == 0, shown.output
    data = json.loads(shown.stdout)
    assert data["chat"]["top_k"] == 8
    assert data["chat"]["history_turns"] == 5
    assert data["admin"]["password"] == "********"


def test_config_set_rejects_unknown_key(config_root):
    result = runner.invoke(app, ["config", "set", "chat.topk", "8"])
    assert result.exit_code == 1
    assert not (config_root / "config.yaml").exists()
