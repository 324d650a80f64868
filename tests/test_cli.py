"""Tests for the ``architech`` command-line entry point (architech.cli)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest
import yaml

from architech.cli import main

pytestmark = pytest.mark.unit


def _write_json(path: Path, data: dict[str, Any]) -> str:
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def _write_yaml(path: Path, data: dict[str, Any]) -> str:
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return str(path)


@pytest.fixture
def readme_blueprint() -> dict[str, Any]:
    return {
        "id": "readme",
        "name": "Readme",
        "actions": [
            {"type": "CREATE_FILE", "path": "README.md", "content": "# {{project.name}}\n"},
        ],
    }


@pytest.fixture(autouse=True)
def _clean_engine_env(monkeypatch):
    for name in (
        "ARCHITECH_MANIFEST_FILE",
        "ARCHITECH_ENV_FILE",
        "ARCHITECH_ENV_EXAMPLE_FILE",
        "ARCHITECH_COMMAND_TIMEOUT",
        "ARCHITECH_CAPTURE_OUTPUT",
        "ARCHITECH_COMMIT",
        "ARCHITECH_QUIET",
    ):
        monkeypatch.delenv(name, raising=False)


class TestRun:
    def test_json_documents(self, tmp_path, tmp_project_dir, context_data, readme_blueprint):
        blueprint = _write_json(tmp_path / "readme.blueprint.json", readme_blueprint)
        context = _write_json(tmp_path / "context.json", context_data)

        main(["run", blueprint, "--context", context, "--quiet"])

        assert (tmp_project_dir / "README.md").read_text(encoding="utf-8") == "# acme-shop\n"

    def test_yaml_documents(self, tmp_path, tmp_project_dir, context_data, stripe_blueprint_data):
        blueprint = _write_yaml(tmp_path / "stripe.blueprint.yaml", stripe_blueprint_data)
        context = _write_yaml(tmp_path / "context.yml", context_data)

        main(["run", blueprint, "-c", context, "-q"])

        manifest = json.loads((tmp_project_dir / "package.json").read_text(encoding="utf-8"))
        assert manifest["dependencies"]["stripe"] == "14.5.0"
        assert (tmp_project_dir / "src/lib/payment/config.ts").exists()
        assert not (tmp_project_dir / "src/lib/subscriptions.ts").exists()

    def test_no_commit_writes_nothing(self, tmp_path, tmp_project_dir, context_data, readme_blueprint):
        blueprint = _write_json(tmp_path / "readme.blueprint.json", readme_blueprint)
        context = _write_json(tmp_path / "context.json", context_data)

        main(["run", blueprint, "--context", context, "--no-commit", "-q"])

        assert not (tmp_project_dir / "README.md").exists()

    def test_config_file(self, tmp_path, tmp_project_dir, context_data, readme_blueprint):
        config_path = tmp_path / "architech.json"
        config_path.write_text(json.dumps({"quiet": True, "manifest_file": "app/package.json"}), encoding="utf-8")
        readme_blueprint["actions"].append({"type": "ADD_SCRIPT", "name": "dev", "command": "next dev"})
        blueprint = _write_json(tmp_path / "readme.blueprint.json", readme_blueprint)
        context = _write_json(tmp_path / "context.json", context_data)

        main(["run", blueprint, "--context", context, "--config", str(config_path)])

        manifest = json.loads((tmp_project_dir / "app/package.json").read_text(encoding="utf-8"))
        assert manifest["scripts"] == {"dev": "next dev"}


class TestFailures:
    def test_failed_action_exits_1(self, tmp_path, tmp_project_dir, context_data):
        blueprint = _write_json(tmp_path / "bad.blueprint.json", {
            "id": "bad",
            "name": "Bad",
            "actions": [
                {"type": "CREATE_FILE", "path": "README.md", "content": "hello\n"},
                {"type": "CREATE_FILE", "path": "../escape.txt", "content": "nope\n"},
            ],
        })
        context = _write_json(tmp_path / "context.json", context_data)

        with patch("architech.cli.console") as mock_console:
            with pytest.raises(SystemExit) as exc_info:
                main(["run", blueprint, "--context", context, "-q"])

        assert exc_info.value.code == 1
        assert not (tmp_project_dir / "README.md").exists()
        printed = " ".join(str(call.args[0]) for call in mock_console.print.call_args_list)
        assert "Action 2 (CREATE_FILE) failed" in printed

    def test_missing_blueprint_file(self, tmp_path, context_data):
        context = _write_json(tmp_path / "context.json", context_data)
        with pytest.raises(SystemExit) as exc_info:
            main(["run", str(tmp_path / "absent.json"), "--context", context, "-q"])
        assert exc_info.value.code == 1

    def test_missing_config_file(self, tmp_path, context_data, readme_blueprint):
        blueprint = _write_json(tmp_path / "readme.blueprint.json", readme_blueprint)
        context = _write_json(tmp_path / "context.json", context_data)
        with pytest.raises(SystemExit) as exc_info:
            main(["run", blueprint, "--context", context, "--config", str(tmp_path / "nope.json")])
        assert exc_info.value.code == 1

    def test_document_not_a_mapping(self, tmp_path, context_data):
        blueprint = tmp_path / "list.blueprint.yaml"
        blueprint.write_text("- one\n- two\n", encoding="utf-8")
        context = _write_json(tmp_path / "context.json", context_data)
        with pytest.raises(SystemExit) as exc_info:
            main(["run", str(blueprint), "--context", context, "-q"])
        assert exc_info.value.code == 1

    def test_malformed_json(self, tmp_path, context_data):
        blueprint = tmp_path / "broken.json"
        blueprint.write_text("{not json", encoding="utf-8")
        context = _write_json(tmp_path / "context.json", context_data)
        with pytest.raises(SystemExit) as exc_info:
            main(["run", str(blueprint), "--context", context, "-q"])
        assert exc_info.value.code == 1

    def test_invalid_blueprint(self, tmp_path, context_data):
        blueprint = _write_json(tmp_path / "invalid.json", {"name": "No id", "actions": []})
        context = _write_json(tmp_path / "context.json", context_data)
        with pytest.raises(SystemExit) as exc_info:
            main(["run", blueprint, "--context", context, "-q"])
        assert exc_info.value.code == 1

    def test_context_required(self, tmp_path, readme_blueprint):
        blueprint = _write_json(tmp_path / "readme.blueprint.json", readme_blueprint)
        with pytest.raises(SystemExit) as exc_info:
            main(["run", blueprint])
        assert exc_info.value.code == 2
