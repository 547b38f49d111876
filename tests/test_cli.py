"""CLI parser and command tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from docsmith import cli
from docsmith.cli import _build_parser, main
from docsmith.logging import configure_logging
from docsmith.orchestrator import MockDocGenerator
from docsmith.samples import SAMPLE_DOCUMENTS


@pytest.fixture
def instant_mock(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "MockDocGenerator", lambda: MockDocGenerator(latency=0, char_delay=0))


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "analyze", "app.ts"])
    assert args.verbose is True
    assert args.command == "analyze"


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["generate", "app.ts", "--verbose"])
    assert args.verbose is True
    assert args.command == "generate"


def test_generate_defaults() -> None:
    args = _build_parser().parse_args(["generate", "--text", "A todo app"])
    assert args.doc_type == "api"
    assert args.text == "A todo app"
    assert args.path is None
    assert args.stream is False
    assert args.mock is False
    assert args.config == "."


def test_generate_rejects_unknown_doc_type_and_provider() -> None:
    parser = _build_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(["generate", "app.ts", "--doc-type", "manual"])
    with pytest.raises(SystemExit):
        parser.parse_args(["test-connection", "--provider", "openai"])


def test_analyze_prints_summary(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = tmp_path / "shapes.py"
    source.write_text("class Circle(Shape):\n    def area(self):\n        return 1\n", encoding="utf-8")

    main(["analyze", str(source)])

    out = capsys.readouterr().out
    assert "## Code Analysis Summary" in out
    assert "- **Circle** extends Shape" in out


def test_analyze_json_omits_raw_code(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source = tmp_path / "helpers.py"
    source.write_text("def add(a, b):\n    return a + b\n", encoding="utf-8")

    main(["analyze", str(source), "--json"])

    payload = json.loads(capsys.readouterr().out)
    assert "raw_code" not in payload
    assert payload["language"] == "python"
    assert payload["functions"][0]["name"] == "add"


def test_analyze_missing_file_exits(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["analyze", str(tmp_path / "missing.py")])
    assert excinfo.value.code == 1


def test_generate_mock_writes_output(
    tmp_path: Path, capsys: pytest.CaptureFixture[str], instant_mock: None
) -> None:
    source = tmp_path / "service.py"
    source.write_text("def run():\n    pass\n", encoding="utf-8")
    output = tmp_path / "out" / "api.md"
    output.parent.mkdir()

    main(
        [
            "generate",
            str(source),
            "--mock",
            "--config",
            str(tmp_path),
            "--output",
            str(output),
        ]
    )

    assert output.read_text(encoding="utf-8") == SAMPLE_DOCUMENTS["api"]
    assert "Sample API Document written to" in capsys.readouterr().out


def test_generate_demo_mode_streams_text(
    tmp_path: Path, capsys: pytest.CaptureFixture[str], instant_mock: None
) -> None:
    (tmp_path / ".docsmith.yml").write_text("demo_mode: true\n", encoding="utf-8")

    main(["generate", "--text", "A todo app", "--doc-type", "test", "--stream", "--config", str(tmp_path)])

    assert SAMPLE_DOCUMENTS["test"] in capsys.readouterr().out


def test_generate_without_input_exits() -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["generate"])
    assert excinfo.value.code == 1


def test_generate_without_provider_config_exits(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["generate", "--text", "A todo app", "--config", str(tmp_path)])

    assert excinfo.value.code == 1
    assert "Configuration error" in capsys.readouterr().err


def test_test_connection_reports_provider(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    class FakeGenerator:
        def __init__(self, llm_config) -> None:
            self.provider = type("Provider", (), {"name": llm_config.provider})()

        def test_connection(self) -> bool:
            return True

    monkeypatch.setattr(cli, "DocGenerator", FakeGenerator)
    monkeypatch.setenv("ZHIPU_API_KEY", "k")

    main(["test-connection", "--config", str(tmp_path)])

    assert "zhipu connection OK" in capsys.readouterr().out


def test_log_file_accepted_before_or_after_command() -> None:
    parser = _build_parser()

    assert parser.parse_args(["--log-file", "run.log", "analyze", "a.py"]).log_file == Path("run.log")
    assert parser.parse_args(["analyze", "a.py", "--log-file", "run.log"]).log_file == Path("run.log")
    assert parser.parse_args(["analyze", "a.py"]).log_file is None


def test_log_file_receives_records(tmp_path: Path) -> None:
    source = tmp_path / "main.rs"
    source.write_text("fn main() {}\n", encoding="utf-8")
    log_file = tmp_path / "logs" / "docsmith.log"

    try:
        main(["analyze", str(source), "-v", "--log-file", str(log_file)])
        text = log_file.read_text(encoding="utf-8")
    finally:
        configure_logging()

    assert "DEBUG docsmith.analyzers: No analyzer for language" in text
    assert "main.rs" in text
