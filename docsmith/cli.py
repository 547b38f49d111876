"""CLI entrypoints for docsmith commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Optional, Union

from .analyzers import analyze_code, generate_code_summary
from .config import PROVIDERS, ConfigError, DocsmithConfig, load_config, resolve_llm_config
from .llm import LLMError
from .logging import configure_logging
from .models import DOCUMENT_TYPES, GenerateRequest
from .orchestrator import DocGenerator, MockDocGenerator
from .prompting.builder import PromptBuilder

Generator = Union[DocGenerator, MockDocGenerator]


def _add_logging_options(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    """Accept the logging flags both before and after the subcommand."""
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=argparse.SUPPRESS if suppress_default else None,
        help="Also write log records to this file.",
    )


def _add_llm_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--provider",
        choices=PROVIDERS,
        help="LLM provider to use (defaults to the first one configured).",
    )
    parser.add_argument(
        "--config",
        default=".",
        help="Path to .docsmith.yml or the directory containing it.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docsmith",
        description="Generate engineering documents from source code or descriptions.",
    )
    _add_logging_options(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Print the structure extracted from a source file.",
    )
    _add_logging_options(analyze_parser, suppress_default=True)
    analyze_parser.add_argument("path", help="Source file to analyze.")
    analyze_parser.add_argument("--language", help="Override language detection.")
    analyze_parser.add_argument(
        "--json",
        action="store_true",
        help="Emit the full metadata as JSON instead of a Markdown summary.",
    )

    generate_parser = subparsers.add_parser(
        "generate",
        help="Generate a document from a source file or a text description.",
    )
    _add_logging_options(generate_parser, suppress_default=True)
    _add_llm_options(generate_parser)
    generate_parser.add_argument(
        "path",
        nargs="?",
        help="Source file to document (omit when using --text).",
    )
    generate_parser.add_argument(
        "--doc-type",
        choices=DOCUMENT_TYPES,
        default="api",
        help="Kind of document to generate.",
    )
    generate_parser.add_argument("--text", help="Free-text description to document instead of a file.")
    generate_parser.add_argument("--language", help="Override language detection.")
    generate_parser.add_argument("--context", help="Additional context passed to the model.")
    generate_parser.add_argument(
        "--stream",
        action="store_true",
        help="Print the document as it is generated.",
    )
    generate_parser.add_argument(
        "--mock",
        action="store_true",
        help="Use canned sample documents instead of calling a provider.",
    )
    generate_parser.add_argument("--output", help="Write the document to this file.")

    test_parser = subparsers.add_parser(
        "test-connection",
        help="Check that the configured LLM provider answers.",
    )
    _add_logging_options(test_parser, suppress_default=True)
    _add_llm_options(test_parser)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP service.")
    _add_logging_options(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser


def _build_generator(args: argparse.Namespace, config: DocsmithConfig) -> Generator:
    if getattr(args, "mock", False) or config.demo_mode:
        return MockDocGenerator()
    llm_config = resolve_llm_config(config, args.provider)
    return DocGenerator(
        llm_config,
        prompt_builder=PromptBuilder(max_code_length=config.prompt.max_code_length),
    )


def _run_analyze(args: argparse.Namespace, parser: argparse.ArgumentParser) -> None:
    path = Path(args.path)
    try:
        code = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        parser.exit(1, f"Cannot read {path}: {exc}\n")
    metadata = analyze_code(code, path.name, args.language)
    if args.json:
        payload = metadata.to_dict()
        payload.pop("raw_code", None)
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        print(generate_code_summary(metadata))


def _run_generate(args: argparse.Namespace, parser: argparse.ArgumentParser) -> None:
    if args.text is None and args.path is None:
        parser.exit(1, "Provide a source file path or --text.\n")

    if args.text is not None:
        request = GenerateRequest(
            input_type="text",
            doc_type=args.doc_type,
            content=args.text,
            additional_context=args.context,
        )
    else:
        path = Path(args.path)
        try:
            code = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            parser.exit(1, f"Cannot read {path}: {exc}\n")
        request = GenerateRequest(
            input_type="code",
            doc_type=args.doc_type,
            content=code,
            file_name=path.name,
            language=args.language,
            additional_context=args.context,
        )

    try:
        generator = _build_generator(args, load_config(Path(args.config)))
        if args.stream:
            result = generator.generate_stream(request, _echo_chunk)
            print()
        else:
            result = generator.generate(request)
    except ConfigError as exc:
        parser.exit(1, f"Configuration error: {exc}\n")
    except LLMError as exc:
        parser.exit(1, f"docsmith generate failed: {exc}\nRun with --verbose for more details.\n")

    if args.output:
        output = Path(args.output)
        output.write_text(result.content, encoding="utf-8")
        print(f"{result.title} written to {_relativize(output.resolve())}")
    elif not args.stream:
        print(result.content)


def _echo_chunk(chunk: str) -> None:
    sys.stdout.write(chunk)
    sys.stdout.flush()


def _run_test_connection(args: argparse.Namespace, parser: argparse.ArgumentParser) -> None:
    try:
        llm_config = resolve_llm_config(load_config(Path(args.config)), args.provider)
        generator = DocGenerator(llm_config)
    except ConfigError as exc:
        parser.exit(1, f"Configuration error: {exc}\n")
    if not generator.test_connection():
        parser.exit(1, f"{generator.provider.name} did not respond. Run with --verbose for more details.\n")
    print(f"{generator.provider.name} connection OK")


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entrypoint for docsmith commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    if args.command == "analyze":
        _run_analyze(args, parser)
    elif args.command == "generate":
        _run_generate(args, parser)
    elif args.command == "test-connection":
        _run_test_connection(args, parser)
    elif args.command == "serve":
        from .service.app import run_service

        run_service(host=args.host, port=args.port)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
