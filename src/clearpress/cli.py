"""CLI entry point: ``clearpress check`` and ``clearpress rulebooks``."""

from __future__ import annotations

# Phase 1: Singleton logging, before any transitive litellm imports
from clearpress.logging_config import setup_logging

setup_logging("WARNING")

import argparse  # noqa: E402
import asyncio  # noqa: E402
import sys  # noqa: E402
from pathlib import Path  # noqa: E402

from clearpress import __version__  # noqa: E402
from clearpress.analysis.schemas import ComplianceReport  # noqa: E402
from clearpress.config import Settings  # noqa: E402
from clearpress.constants import ContentType  # noqa: E402
from clearpress.editor.document import Editor, from_plain_text  # noqa: E402
from clearpress.editor.review import ComplianceReview  # noqa: E402
from clearpress.logging_config import (  # noqa: E402
    cleanup_third_party_handlers,
    set_level,
)
from clearpress.resilience.errors import ComplianceError  # noqa: E402
from clearpress.rules.loader import list_rulebooks  # noqa: E402

# Phase 2: Clear litellm's duplicate handlers after all imports
cleanup_third_party_handlers()


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"clearpress {__version__}")
        return
    if args.verbose:
        set_level("DEBUG")

    if args.command == "check":
        _run_check(args)
    elif args.command == "rulebooks":
        _run_rulebooks()
    else:
        parser.print_help()


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="clearpress",
        description="Regulatory compliance checks for PR content.",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log debug detail to stderr",
    )

    sub = parser.add_subparsers(dest="command")

    check = sub.add_parser(
        "check",
        help="Check a text file for compliance issues",
    )
    check.add_argument(
        "file",
        type=str,
        help="Path to a UTF-8 text file",
    )
    check.add_argument(
        "--industry",
        "-i",
        required=True,
        help="Industry key, e.g. pharmaceutical",
    )
    check.add_argument(
        "--content-type",
        "-t",
        choices=[c.value for c in ContentType],
        default=None,
        help="Kind of content being checked",
    )
    check.add_argument(
        "--language",
        "-l",
        choices=["ja", "en"],
        default="ja",
        help="Language of the AI feedback (default: ja)",
    )
    check.add_argument(
        "--no-ai",
        action="store_true",
        help="Run the rule engine only",
    )
    check.add_argument(
        "--format",
        "-f",
        choices=["text", "json", "html"],
        default="text",
        help="Output format (default: text)",
    )

    sub.add_parser(
        "rulebooks",
        help="List industries with a configured rulebook",
    )

    return parser


def _run_check(args: argparse.Namespace) -> None:
    """Execute the check command."""
    path = Path(args.file)
    if not path.is_file():
        print(f"Error: {path} does not exist", file=sys.stderr)
        sys.exit(1)
    content = path.read_text(encoding="utf-8")
    if not content.strip():
        print(f"Error: {path} is empty", file=sys.stderr)
        sys.exit(1)

    settings = Settings()
    if args.no_ai:
        settings = settings.model_copy(update={"ai_enabled": False})

    editor = Editor(from_plain_text(content))
    try:
        review = ComplianceReview(
            editor,
            args.industry,
            content_id=str(path),
            content_type=(
                ContentType(args.content_type) if args.content_type else None
            ),
            language=args.language,
            settings=settings,
        )
        report = asyncio.run(review.analyze())
    except ComplianceError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    if report is None:
        print("Error: analysis produced no report", file=sys.stderr)
        sys.exit(1)

    if args.format == "json":
        print(report.model_dump_json(indent=2))
    elif args.format == "html":
        print(editor.html())
    else:
        print(_format_text(report))


def _format_text(report: ComplianceReport) -> str:
    lines = [f"Score: {report.score}/100 ({report.source.value})"]
    for category, result in report.categories.items():
        lines.append(f"  {category.value:<18} {result.score:>3}")
    if report.summary:
        lines.append("")
        lines.append(report.summary)
    lines.append("")
    lines.append(f"Issues ({len(report.issues)}):")
    for issue in report.issues:
        where = (
            f"{issue.position.start}-{issue.position.end}"
            if issue.position
            else "-"
        )
        lines.append(
            f"  [{issue.severity.value}] {where} "
            f"{issue.category.value}: {issue.message}"
        )
        if issue.suggestion:
            lines.append(f"      suggestion: {issue.suggestion}")
        if issue.rule_reference:
            lines.append(f"      rule: {issue.rule_reference}")
    return "\n".join(lines)


def _run_rulebooks() -> None:
    """Execute the rulebooks command."""
    settings = Settings()
    rulebooks = list_rulebooks(rulebooks_dir=settings.rulebook_dir)
    if not rulebooks:
        print("No rulebooks configured.")
        return
    for rb in rulebooks:
        print(
            f"{rb.industry:<18} {rb.title}  "
            f"({len(rb.prohibited)} prohibited, "
            f"{len(rb.caution)} caution)"
        )
