"""Command-line front end for the form assistant.

Examples:
  # Explain one field error
  form-helper explain --field email --value bad --error "Please input a valid email"

  # Explain every error of the sample sign-up data in one answer
  form-helper sample --format markdown

  # Print the rendered form guide
  form-helper guide
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from formhelper.core.config import get_settings
from formhelper.core.structured_logging import setup_logging
from formhelper.schemas.form_assist import EMPTY_MESSAGE, FormError
from formhelper.services.form_assist.assistant import FormAssistant
from formhelper.services.form_assist.form_guide import SAMPLE_FIELD_STATES
from formhelper.services.form_assist.markdown_renderer import html_to_markdown
from formhelper.services.form_assist.streaming import GenerationHandle


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="form-helper",
        description="Explain form validation errors with a language model",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--format",
        choices=["html", "markdown"],
        default="html",
        help="Output the sanitized HTML or markdown converted back from it",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    explain = subparsers.add_parser("explain", help="Explain a single field error")
    explain.add_argument(
        "--field", required=True, help="Field path, dot separated (e.g. user.email)"
    )
    explain.add_argument("--value", required=True, help="The rejected value")
    explain.add_argument(
        "--error",
        action="append",
        required=True,
        dest="errors",
        help="Validation message (repeatable)",
    )

    subparsers.add_parser("sample", help="Explain the sample sign-up form errors")
    subparsers.add_parser("guide", help="Print the rendered form guide")
    return parser


def _format(html: str, output_format: str) -> str:
    if output_format == "markdown":
        return html_to_markdown(html)
    return html


async def run(args: argparse.Namespace) -> int:
    assistant = await FormAssistant.create(get_settings())

    if args.command == "guide":
        print(_format(assistant.form_guide_html, args.format))
        return 0

    handle: GenerationHandle | None
    if args.command == "explain":
        error = FormError(
            name=tuple(args.field.split(".")),
            errors=tuple(args.errors),
            value=args.value,
            touched=True,
        )
        handle = assistant.report_error(error)
    else:
        handle = assistant.report_fields(SAMPLE_FIELD_STATES)

    if handle is None:
        print(EMPTY_MESSAGE, file=sys.stderr)
        return 1

    condition = await handle.wait()
    if not handle.started:
        print(f"AI assistance unavailable: {condition}", file=sys.stderr)
        return 1

    print(_format(assistant.help_message, args.format))
    return 0 if condition is None else 1


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    setup_logging()
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
