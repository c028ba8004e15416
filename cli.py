"""CLI entry point for sanitizing Markdown posts or HTML files."""

import argparse
import json
import logging
import sys
from pathlib import Path

from blog.markdown_post import PostParseError, render_post
from sanitizer.html_sanitizer import SanitizerMode, sanitize_html
from webflow.rich_text import adapt_for_rich_text


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Sanitize an HTML file or a Markdown post for preview or Webflow"
    )
    parser.add_argument(
        "input",
        type=Path,
        help="Path to the HTML or Markdown file",
    )
    parser.add_argument(
        "--markdown",
        action="store_true",
        help="Treat input as Markdown with optional YAML front matter",
    )
    parser.add_argument(
        "--mode",
        choices=[SanitizerMode.TREE, SanitizerMode.TEXT],
        default=None,
        help="Sanitizer strategy (default: HTML_SANITIZER_MODE or tree)",
    )
    parser.add_argument(
        "--webflow",
        action="store_true",
        help="Also adapt the output for a Webflow RichText field",
    )
    parser.add_argument(
        "--metadata",
        action="store_true",
        help="With --markdown, print the front matter as JSON to stderr",
    )
    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Output path for the sanitized HTML (default: print to stdout)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(name)s %(levelname)s: %(message)s",
    )

    text = args.input.read_text(encoding="utf-8")

    if args.markdown:
        try:
            rendered = render_post(text, mode=args.mode)
        except PostParseError as e:
            parser.exit(1, f"error: {e}\n")
        html = rendered.html
        if args.metadata:
            json.dump(rendered.metadata, sys.stderr, indent=2, default=str)
            sys.stderr.write("\n")
    else:
        html = sanitize_html(text, mode=args.mode)

    if args.webflow:
        html = adapt_for_rich_text(html)

    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(html, encoding="utf-8")
        print(f"Sanitized HTML written to {args.output}")
    else:
        sys.stdout.write(html)
        if not html.endswith("\n"):
            sys.stdout.write("\n")


if __name__ == "__main__":
    main()
