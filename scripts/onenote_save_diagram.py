#!/usr/bin/env python3
"""Render a Mermaid diagram and save it as a JPEG on a new OneNote page."""

import argparse
import asyncio
import json
import os
import sys

# Auto-detect venv and re-exec if needed
_script_dir = os.path.dirname(os.path.abspath(__file__))
_repo_root = os.path.dirname(_script_dir)
_venv_python = os.path.join(_repo_root, ".venv", "bin", "python3")
if os.path.exists(_venv_python) and sys.executable != _venv_python:
    os.execv(_venv_python, [_venv_python] + sys.argv)

sys.path.insert(0, os.path.join(_repo_root, "src"))

from onenote_diagrams import auth, config
from onenote_diagrams.diagram.errors import PublishError
from onenote_diagrams.diagram.publish import publish_diagram
from onenote_diagrams.onenote import sections


async def main() -> None:
    parser = argparse.ArgumentParser(description="Save a Mermaid diagram to OneNote")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--section-id", help="Section ID")
    target.add_argument("--notebook", help="Notebook name (requires --section)")
    parser.add_argument("--section", help="Section name within --notebook")
    parser.add_argument("--title", required=True, help="Page title")
    parser.add_argument("--description", default=None, help="Text shown above the diagram source")
    parser.add_argument("--markup", default=None, help="Mermaid markup")
    parser.add_argument("--stdin", action="store_true", help="Read Mermaid markup from stdin")
    args = parser.parse_args()
    if args.notebook and not args.section:
        parser.error("--notebook requires --section")

    config.configure_logging()

    markup = args.markup or ""
    if args.stdin:
        markup = sys.stdin.read()

    try:
        section_id = args.section_id
        if section_id is None:
            client = auth.get_graph_client()
            section_id = await sections.find_section_id(client, args.notebook, args.section)

        result = await publish_diagram(args.title, markup, section_id, args.description)
        result.update(
            {
                "notebookName": args.notebook,
                "sectionName": args.section,
                "message": "Diagram saved successfully to OneNote",
            }
        )
        print(json.dumps(result, indent=2))
    except PublishError as exc:
        error = {**exc.to_dict(), "message": "Failed to save diagram to OneNote"}
        print(json.dumps(error, indent=2), file=sys.stderr)
        sys.exit(1)
    except Exception as exc:
        print(json.dumps({"error": str(exc), "message": "Failed to save diagram to OneNote"}), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
