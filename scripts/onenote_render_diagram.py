#!/usr/bin/env python3
"""Render Mermaid markup to a JPEG file without touching OneNote."""

import argparse
import asyncio
import json
import os
import sys
from pathlib import Path

# Auto-detect venv and re-exec if needed
_script_dir = os.path.dirname(os.path.abspath(__file__))
_repo_root = os.path.dirname(_script_dir)
_venv_python = os.path.join(_repo_root, ".venv", "bin", "python3")
if os.path.exists(_venv_python) and sys.executable != _venv_python:
    os.execv(_venv_python, [_venv_python] + sys.argv)

sys.path.insert(0, os.path.join(_repo_root, "src"))

from onenote_diagrams import config
from onenote_diagrams.diagram.render import MermaidRenderer


async def main() -> None:
    parser = argparse.ArgumentParser(description="Render a Mermaid diagram to JPEG")
    parser.add_argument("--output", required=True, type=Path, help="Where to write the JPEG")
    parser.add_argument("--markup", default=None, help="Mermaid markup")
    parser.add_argument("--stdin", action="store_true", help="Read Mermaid markup from stdin")
    parser.add_argument("--timeout", type=float, default=config.RENDER_TIMEOUT, help="Seconds to wait for the diagram")
    args = parser.parse_args()

    config.configure_logging()

    markup = args.markup or ""
    if args.stdin:
        markup = sys.stdin.read()

    try:
        artifact = await MermaidRenderer(timeout=args.timeout).render(markup)
        args.output.write_bytes(artifact.data)
        print(json.dumps({"output": str(args.output), "bytes": len(artifact), "mediaType": artifact.media_type}, indent=2))
    except Exception as exc:
        print(json.dumps({"error": str(exc)}), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
