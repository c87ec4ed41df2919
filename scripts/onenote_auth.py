#!/usr/bin/env python3
"""Sign in to Microsoft Graph or check whether a silent sign-in still works."""

import argparse
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


def main() -> None:
    parser = argparse.ArgumentParser(description="Manage Microsoft Graph sign-in")
    parser.add_argument("command", choices=["login", "status"])
    args = parser.parse_args()
    config.configure_logging()

    try:
        if args.command == "login":
            record = auth.authenticate()
            result = {
                "status": "authenticated",
                "username": record.username,
                "tenant_id": record.tenant_id,
            }
        else:
            result = auth.check_auth_status()
        print(json.dumps(result, indent=2))
    except Exception as exc:
        error = {"error": str(exc), "hint": "Check your .env file and Azure app registration."}
        print(json.dumps(error, indent=2), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
