#!/usr/bin/env -S uv run --quiet --script
# /// script
# dependencies = [
#   "pyyaml",
#   "click>=8.0",
#   "fastapi",
#   "uvicorn",
#   "httpx",
#   "pydantic>=2",
#   "pydantic-settings",
# ]
# ///
"""
Helm Template Service - Render packaged Helm charts over HTTP.
Downloads a .tgz chart, unpacks it safely and renders it with helm template.
"""

from helm_template_service import cli

if __name__ == "__main__":
    cli()
