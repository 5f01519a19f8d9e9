"""Provision a local Laravel + Vue stack driven by docker compose.

The run is linear and fail-fast: preflight, generated files, image build,
backend and frontend project setup, `up -d`, then an ownership fixup.
"""
