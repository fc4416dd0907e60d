"""Execution pipeline for the workspace controller.

This package contains the core execution components:

- **command**: Command port (``CommandRunner`` protocol, p4 subprocess runner)
- **reconcile**: Drift detection and machine-client derivation (pure)
- **filesystem**: Checkout root preparation and wipe
- **coordinator**: Phase orchestration (preflight -> reconcile -> purge -> sync)
"""
