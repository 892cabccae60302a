"""Work-unit orchestration engine.

Provides:
- Settings loaded from .env
- Structured logging
- A small CLI surface
- Issue claiming, repository provisioning and branch reconciliation
- The work-unit registry
"""
