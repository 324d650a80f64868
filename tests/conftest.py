"""Shared pytest fixtures for the Architech test suite.

Provides reusable fixtures for:
- Temporary project directories
- A Next.js + Stripe style project context
- A sample payment blueprint
- Mock subprocess helpers
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from architech.blueprint.executor import BlueprintExecutor
from architech.blueprint.models import Blueprint, ProjectContext
from architech.config import EngineConfig


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """Temporary directory for the target project (auto-cleanup)."""
    project_dir = tmp_path / "test-project"
    project_dir.mkdir()
    yield project_dir


@pytest.fixture
def write_file(tmp_project_dir: Path):
    """Write a file inside the temporary project.

    Usage:
        def test_merge(write_file):
            write_file("package.json", {"name": "app"})
    """
    def factory(relative: str, content: str | dict[str, Any]) -> Path:
        target = tmp_project_dir / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, dict):
            content = json.dumps(content, indent=2) + "\n"
        target.write_text(content, encoding="utf-8")
        return target

    return factory


# ---------------------------------------------------------------------------
# Project context
# ---------------------------------------------------------------------------

@pytest.fixture
def context_data(tmp_project_dir: Path) -> dict[str, Any]:
    """Project context as a plugin would hand it over (camelCase keys)."""
    return {
        "project": {
            "name": "acme-shop",
            "path": str(tmp_project_dir),
            "framework": "nextjs",
            "description": "Storefront for Acme",
            "author": "Acme Team",
        },
        "module": {
            "id": "payment/stripe",
            "category": "payment",
            "version": "1.2.0",
            "parameters": {
                "currency": "usd",
                "webhooks": True,
                "paymentMethods": ["card", "sepa_debit"],
            },
        },
        "integration": {
            "features": {
                "apiRoutes": True,
                "checkout": True,
                "subscriptions": False,
            },
        },
        "pathHandler": {
            "payment_config": "src/lib/payment/config.ts",
            "api_routes": "src/app/api",
            "lib": "src/lib",
        },
        "adapterSchema": {
            "parameters": {
                "currency": {"type": "select", "default": "eur", "choices": ["usd", "eur"]},
                "mode": {"type": "string", "default": "test"},
                "webhooks": {"type": "boolean", "default": False},
            },
        },
    }


@pytest.fixture
def project_context(context_data: dict[str, Any]) -> ProjectContext:
    """Validated ``ProjectContext`` for the Stripe module."""
    return ProjectContext.model_validate(context_data)


# ---------------------------------------------------------------------------
# Blueprints
# ---------------------------------------------------------------------------

@pytest.fixture
def stripe_blueprint_data() -> dict[str, Any]:
    """A realistic payment blueprint touching every kind of file."""
    return {
        "id": "stripe-nextjs",
        "name": "Stripe for Next.js",
        "version": "1.0.0",
        "actions": [
            {"type": "INSTALL_PACKAGES", "packages": ["stripe@14.5.0", "@stripe/stripe-js"]},
            {
                "type": "CREATE_FILE",
                "path": "{{paths.payment_config}}",
                "content": (
                    "import Stripe from 'stripe';\n\n"
                    "export const stripe = new Stripe(process.env.STRIPE_SECRET_KEY!);\n"
                    "export const paymentMethods = {{module.parameters.paymentMethods}};\n"
                ),
            },
            {
                "type": "CREATE_FILE",
                "path": "{{paths.api_routes}}/webhooks/stripe/route.ts",
                "condition": "{{#if integration.features.apiRoutes}}",
                "content": "export async function POST(request: Request) {\n  return new Response('ok');\n}\n",
            },
            {
                "type": "CREATE_FILE",
                "path": "{{paths.lib}}/subscriptions.ts",
                "condition": "integration.features.subscriptions",
                "content": "export const plans = [];\n",
            },
            {
                "type": "ADD_ENV_VAR",
                "key": "STRIPE_SECRET_KEY",
                "value": "sk_test_...",
                "description": "Stripe secret key",
            },
            {"type": "ADD_SCRIPT", "name": "stripe:listen", "command": "stripe listen --forward-to localhost:3000"},
        ],
    }


@pytest.fixture
def stripe_blueprint(stripe_blueprint_data: dict[str, Any]) -> Blueprint:
    return Blueprint.model_validate(stripe_blueprint_data)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

@pytest.fixture
def quiet_config() -> EngineConfig:
    """Engine config with console output disabled."""
    return EngineConfig(quiet=True)


@pytest.fixture
def mock_runner() -> MagicMock:
    """Command runner whose ``run`` succeeds without spawning anything."""
    runner = MagicMock()
    runner.run = AsyncMock(return_value=None)
    return runner


@pytest.fixture
def executor(quiet_config: EngineConfig, mock_runner: MagicMock) -> BlueprintExecutor:
    return BlueprintExecutor(quiet_config, runner=mock_runner)


# ---------------------------------------------------------------------------
# Mock Subprocess (generic)
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_subprocess():
    """Mock asyncio subprocess for testing command execution.

    Returns a factory that creates mock subprocess instances with configurable
    stdout, stderr, and return codes.

    Usage:
        def test_command(mock_subprocess):
            proc = mock_subprocess(stdout="output", returncode=0)
            with patch("asyncio.create_subprocess_exec", return_value=proc):
                ...
    """
    def factory(
        stdout: str = "",
        stderr: str = "",
        returncode: int = 0,
    ) -> AsyncMock:
        mock_proc = AsyncMock()
        mock_proc.communicate = AsyncMock(
            return_value=(stdout.encode("utf-8"), stderr.encode("utf-8"))
        )
        mock_proc.returncode = returncode
        mock_proc.pid = 99999
        mock_proc.kill = MagicMock()
        mock_proc.wait = AsyncMock(return_value=returncode)
        return mock_proc

    return factory
