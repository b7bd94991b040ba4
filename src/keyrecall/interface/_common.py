"""Helpers shared by CLI command modules."""

from typing import Any

import typer

from keyrecall.application.config import AppConfig, resolve_config
from keyrecall.application.factory import build_review_service
from keyrecall.application.review_service import ReviewService
from keyrecall.domain.review.errors import StorageError


def _resolve_with_overrides(**overrides: Any) -> AppConfig:
    """Resolve config, letting non-None CLI options win over file/env values."""
    try:
        return resolve_config(overrides)
    except ValueError as e:
        typer.secho(f"Invalid configuration: {e}", fg="red", err=True)
        raise typer.Exit(2) from e


def _build_service(config: AppConfig) -> ReviewService:
    try:
        return build_review_service(config)
    except StorageError as e:
        typer.secho(f"Could not load review state: {e}", fg="red", err=True)
        raise typer.Exit(1) from e
    except ValueError as e:
        typer.secho(f"Invalid scheduling policy: {e}", fg="red", err=True)
        raise typer.Exit(2) from e
