"""Bloom server entry point — ``python -m bloom.core.server.main``."""

from __future__ import annotations

import logging
from ipaddress import ip_address

from bloom.core.config.settings import Settings, get_settings
from bloom.core.server.app import create_app
from bloom.domains.wellness.visibility import Stage, UnknownStageError

logger = logging.getLogger(__name__)


def _is_loopback_host(host: str) -> bool:
    if host in {"localhost"}:
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def _check_settings(settings: Settings) -> list[str]:
    """Reject tracker settings the session cannot start with.

    Returns:
        Human-readable warnings for settings that work but deserve attention.

    Raises:
        RuntimeError: A setting is unusable.
    """
    problems = []
    try:
        Stage.parse(settings.default_stage)
    except UnknownStageError as exc:
        choices = ", ".join(s.value for s in Stage)
        problems.append(f"DEFAULT_STAGE: {exc} (expected one of: {choices})")
    if settings.swipe_commit_threshold < 0:
        problems.append("SWIPE_COMMIT_THRESHOLD must not be negative")
    if settings.daily_retention_limit < 1:
        problems.append("DAILY_RETENTION_LIMIT must be at least 1")
    if settings.autosave_delay_seconds < 0 or settings.completion_delay_seconds < 0:
        problems.append("AUTOSAVE_DELAY_SECONDS and COMPLETION_DELAY_SECONDS must not be negative")
    if problems:
        raise RuntimeError("Invalid Bloom settings: " + "; ".join(problems))

    warnings = []
    if not settings.encryption_key and settings.db_path != ":memory:":
        warnings.append(
            f"ENCRYPTION_KEY is not set; tracker data in {settings.db_path} is stored in plaintext"
        )
    return warnings


def run() -> None:
    """Start the Bloom tracker MCP server with Streamable HTTP transport."""
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.bloom_log_level.upper(), logging.INFO))

    if not settings.bloom_allow_insecure_bind and not _is_loopback_host(settings.bloom_host):
        raise RuntimeError(
            "Refusing to bind Bloom server to a non-loopback host without an auth layer. "
            "Set BLOOM_ALLOW_INSECURE_BIND=true to override (unsafe)."
        )
    for warning in _check_settings(settings):
        logger.warning(warning)
    logger.info(
        "Starting Bloom tracker server on %s:%d (default stage %s, keeping %d days of medicine history)",
        settings.bloom_host,
        settings.bloom_port,
        settings.default_stage,
        settings.daily_retention_limit,
    )

    mcp = create_app()
    mcp.run(
        transport="streamable-http",
        host=settings.bloom_host,
        port=settings.bloom_port,
    )


if __name__ == "__main__":
    run()
