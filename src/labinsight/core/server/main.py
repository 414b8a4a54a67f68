"""LabInsight server entry point — ``python -m labinsight.core.server.main``."""

from __future__ import annotations

import logging
from ipaddress import ip_address
from pathlib import Path

from labinsight.core.config.settings import Settings, get_settings
from labinsight.core.server.app import _CATALOG_DIR, _RULES_PATH, create_app


def _is_loopback_host(host: str) -> bool:
    if host in {"localhost"}:
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def data_sources(settings: Settings) -> dict[str, str]:
    """Catalog directory and rule file the server will load, overrides first."""
    return {
        "catalogs": str(Path(settings.catalog_dir).expanduser()) if settings.catalog_dir else str(_CATALOG_DIR),
        "rules": str(Path(settings.rules_path).expanduser()) if settings.rules_path else str(_RULES_PATH),
    }


def run() -> None:
    """Start the LabInsight MCP server with Streamable HTTP transport."""
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.labinsight_log_level.upper(), logging.INFO))

    logger = logging.getLogger(__name__)
    if not settings.labinsight_allow_insecure_bind and not _is_loopback_host(settings.labinsight_host):
        raise RuntimeError(
            "Refusing to bind LabInsight server to a non-loopback host without an auth layer. "
            "Set LABINSIGHT_ALLOW_INSECURE_BIND=true to override (unsafe)."
        )

    sources = data_sources(settings)
    logger.info("Catalogs: %s", sources["catalogs"])
    logger.info("Biomarker rules: %s", sources["rules"])
    logger.info(
        "Prediction: top %d diseases, child below age %d",
        settings.top_n_diseases,
        settings.child_age_threshold,
    )
    logger.info(
        "Starting LabInsight server on %s:%d",
        settings.labinsight_host,
        settings.labinsight_port,
    )

    mcp = create_app()
    mcp.run(
        transport="streamable-http",
        host=settings.labinsight_host,
        port=settings.labinsight_port,
    )


if __name__ == "__main__":
    run()
