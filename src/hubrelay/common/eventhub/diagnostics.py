"""Diagnostic utilities for Event Hub connection troubleshooting.

Provides functions for safely logging connection information without
leaking the shared access key.
"""

import logging
import os
import re
import sys
from typing import Any

logger = logging.getLogger(__name__)


def mask_connection_string(conn_str: str) -> str:
    if not conn_str:
        return ""

    return re.sub(
        r"(SharedAccessKey=)[^;]+",
        r"\1***MASKED***",
        conn_str,
        flags=re.IGNORECASE,
    )


def parse_connection_string(conn_str: str) -> dict[str, str]:
    """Parse Event Hub connection string into components.

    Args:
        conn_str: Event Hub connection string

    Returns:
        Dict with connection string components (Endpoint, SharedAccessKeyName, etc.)
    """
    if not conn_str:
        return {}

    parts = {}
    for part in conn_str.split(";"):
        if "=" in part:
            key, value = part.split("=", 1)
            parts[key.strip()] = value.strip()

    return parts


def extract_namespace_host(conn_str: str) -> str | None:
    """Extract the Service Bus namespace hostname (e.g. "myhub.servicebus.windows.net")."""
    parts = parse_connection_string(conn_str)
    endpoint = parts.get("Endpoint", "")

    match = re.search(r"sb://([^/]+)", endpoint)
    if match:
        return match.group(1)

    return None


def log_connection_diagnostics(conn_str: str, eventhub_name: str, partition_id: str) -> None:
    """Log connection settings at DEBUG level for troubleshooting."""
    parts = parse_connection_string(conn_str)
    logger.debug(
        "Event Hub connection diagnostics",
        extra={
            "connection_string_masked": mask_connection_string(conn_str),
            "entity": eventhub_name,
            "partition_id": partition_id,
        },
    )
    logger.debug(f"Namespace host: {extract_namespace_host(conn_str) or 'NOT SET'}")
    logger.debug(
        f"SharedAccessKeyName: {parts.get('SharedAccessKeyName', 'NOT SET')}, "
        f"SharedAccessKey: {'***SET***' if parts.get('SharedAccessKey') else 'NOT SET'}"
    )
    if parts.get("EntityPath") and parts["EntityPath"] != eventhub_name:
        logger.warning(
            f"EntityPath '{parts['EntityPath']}' in connection string does not match "
            f"eventHubName '{eventhub_name}'"
        )
    logger.debug(f"Python version: {sys.version.split()[0]}, platform: {sys.platform}")


def log_connection_attempt_details(
    eventhub_name: str,
    transport_type: str,
    ssl_kwargs: dict[str, Any],
) -> None:
    """Log details about the connection attempt.

    Args:
        eventhub_name: Event Hub entity name
        transport_type: Transport type (e.g., "AmqpOverWebsocket")
        ssl_kwargs: SSL configuration kwargs
    """
    logger.debug(
        "Connection attempt details",
        extra={"entity": eventhub_name, "transport": transport_type},
    )

    ca_path = ssl_kwargs.get("connection_verify")
    if not ca_path:
        logger.debug("Using system default certificates")
    elif os.path.exists(ca_path):
        logger.debug(f"Using custom CA bundle: {ca_path}")
    else:
        logger.error(f"CA bundle file NOT FOUND: {ca_path}")


__all__ = [
    "mask_connection_string",
    "parse_connection_string",
    "extract_namespace_host",
    "log_connection_diagnostics",
    "log_connection_attempt_details",
]
