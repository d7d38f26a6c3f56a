"""Schema-stamped JSON output for CLI commands.

Every ``--json`` payload carries ``schema_id``, ``schema_version``,
``producer`` and ``produced_at`` so scripts can detect format changes.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

from pgpgate import __version__


def json_response(
    schema_id: str,
    schema_version: int,
    **data: Any,
) -> str:
    """Create schema-wrapped JSON response for CLI output.

    Args:
        schema_id: Identifier for the output type (e.g., "verify_result").
        schema_version: Integer version for backward compatibility.
        **data: Payload data to include in the response.

    Returns:
        JSON string with schema metadata and payload.

    Example:
        >>> json_response("verify_result", 1, signer="Alice", signature_valid=True)
        {
          "schema_id": "verify_result",
          "schema_version": 1,
          "producer": "pgpgate-0.1.0",
          "produced_at": "2026-10-18T10:30:00+00:00",
          "signer": "Alice",
          "signature_valid": true
        }
    """
    wrapped = {
        "schema_id": schema_id,
        "schema_version": schema_version,
        "producer": f"pgpgate-{__version__}",
        "produced_at": datetime.now(UTC).isoformat(),
        **data,
    }
    return json.dumps(wrapped, indent=2, default=str)
