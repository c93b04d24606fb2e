# src/logstream/stream/query.py
"""Outbound query construction for the gateway read endpoint.

Wire contract (must match exactly):
- One parameter per requested metric type, key = lowercase type name,
  value = empty string
- source_id, repeated once per resolved source id, in filter order
- shard_id, single value, only present if a shard id was configured
"""

from collections.abc import Sequence

import httpx

from logstream.contracts.selectors import EgressBatchRequest

STREAM_PATH = "/v2/read"


def build_query_params(
    request: EgressBatchRequest,
    source_ids: Sequence[str] = (),
    shard_id: str | None = None,
) -> list[tuple[str, str]]:
    """Derive ordered query parameters for a read request.

    Args:
        request: Validated selector sequence; supplies the metric types
        source_ids: Resolved source ids, sent verbatim (repeats included)
        shard_id: Optional shard token; omitted when None or empty

    Returns:
        Ordered (key, value) pairs suitable for httpx.QueryParams
    """
    params: list[tuple[str, str]] = [(metric_type.value, "") for metric_type in request.metric_types]
    params.extend(("source_id", source_id) for source_id in source_ids)
    if shard_id:
        params.append(("shard_id", shard_id))
    return params


def build_stream_url(host: str, params: list[tuple[str, str]]) -> httpx.URL:
    """Build the read URL for a gateway host.

    The host may be given with or without a scheme (https is assumed).
    Any path on the host is replaced by STREAM_PATH.

    Raises:
        ValueError: If host is empty or has no network location
    """
    host = host.strip()
    if not host:
        raise ValueError("gateway host must not be empty")
    if "://" not in host:
        host = f"https://{host}"
    try:
        base = httpx.URL(host)
    except httpx.InvalidURL as e:
        raise ValueError(f"invalid gateway host {host!r}: {e}") from e
    if not base.host:
        raise ValueError(f"invalid gateway host {host!r}: no network location")
    return base.copy_with(path=STREAM_PATH, params=httpx.QueryParams(params))
