"""
logstream: Stream logs and metrics from a telemetry gateway.

Builds a validated server-side query from source and metric-type filters,
consumes the gateway's server-sent-event stream and writes one compact
JSON line per envelope, in arrival order.
"""

__version__ = "0.1.0"
