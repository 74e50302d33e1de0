"""
Centralized observability utilities for the context event bus.

This module provides configured instances of AWS Lambda Powertools for logging,
tracing, and metrics collection shared by the registry, dispatcher and the
standard reaction handlers.
"""

from aws_lambda_powertools.logging import Logger
from aws_lambda_powertools.metrics import Metrics
from aws_lambda_powertools.tracing import Tracer

# Metrics namespace for dispatch and publish counters
METRICS_NAMESPACE = 'ContextBus'

# JSON output format, service name can be set by environment variable "POWERTOOLS_SERVICE_NAME"
logger: Logger = Logger()

# Disabled outside of Lambda, or by setting POWERTOOLS_TRACE_DISABLED to "True"
tracer: Tracer = Tracer()

# Namespace and service name can be set by environment variables:
# - POWERTOOLS_METRICS_NAMESPACE
# - POWERTOOLS_SERVICE_NAME
metrics = Metrics(namespace=METRICS_NAMESPACE)


def flush_metrics() -> None:
    """
    Emit the buffered metrics as one EMF record on stdout and clear them.

    Lambda entry points get the same effect from ``@metrics.log_metrics``.
    Long-running processes call this at the end of each unit of work.
    """
    metrics.flush_metrics(raise_on_empty_metrics=False)
