"""
Environment variable models for type-safe configuration.

This module defines the Pydantic model for the environment variables the event
bus reads and builds the configured broadcast channel from them.
"""

from typing import Annotated, Literal, Optional

from aws_lambda_env_modeler import BaseModel as BaseEnvModel, get_environment_variables
from pydantic import Field

from context_bus.broadcast.channel import BroadcastChannel, InMemoryBroadcastChannel
from context_bus.broadcast.eventbridge import EventBridgeBroadcastChannel
from context_bus.handlers.registration import DEFAULT_PRIORITY


class BusEnvVars(BaseEnvModel):
    """Environment variables for the context event bus."""

    # Service name for observability
    POWERTOOLS_SERVICE_NAME: Annotated[str, Field(
        default='context-bus',
        description='Service name for AWS Powertools'
    )] = 'context-bus'

    # Log level for AWS Powertools Logger
    LOG_LEVEL: Annotated[str, Field(
        default='INFO',
        description='Log level for application logging',
        pattern=r'^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$'
    )] = 'INFO'

    # Broadcast channel backend
    BROADCAST_BACKEND: Annotated[Literal['memory', 'eventbridge'], Field(
        default='memory',
        description='Broadcast channel implementation'
    )] = 'memory'

    EVENT_BUS_NAME: Annotated[str, Field(
        default='default',
        description='EventBridge bus used by the eventbridge backend',
        min_length=1
    )] = 'default'

    EVENT_SOURCE: Annotated[str, Field(
        default='context-bus',
        description='EventBridge Source of published entries',
        min_length=1
    )] = 'context-bus'

    AWS_REGION: Annotated[str, Field(
        default='us-east-1',
        description='AWS region for the EventBridge client'
    )] = 'us-east-1'

    DEFAULT_HANDLER_PRIORITY: Annotated[int, Field(
        default=DEFAULT_PRIORITY,
        description='Priority of handler registrations that omit one'
    )] = DEFAULT_PRIORITY


def get_bus_env_vars() -> BusEnvVars:
    """
    Get typed environment variables for the event bus.

    Returns:
        Validated environment variables model instance
    """
    return get_environment_variables(model=BusEnvVars)


def get_default_priority(env: Optional[BusEnvVars] = None) -> int:
    return (env or get_bus_env_vars()).DEFAULT_HANDLER_PRIORITY


def build_broadcast_channel(env: Optional[BusEnvVars] = None) -> BroadcastChannel:
    """Build the broadcast channel selected by BROADCAST_BACKEND."""
    env = env or get_bus_env_vars()

    if env.BROADCAST_BACKEND == 'eventbridge':
        return EventBridgeBroadcastChannel(
            event_bus_name=env.EVENT_BUS_NAME,
            source=env.EVENT_SOURCE,
            region_name=env.AWS_REGION,
        )

    return InMemoryBroadcastChannel()
