"""
Tools bundle handed to every route action.
"""
from dataclasses import dataclass

import structlog

from mongo_rest.config import Settings
from mongo_rest.database.connections import ConnectionResolver
from mongo_rest.services.output import OutputFormatter


@dataclass(frozen=True)
class Tools:
    """Settings, store resolver, output formatter and logger shared by actions."""
    settings: Settings
    resolver: ConnectionResolver
    formatter: OutputFormatter
    logger: structlog.BoundLogger

