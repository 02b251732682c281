"""
Catalog module - Handler Registry and the views derived from it
"""

from .registry import HandlerDefinition, HandlerRegistry, build_default_registry
from .service_catalog import ServiceInfo, SERVICE_DESCRIPTIONS
from .command_catalog import CommandCatalog, CommandInfo, CommandSchemaInfo

__all__ = [
    'HandlerDefinition',
    'HandlerRegistry',
    'build_default_registry',
    'ServiceInfo',
    'SERVICE_DESCRIPTIONS',
    'CommandCatalog',
    'CommandInfo',
    'CommandSchemaInfo',
]
