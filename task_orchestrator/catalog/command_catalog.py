"""
Command Catalog - reduced, per-service view of the Handler Registry.

The per-service view only carries command names, descriptions and
parameter names. Full input schemas are looked up separately, and only by
the command agent, so the service agent's prompt stays small.

The catalog is built explicitly and passed to the agents that need it:

    catalog = CommandCatalog(build_default_registry())
    catalog.initialize_catalogs()
    agent = ServiceAgent(catalog, client)
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .registry import HandlerRegistry
from .service_catalog import SERVICE_DESCRIPTIONS, ServiceInfo
from ..utils.exceptions import ConfigurationError
from ..utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CommandInfo:
    """One command as shown to the service agent."""
    service: str
    command: str
    description: str
    required_params: Tuple[str, ...] = ()
    optional_params: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "command": self.command,
            "description": self.description,
            "requiredParams": list(self.required_params),
            "optionalParams": list(self.optional_params),
        }


@dataclass(frozen=True)
class CommandSchemaInfo:
    """Full parameter contract of one command, used when building its parameters."""
    service: str
    command: str
    description: str
    input_schema: Dict[str, Any]
    required_params: Tuple[str, ...] = ()
    optional_params: Tuple[str, ...] = ()
    examples: Tuple[Dict[str, Any], ...] = field(default_factory=tuple)


class CommandCatalog:
    """
    Read-only lookup of (service, command) pairs built from a Handler Registry.

    `initialize_catalogs()` builds the per-service views once; calling it again
    is a no-op. Queries initialize on first use. A missing registry is a
    configuration error, raised on initialization rather than defaulted.
    """

    def __init__(
        self,
        registry: Optional[HandlerRegistry],
        service_descriptions: Optional[Mapping[str, str]] = None
    ):
        self._registry = registry
        self._service_descriptions = dict(service_descriptions or SERVICE_DESCRIPTIONS)
        self._commands: Optional[Mapping[str, Tuple[CommandInfo, ...]]] = None

    @property
    def initialized(self) -> bool:
        return self._commands is not None

    def _require_registry(self) -> HandlerRegistry:
        if self._registry is None:
            raise ConfigurationError(
                "handler_registry",
                "Handler registry is not available; the command catalog cannot be built"
            )
        return self._registry

    def initialize_catalogs(self) -> Mapping[str, Tuple[CommandInfo, ...]]:
        """Build the per-service command views from the registry (idempotent)."""
        if self._commands is not None:
            return self._commands

        commands: Dict[str, Tuple[CommandInfo, ...]] = {}
        for service, handlers in self._require_registry().items():
            commands[service] = tuple(
                CommandInfo(
                    service=service,
                    command=name,
                    description=definition.description,
                    required_params=tuple(definition.required_params),
                    optional_params=tuple(definition.optional_params),
                )
                for name, definition in handlers.items()
            )

        self._commands = MappingProxyType(commands)
        logger.debug(
            f"Command catalog initialized: {len(commands)} services, "
            f"{sum(len(c) for c in commands.values())} commands"
        )
        return self._commands

    def _views(self) -> Mapping[str, Tuple[CommandInfo, ...]]:
        return self.initialize_catalogs()

    def list_services(self) -> List[ServiceInfo]:
        """Services that have at least one command, with their descriptions."""
        return [
            ServiceInfo(
                name=service,
                description=self._service_descriptions.get(service, f"{service} operations"),
            )
            for service, commands in self._views().items()
            if commands
        ]

    def is_valid_service(self, service: str) -> bool:
        return bool(self._views().get(service))

    def get_service_commands(self, service: str) -> List[CommandInfo]:
        """Commands of one service; empty for an unknown service."""
        return list(self._views().get(service, ()))

    def is_valid_command(self, service: str, command: str) -> bool:
        return any(info.command == command for info in self._views().get(service, ()))

    def get_command_info(self, service: str, command: str) -> Optional[CommandInfo]:
        for info in self._views().get(service, ()):
            if info.command == command:
                return info
        return None

    def get_command_schema(self, service: str, command: str) -> Optional[CommandSchemaInfo]:
        """
        Full input schema for one command.

        Returns None for an unknown command. A known command without an input
        schema cannot have its parameters generated, which is a configuration
        error.
        """
        self.initialize_catalogs()
        definition = self._require_registry().get(service, {}).get(command)
        if definition is None:
            return None

        if not definition.input_schema:
            raise ConfigurationError(
                f"{service}/{command}",
                "Command has no input schema, parameters cannot be constructed"
            )

        return CommandSchemaInfo(
            service=service,
            command=command,
            description=definition.description,
            input_schema=definition.input_schema,
            required_params=tuple(definition.required_params),
            optional_params=tuple(definition.optional_params),
            examples=tuple(definition.examples),
        )
