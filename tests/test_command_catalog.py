"""
Tests for the Handler Registry and the catalogs built from it.

Run with: pytest tests/test_command_catalog.py -v
"""

import pytest

from task_orchestrator.catalog import (
    CommandCatalog,
    CommandInfo,
    HandlerDefinition,
    build_default_registry,
)
from task_orchestrator.utils.exceptions import ConfigurationError


def _fake_registry():
    return {
        "widgets": {
            "make-widget": HandlerDefinition(
                description="Make a widget",
                required_params=("name",),
                optional_params=("color",),
                input_schema={
                    "type": "object",
                    "properties": {"name": {"type": "string"}, "color": {"type": "string"}},
                    "required": ["name"],
                },
            ),
            "count-widgets": HandlerDefinition(description="Count widgets"),
        },
        "empty": {},
    }


class TestCatalogInitialization:
    """Initialization contract of the command catalog."""

    def test_initialize_is_idempotent(self):
        catalog = CommandCatalog(_fake_registry())
        assert catalog.initialized is False

        catalog.initialize_catalogs()
        first = catalog.get_service_commands("widgets")
        catalog.initialize_catalogs()

        assert catalog.initialized is True
        assert catalog.get_service_commands("widgets") == first

    def test_missing_registry_is_configuration_error(self):
        catalog = CommandCatalog(None)

        with pytest.raises(ConfigurationError) as exc_info:
            catalog.initialize_catalogs()

        assert exc_info.value.setting_name == "handler_registry"

    @pytest.mark.parametrize("query", [
        lambda catalog: catalog.get_service_commands("widgets"),
        lambda catalog: catalog.get_command_schema("widgets", "make-widget"),
    ])
    def test_queries_without_registry_are_configuration_errors(self, query):
        with pytest.raises(ConfigurationError):
            query(CommandCatalog(None))

    def test_initialize_returns_the_same_views(self):
        catalog = CommandCatalog(_fake_registry())

        assert catalog.initialize_catalogs() is catalog.initialize_catalogs()

    def test_queries_initialize_on_first_use(self):
        catalog = CommandCatalog(_fake_registry())

        assert catalog.is_valid_command("widgets", "make-widget")
        assert catalog.initialized is True

    def test_missing_registry_fails_on_query(self):
        with pytest.raises(ConfigurationError):
            CommandCatalog(None).get_service_commands("widgets")


class TestServiceCommands:
    """Per-service command views."""

    def setup_method(self):
        self.catalog = CommandCatalog(_fake_registry())

    def test_service_commands_are_reduced_view(self):
        commands = self.catalog.get_service_commands("widgets")

        assert [c.command for c in commands] == ["make-widget", "count-widgets"]
        make = commands[0]
        assert isinstance(make, CommandInfo)
        assert make.required_params == ("name",)
        assert make.optional_params == ("color",)
        assert not hasattr(make, "input_schema")

    def test_unknown_service_has_no_commands(self):
        assert self.catalog.get_service_commands("nope") == []

    def test_is_valid_command(self):
        assert self.catalog.is_valid_command("widgets", "count-widgets")
        assert not self.catalog.is_valid_command("widgets", "delete-widget")
        assert not self.catalog.is_valid_command("nope", "make-widget")

    def test_list_services_skips_services_without_commands(self):
        names = [service.name for service in self.catalog.list_services()]

        assert names == ["widgets"]
        assert self.catalog.is_valid_service("widgets")
        assert not self.catalog.is_valid_service("empty")

    def test_command_info_to_dict_uses_wire_keys(self):
        info = self.catalog.get_command_info("widgets", "make-widget")

        assert info.to_dict() == {
            "command": "make-widget",
            "description": "Make a widget",
            "requiredParams": ["name"],
            "optionalParams": ["color"],
        }
        assert self.catalog.get_command_info("widgets", "nope") is None


class TestCommandSchema:
    """Full schemas are a separate lookup."""

    def setup_method(self):
        self.catalog = CommandCatalog(_fake_registry())

    def test_schema_lookup(self):
        schema_info = self.catalog.get_command_schema("widgets", "make-widget")

        assert schema_info.input_schema["required"] == ["name"]
        assert schema_info.required_params == ("name",)

    def test_unknown_command_returns_none(self):
        assert self.catalog.get_command_schema("widgets", "nope") is None

    def test_command_without_schema_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            self.catalog.get_command_schema("widgets", "count-widgets")


class TestDefaultRegistry:
    """The built-in registry describes the four services."""

    def setup_method(self):
        self.catalog = CommandCatalog(build_default_registry())

    def test_services(self):
        names = {service.name for service in self.catalog.list_services()}
        assert names == {"ai", "authentication", "firestore", "storage"}

    def test_firestore_commands(self):
        commands = [c.command for c in self.catalog.get_service_commands("firestore")]

        assert "create-document" in commands
        assert "export-collection-csv" in commands
        assert "list-collections" in commands

    def test_every_executable_command_has_schema(self):
        phase_agents = {"orchestrator-agent", "service-agent", "command-agent"}
        registry = build_default_registry()

        for service, handlers in registry.items():
            for command, definition in handlers.items():
                if service == "ai" and command in phase_agents:
                    continue
                assert definition.input_schema, f"{service}/{command} has no input schema"
                properties = definition.input_schema.get("properties", {})
                for name in definition.required_params:
                    assert name in properties, f"{service}/{command}: '{name}' missing from schema"

    def test_create_user_schema(self):
        schema_info = self.catalog.get_command_schema("authentication", "create-user")

        assert schema_info.required_params == ("userRecord",)
        assert "customClaims" in schema_info.optional_params
        assert schema_info.examples
