"""
Prompt builder module - Constructs prompts for the three pipeline phases

System instructions describe the phase's job and what it may choose from.
User prompts carry the task itself; on a retry they additionally replay
the previous (invalid) response and the numbered validation errors.
"""

import json
from typing import Any, Dict, List, Optional, Sequence

from ..catalog.command_catalog import CommandInfo, CommandSchemaInfo
from ..catalog.service_catalog import ServiceInfo
from ..core.retry_engine import RetryContext


def _to_json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


class PromptBuilder:
    """
    Utility class for building structured prompts for the phase agents.

    This centralizes all prompt construction logic, making it easier to
    maintain and test model interactions.
    """

    # ------------------------------------------------------------------
    # Shared sections
    # ------------------------------------------------------------------

    @staticmethod
    def filter_dependency_outputs(dependency_outputs: Dict[str, Any]) -> Dict[str, Any]:
        """Drop dependency outputs that carry nothing (None, empty dict/list/string)."""
        return {
            dep_id: value
            for dep_id, value in dependency_outputs.items()
            if value is not None and not (isinstance(value, (dict, list, str)) and len(value) == 0)
        }

    @staticmethod
    def _dependency_section(dependency_outputs: Dict[str, Any]) -> str:
        outputs = PromptBuilder.filter_dependency_outputs(dependency_outputs)
        if not outputs:
            return ""
        return f"Dependency Outputs:\n{_to_json(outputs)}"

    @staticmethod
    def _retry_sections(
        retry: RetryContext,
        response_heading: str = "Previous (Invalid) Response",
        errors_heading: str = "Errors"
    ) -> List[str]:
        sections = []
        if retry.previous_response not in (None, ""):
            sections.append(f"{response_heading}:\n{_to_json(retry.previous_response)}")
        if retry.validation_errors:
            numbered = "\n".join(
                f"{index}. {error}" for index, error in enumerate(retry.validation_errors, start=1)
            )
            sections.append(f"{errors_heading}:\n{numbered}")
        return sections

    # ------------------------------------------------------------------
    # Phase 1: orchestrator
    # ------------------------------------------------------------------

    @staticmethod
    def build_orchestrator_system_instruction(
        services: Sequence[ServiceInfo],
        commands_by_service: Dict[str, List[str]],
        max_tasks: int
    ) -> str:
        """
        Build the planning instruction: services, output format, dependency rules.

        Only service descriptions and command names are listed; parameter
        details are left to the later phases.
        """
        service_lines = []
        for service in services:
            line = f"### {service.name}\n{service.description}"
            commands = commands_by_service.get(service.name)
            if commands:
                line += f"\nCommands: {', '.join(commands)}"
            service_lines.append(line)

        return f"""You are a task orchestration specialist. Decompose the user's request into service-level sub-tasks with precise dependencies.

## Objectives

1. Identify every operation the request needs
2. Assign each operation to exactly one service
3. Order the operations through dependsOn
4. Give each sub-task a unique, descriptive id
5. Write a self-contained prompt for each sub-task

## Available Services

{chr(10).join(service_lines)}

## Output Format

Respond with JSON only. No markdown.

```json
{{
  "subtasks": [
    {{
      "id": "descriptive-task-id",
      "service": "service-name",
      "prompt": "what this sub-task must do",
      "dependsOn": []
    }}
  ],
  "reasoning": "brief explanation"
}}
```

## Rules

**Dependencies**:
- Sequential: task-a then task-b means task-b has dependsOn ["task-a"]
- Independent sub-tasks have an empty dependsOn and run in parallel
- Never depend on yourself, on an unknown id, or in a cycle

**Task IDs**: short and descriptive ("create-admin", "export-users"), unique within the response

**Data Flow**:
- When sub-task B needs output from sub-task A, add A to B's dependsOn
- When a value is already known from the request or context, write it into the prompt directly
- Refer to another sub-task's output only when the value does not exist yet

**Constraints**:
- At most {max_tasks} sub-tasks
- One service per sub-task, chosen from the list above

## Example

Input: "Create user admin@example.com, then create a restaurant document owned by that user"
```json
{{
  "subtasks": [
    {{"id": "create-admin", "service": "authentication", "prompt": "Create user with email 'admin@example.com'", "dependsOn": []}},
    {{"id": "create-restaurant", "service": "firestore", "prompt": "Create restaurant document with ownerId from task 'create-admin'", "dependsOn": ["create-admin"]}}
  ],
  "reasoning": "The restaurant owner id comes from the created user"
}}
```
"""

    @staticmethod
    def build_orchestrator_user_prompt(
        prompt: str,
        context: Optional[Dict[str, Any]] = None,
        retry: Optional[RetryContext] = None
    ) -> str:
        if retry is None:
            user_prompt = prompt
            if context:
                user_prompt += f"\n\n**Additional Context**:\n{_to_json(context)}"
            return user_prompt

        sections = [
            f"RETRY {retry.attempt} - Previous response failed validation.",
            f"Original Request:\n{prompt}",
        ]
        if context:
            sections.append(f"Context:\n{_to_json(context)}")
        sections.extend(PromptBuilder._retry_sections(retry))
        sections.append("Generate corrected response addressing all errors.")
        return "\n\n".join(sections)

    # ------------------------------------------------------------------
    # Phase 2: service agent
    # ------------------------------------------------------------------

    @staticmethod
    def build_service_agent_system_instruction(service: str, commands: Sequence[CommandInfo]) -> str:
        command_blocks = []
        for info in commands:
            block = f"### {info.command}\n\n**Description**: {info.description}\n"
            if info.required_params:
                block += f"\n**Required Parameters**: {', '.join(info.required_params)}\n"
            if info.optional_params:
                block += f"\n**Optional Parameters**: {', '.join(info.optional_params)}\n"
            command_blocks.append(block)

        return f"""You are a command selector for the {service} service. Select the command that fulfils the task and refine the prompt for parameter construction.

## Objectives

1. Match the task to exactly one command below
2. Identify the parameters that command needs
3. Write a parameter-focused prompt for the next phase

## {service} Commands

{(chr(10) + '---' + chr(10) + chr(10)).join(command_blocks)}
## Output Format

Respond with JSON only. No markdown.

```json
{{
  "command": "command-name",
  "prompt": "parameter-focused prompt for the command agent",
  "reasoning": "why this command"
}}
```

## Rules

- The command must be one of the commands listed above
- Name every required parameter in the refined prompt and say where its value comes from
- When dependency outputs are provided, copy the concrete values into the prompt instead of referring to task ids
- Include format hints (paths, ids, field names)

## Example

Input: {{"id": "create-admin", "service": "authentication", "prompt": "Create user with email 'admin@example.com' and password 'SecurePass123'"}}
Output: {{"command": "create-user", "prompt": "Create userRecord with email='admin@example.com', password='SecurePass123'"}}
"""

    @staticmethod
    def build_service_agent_user_prompt(
        task_input: Dict[str, Any],
        dependency_outputs: Dict[str, Any],
        retry: Optional[RetryContext] = None
    ) -> str:
        dependency_section = PromptBuilder._dependency_section(dependency_outputs)

        if retry is None:
            sections = [_to_json(task_input)]
            if dependency_section:
                sections.append(dependency_section)
            return "\n\n".join(sections)

        sections = [
            f"RETRY {retry.attempt} - Previous command selection failed validation.",
            f"Input:\n{_to_json(task_input)}",
        ]
        if dependency_section:
            sections.append(dependency_section)
        sections.extend(PromptBuilder._retry_sections(retry))
        sections.append("Generate corrected response addressing all errors.")
        return "\n\n".join(sections)

    # ------------------------------------------------------------------
    # Phase 3: command agent
    # ------------------------------------------------------------------

    @staticmethod
    def format_schema_for_prompt(schema_info: CommandSchemaInfo) -> str:
        properties = schema_info.input_schema.get("properties", {})

        def param_lines(names: Sequence[str]) -> str:
            lines = []
            for name in names:
                prop = properties.get(name)
                if prop is None:
                    continue
                line = f"- **{name}** ({prop.get('type', 'any')})"
                if prop.get("description"):
                    line += f": {prop['description']}"
                lines.append(line)
            return "\n".join(lines)

        text = f"## {schema_info.service}/{schema_info.command}\n\n"
        text += f"### Description\n{schema_info.description}\n\n"

        if schema_info.required_params:
            text += f"### Required Parameters\n{param_lines(schema_info.required_params)}\n\n"
        if schema_info.optional_params:
            text += f"### Optional Parameters\n{param_lines(schema_info.optional_params)}\n\n"

        text += f"### JSON Schema\n```json\n{_to_json(schema_info.input_schema)}\n```\n\n"

        if schema_info.examples:
            text += "### Examples\n\n"
            for index, example in enumerate(schema_info.examples, start=1):
                text += f"Example {index}: {example.get('description', '')}\n"
                text += f"```json\n{_to_json(example.get('input', {}))}\n```\n\n"

        return text

    @staticmethod
    def build_command_agent_system_instruction(schema_info: CommandSchemaInfo) -> str:
        return f"""You are a parameter constructor for {schema_info.service}/{schema_info.command}. Extract all data from the request and build schema-valid input parameters.

## Schema

{PromptBuilder.format_schema_for_prompt(schema_info)}## Construction Rules

- Every required parameter must be present
- Match the declared types exactly (string, number, boolean, object, array)
- Follow the declared patterns (paths like firestore/{{database}}/data/{{collection}}/{{docId}}, emails, E.164 phone numbers)
- Dates are ISO 8601
- When dependency outputs are provided, use their actual values; do not emit template placeholders

## Output

The parameter object itself as JSON. No wrapper, no markdown.
"""

    @staticmethod
    def build_command_agent_user_prompt(
        prompt: str,
        dependency_outputs: Dict[str, Any],
        retry: Optional[RetryContext] = None
    ) -> str:
        dependency_section = PromptBuilder._dependency_section(dependency_outputs)

        if retry is None:
            sections = [prompt]
            if dependency_section:
                sections.append(dependency_section)
            return "\n\n".join(sections)

        sections = [
            f"RETRY {retry.attempt} - Previous parameters failed schema validation.",
            f"Task:\n{prompt}",
        ]
        if dependency_section:
            sections.append(dependency_section)
        sections.extend(PromptBuilder._retry_sections(
            retry,
            response_heading="Previous (Invalid) Parameters",
            errors_heading="Schema Violations",
        ))
        sections.append("Generate corrected parameters matching schema requirements.")
        return "\n\n".join(sections)
