"""
Response schemas sent with every structured model call.

The model is asked to produce JSON conforming to these schemas; the
decoders re-check the same constraints because providers do not always
enforce them.
"""

from typing import Any, Dict, Iterable


SERVICE_AGENT_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "command": {
            "type": "string",
            "description": "The command selected from the service's command list",
        },
        "prompt": {
            "type": "string",
            "description": "Refined, self-contained instruction for the command agent",
        },
        "reasoning": {
            "type": "string",
            "description": "Short explanation of why this command was selected",
        },
    },
    "required": ["command", "prompt"],
}


def build_orchestrator_response_schema(services: Iterable[str]) -> Dict[str, Any]:
    """Schema for the orchestrator's task graph, restricted to the known services."""
    return {
        "type": "object",
        "properties": {
            "subtasks": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "id": {
                            "type": "string",
                            "description": "Short unique identifier, e.g. 'create-user'",
                        },
                        "service": {
                            "type": "string",
                            "enum": sorted(services),
                        },
                        "prompt": {
                            "type": "string",
                            "description": "What this subtask must accomplish",
                        },
                        "dependsOn": {
                            "type": "array",
                            "items": {"type": "string"},
                            "description": "Ids of sibling subtasks that must finish first",
                        },
                    },
                    "required": ["id", "service", "prompt", "dependsOn"],
                },
            },
            "reasoning": {
                "type": "string",
                "description": "How the request was decomposed",
            },
        },
        "required": ["subtasks"],
    }
