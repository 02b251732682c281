"""
Service Catalog - one-line descriptions of each service.

This is all the orchestrator is told about a service besides its command
names, which keeps the planning prompt small.
"""

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class ServiceInfo:
    """A service as presented to the orchestrator."""
    name: str
    description: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "description": self.description}


SERVICE_DESCRIPTIONS: Dict[str, str] = {
    "ai": "AI inference, content generation, embeddings, and intelligent task orchestration.",
    "authentication": (
        "User account lifecycle (create, read, update, delete), custom claims management, and user queries."
    ),
    "firestore": (
        "Firestore document/collection CRUD, data import/export (JSON/CSV), batch operations, and path management."
    ),
    "storage": "Cloud Storage file operations, path-based cleanup, and bucket management.",
}
