"""
Handler Registry - the single source of truth for executable commands.

Each service maps command names to a HandlerDefinition holding what the
phase agents need to know about it: a description for the catalog, the
parameter names, and the full JSON input schema used when parameters are
constructed. The handlers themselves run in the external scheduler; only
their metadata lives here.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class HandlerDefinition:
    """Metadata for one service command."""
    description: str
    required_params: Tuple[str, ...] = ()
    optional_params: Tuple[str, ...] = ()
    input_schema: Optional[Dict[str, Any]] = None
    examples: Tuple[Dict[str, Any], ...] = ()
    handler: Optional[Callable[..., Any]] = field(default=None, compare=False)


HandlerRegistry = Dict[str, Dict[str, HandlerDefinition]]


FIRESTORE_PATH_PATTERN = "^/?firestore/[^/]+/data/.+"
STORAGE_PATH_PATTERN = "^gs://[^/]+/.+"
EMAIL_PATTERN = "^[^\\s@]+@[^\\s@]+\\.[^\\s@]+$"
E164_PATTERN = "^\\+[1-9]\\d{1,14}$"


def _object_schema(properties: Dict[str, Any], required: List[str]) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": properties,
        "required": required,
        "additionalProperties": False,
    }


def _firestore_path(description: str) -> Dict[str, Any]:
    return {"type": "string", "pattern": FIRESTORE_PATH_PATTERN, "description": description}


def _storage_path(description: str, pattern: str = STORAGE_PATH_PATTERN) -> Dict[str, Any]:
    return {"type": "string", "pattern": pattern, "description": description}


_COLLECTION_PATH = _firestore_path(
    "Firestore collection path in format: firestore/{database}/data/{collection}. "
    "Must be a collection path (odd number of segments)."
)
_DOCUMENT_PATH = _firestore_path(
    "Document path in format: firestore/{database}/data/{collection}/{docId}. "
    "Must have an even number of path segments (collection/doc pairs)."
)
_ORDER_BY_FIELD = {
    "type": "string",
    "description": "Document field name to order results by before exporting.",
}
_ORDER_BY_DIRECTION = {
    "type": "string",
    "enum": ["asc", "desc"],
    "description": "Sort direction when orderByField is specified.",
}
_EXPORT_LIMIT = {
    "type": "number",
    "minimum": 1,
    "description": "Maximum number of documents to export. Omit to export the entire collection.",
}
_DELIMITER = {
    "type": "string",
    "description": "CSV delimiter character. Defaults to comma (,).",
}
_CUSTOM_CLAIMS = {
    "type": "object",
    "description": "Custom claims for roles, permissions or other metadata, exposed in the user's ID token.",
    "additionalProperties": True,
}
_USER_PROPERTIES = {
    "email": {"type": "string", "pattern": EMAIL_PATTERN, "description": "Email address"},
    "password": {"type": "string", "description": "Password (at least 6 characters)"},
    "displayName": {"type": "string", "description": "Display name"},
    "photoURL": {"type": "string", "description": "URL of the profile photo"},
    "phoneNumber": {"type": "string", "pattern": E164_PATTERN, "description": "Phone number in E.164 format"},
    "emailVerified": {"type": "boolean", "description": "Whether the email address is verified"},
    "disabled": {"type": "boolean", "description": "Whether the account is disabled"},
}


def _firestore_handlers() -> Dict[str, HandlerDefinition]:
    return {
        "copy-collection": HandlerDefinition(
            description="Copy entire Firestore collection with all documents and subcollections",
            required_params=("sourcePath", "destinationPath"),
            input_schema=_object_schema(
                {
                    "sourcePath": _firestore_path(
                        "Source collection path in format: firestore/{database}/data/{collection}"
                    ),
                    "destinationPath": _firestore_path(
                        "Destination collection path in format: firestore/{database}/data/{collection}"
                    ),
                },
                ["sourcePath", "destinationPath"],
            ),
            examples=(
                {
                    "input": {
                        "sourcePath": "firestore/default/data/users",
                        "destinationPath": "firestore/default/data/users_backup",
                    },
                    "description": "Backup users collection",
                },
            ),
        ),
        "copy-document": HandlerDefinition(
            description="Copy single Firestore document with all subcollections to new location",
            required_params=("sourcePath", "destinationPath"),
            input_schema=_object_schema(
                {"sourcePath": _DOCUMENT_PATH, "destinationPath": _DOCUMENT_PATH},
                ["sourcePath", "destinationPath"],
            ),
            examples=(
                {
                    "input": {
                        "sourcePath": "firestore/default/data/users/user123",
                        "destinationPath": "firestore/default/data/users_archive/user123",
                    },
                    "description": "Archive user document",
                },
            ),
        ),
        "create-document": HandlerDefinition(
            description="Create or overwrite Firestore document with provided data",
            required_params=("documentPath", "documentData"),
            input_schema=_object_schema(
                {
                    "documentPath": _DOCUMENT_PATH,
                    "documentData": {
                        "type": "object",
                        "description": "Document fields to store. Supports nested objects and arrays. Can be empty {}.",
                        "additionalProperties": True,
                    },
                },
                ["documentPath", "documentData"],
            ),
            examples=(
                {
                    "input": {
                        "documentPath": "firestore/default/data/users/newUser",
                        "documentData": {"name": "John Doe", "email": "john@example.com"},
                    },
                    "description": "New user with profile data",
                },
            ),
        ),
        "delete-path": HandlerDefinition(
            description="Recursively delete all documents and subcollections at Firestore path",
            required_params=("path",),
            input_schema=_object_schema(
                {
                    "path": _firestore_path(
                        "Collection or document path in format: firestore/{database}/data/{collection}[/{docId}]. "
                        "Everything below it is deleted recursively."
                    ),
                },
                ["path"],
            ),
            examples=(
                {
                    "input": {"path": "firestore/default/data/temp_data"},
                    "description": "Delete entire temp_data collection and all its contents",
                },
            ),
        ),
        "delete-documents": HandlerDefinition(
            description=(
                "Deletes multiple documents specified by an array of paths. "
                "Uses batch operations and supports multiple databases."
            ),
            required_params=("paths",),
            input_schema=_object_schema(
                {
                    "paths": {
                        "type": "array",
                        "minItems": 1,
                        "items": _DOCUMENT_PATH,
                        "description": "Non-empty array of Firestore document paths to delete.",
                    },
                },
                ["paths"],
            ),
            examples=(
                {
                    "input": {
                        "paths": [
                            "firestore/default/data/temp/doc1",
                            "firestore/default/data/temp/doc2",
                        ]
                    },
                    "description": "Delete multiple temporary documents in batch",
                },
            ),
        ),
        "export-collection-csv": HandlerDefinition(
            description=(
                "Exports a Firestore collection to a CSV file in Cloud Storage with customizable field "
                "selection. Supports _id_ and _ref_ identifiers and dot notation for nested fields."
            ),
            required_params=("collectionPath", "bucketPathPrefix", "fields"),
            optional_params=("limit", "orderByField", "orderByDirection", "delimiter"),
            input_schema=_object_schema(
                {
                    "collectionPath": _COLLECTION_PATH,
                    "bucketPathPrefix": _storage_path(
                        "Cloud Storage destination prefix in format: gs://{bucket}/{path}"
                    ),
                    "fields": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "source": {
                                    "type": "string",
                                    "description": "Document field in dot notation, or _id_ / _ref_",
                                },
                                "header": {
                                    "type": "string",
                                    "description": "CSV column header. Defaults to the source field name.",
                                },
                            },
                            "required": ["source"],
                        },
                        "description": "Fields to export and their CSV column headers.",
                    },
                    "limit": _EXPORT_LIMIT,
                    "orderByField": _ORDER_BY_FIELD,
                    "orderByDirection": _ORDER_BY_DIRECTION,
                    "delimiter": _DELIMITER,
                },
                ["collectionPath", "bucketPathPrefix", "fields"],
            ),
            examples=(
                {
                    "input": {
                        "collectionPath": "firestore/default/data/users",
                        "bucketPathPrefix": "gs://my-bucket/exports/users",
                        "fields": [{"source": "_id_", "header": "id"}, {"source": "email"}],
                    },
                    "description": "Export user ids and emails to CSV",
                },
            ),
        ),
        "export-collection-json": HandlerDefinition(
            description="Exports a Firestore collection to a JSON file in Cloud Storage",
            required_params=("collectionPath", "bucketPathPrefix"),
            optional_params=("includeSubcollections", "limit", "orderByField", "orderByDirection"),
            input_schema=_object_schema(
                {
                    "collectionPath": _COLLECTION_PATH,
                    "bucketPathPrefix": _storage_path(
                        "Cloud Storage destination prefix in format: gs://{bucket}/{path}"
                    ),
                    "includeSubcollections": {
                        "type": "boolean",
                        "description": "Recursively export nested subcollections.",
                    },
                    "limit": _EXPORT_LIMIT,
                    "orderByField": _ORDER_BY_FIELD,
                    "orderByDirection": _ORDER_BY_DIRECTION,
                },
                ["collectionPath", "bucketPathPrefix"],
            ),
            examples=(
                {
                    "input": {
                        "collectionPath": "firestore/default/data/products",
                        "bucketPathPrefix": "gs://my-bucket/exports/products",
                    },
                    "description": "Export entire products collection to JSON",
                },
            ),
        ),
        "import-collection-csv": HandlerDefinition(
            description="Imports documents into a Firestore collection from a CSV file in Cloud Storage",
            required_params=("collectionPath", "bucketPath"),
            optional_params=("fieldMappings", "delimiter"),
            input_schema=_object_schema(
                {
                    "collectionPath": _COLLECTION_PATH,
                    "bucketPath": _storage_path(
                        "Cloud Storage path to CSV file in format: gs://{bucket}/{path}/{filename}.csv",
                        pattern="^gs://[^/]+/.+\\.csv$",
                    ),
                    "fieldMappings": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "header": {"type": "string", "description": "CSV column header to map from"},
                                "destination": {
                                    "type": ["string", "null"],
                                    "description": "Destination field path, _id_, _ref_, or null to skip the column",
                                },
                            },
                        },
                        "description": "Optional CSV column to Firestore field mappings.",
                    },
                    "delimiter": _DELIMITER,
                },
                ["collectionPath", "bucketPath"],
            ),
            examples=(
                {
                    "input": {
                        "collectionPath": "firestore/default/data/users",
                        "bucketPath": "gs://my-bucket/imports/users.csv",
                    },
                    "description": "Import users from CSV file with automatic field mapping",
                },
            ),
        ),
        "import-collection-json": HandlerDefinition(
            description="Imports documents into a Firestore collection from a JSON export in Cloud Storage",
            required_params=("collectionPath", "bucketPath"),
            input_schema=_object_schema(
                {
                    "collectionPath": _COLLECTION_PATH,
                    "bucketPath": _storage_path(
                        "Cloud Storage path to JSON file in format: gs://{bucket}/{path}/{filename}.json",
                        pattern="^gs://[^/]+/.+\\.json$",
                    ),
                },
                ["collectionPath", "bucketPath"],
            ),
            examples=(
                {
                    "input": {
                        "collectionPath": "firestore/default/data/products",
                        "bucketPath": "gs://my-bucket/exports/products.json",
                    },
                    "description": "Import products from JSON file into Firestore",
                },
            ),
        ),
        "list-collections": HandlerDefinition(
            description=(
                "Lists Firestore collections: top-level collections of a database, "
                "or subcollections of a document when documentPath points to one."
            ),
            optional_params=("documentPath",),
            input_schema=_object_schema(
                {
                    "documentPath": _firestore_path(
                        "Optional. firestore/{database}/data/ for a database, or a document path for its subcollections."
                    ),
                },
                [],
            ),
            examples=(
                {"input": {}, "description": "List all top-level collections in the default database"},
            ),
        ),
    }


def _storage_handlers() -> Dict[str, HandlerDefinition]:
    return {
        "delete-path": HandlerDefinition(
            description=(
                "Recursively deletes all files and folders at the specified Cloud Storage path. "
                "By default, only deletes 1 file (use limit parameter to delete more)."
            ),
            required_params=("path",),
            optional_params=("limit",),
            input_schema=_object_schema(
                {
                    "path": _storage_path(
                        "Cloud Storage path in format: gs://{bucket}/{path}. All files with this prefix are deleted."
                    ),
                    "limit": {
                        "type": "number",
                        "minimum": 1,
                        "description": "Maximum number of files to delete. Defaults to 1.",
                    },
                },
                ["path"],
            ),
            examples=(
                {
                    "input": {"path": "gs://my-bucket/temp_uploads/", "limit": 100},
                    "description": "Delete up to 100 files in temporary uploads folder",
                },
            ),
        ),
    }


def _ai_handlers() -> Dict[str, HandlerDefinition]:
    return {
        "process-inference": HandlerDefinition(
            description=(
                "AI inference with Gemini models. Supports multimodal inputs: "
                "text, images, audio, video, documents"
            ),
            required_params=("prompt",),
            optional_params=(
                "model", "files", "systemInstruction", "temperature", "maxOutputTokens",
                "topP", "topK", "responseMimeType", "responseSchema",
            ),
            input_schema=_object_schema(
                {
                    "model": {
                        "type": "string",
                        "pattern": "^[a-z0-9]([a-z0-9.-]*[a-z0-9])?$",
                        "description": "Model identifier. Defaults to gemini-2.5-pro.",
                    },
                    "prompt": {"type": "string", "description": "Main instruction or question for the model."},
                    "files": {
                        "type": "array",
                        "items": {"type": "string", "pattern": "^(gs://[^/]+/.+|[^/]+/.+)$"},
                        "description": "Optional file paths (gs://bucket/path or bucket/path).",
                    },
                    "systemInstruction": {"type": "string", "description": "Optional system instruction."},
                    "temperature": {"type": "number", "minimum": 0.0, "maximum": 2.0},
                    "maxOutputTokens": {"type": "number", "minimum": 1, "maximum": 8192},
                    "topP": {"type": "number", "minimum": 0.0, "maximum": 1.0},
                    "topK": {"type": "number", "minimum": 1, "maximum": 40},
                    "responseMimeType": {"type": "string", "enum": ["text/plain", "application/json"]},
                    "responseSchema": {"type": "object", "additionalProperties": True},
                },
                ["prompt"],
            ),
            examples=(
                {
                    "input": {
                        "prompt": "Analyze this data and provide insights",
                        "systemInstruction": "You are a data analysis expert",
                        "temperature": 0.7,
                    },
                    "description": "Run AI analysis using the default model",
                },
            ),
        ),
        "orchestrator-agent": HandlerDefinition(
            description=(
                "Phase 1 of 3-phase AI orchestration. Decomposes a natural language request "
                "into service-level sub-tasks and returns ai:service-agent tasks."
            ),
            required_params=("prompt",),
            optional_params=("temperature", "context", "maxChildTasks", "maxDepth", "maxRetries", "model"),
        ),
        "service-agent": HandlerDefinition(
            description=(
                "Phase 2 of 3-phase orchestration. Selects the command for a service-level "
                "sub-task and returns an ai:command-agent task."
            ),
            required_params=("id", "service", "prompt", "dependsOn"),
            optional_params=("maxRetries", "model"),
        ),
        "command-agent": HandlerDefinition(
            description=(
                "Phase 3 of 3-phase orchestration. Constructs schema-valid parameters "
                "for a selected command and returns the executable command task."
            ),
            required_params=("id", "service", "command", "prompt", "dependsOn"),
            optional_params=("maxRetries", "model"),
        ),
    }


def _authentication_handlers() -> Dict[str, HandlerDefinition]:
    uid = {"type": "string", "description": "Firebase Authentication user ID (UID)"}
    return {
        "create-user": HandlerDefinition(
            description="Create Firebase Auth user with email/password and optional custom claims for roles/permissions",
            required_params=("userRecord",),
            optional_params=("customClaims",),
            input_schema=_object_schema(
                {
                    "userRecord": {
                        "type": "object",
                        "description": "User properties. At minimum email and password.",
                        "properties": _USER_PROPERTIES,
                        "required": ["email", "password"],
                    },
                    "customClaims": _CUSTOM_CLAIMS,
                },
                ["userRecord"],
            ),
            examples=(
                {
                    "input": {
                        "userRecord": {"email": "admin@example.com", "password": "adminPass123"},
                        "customClaims": {"role": "admin"},
                    },
                    "description": "Create admin user with custom claims",
                },
            ),
        ),
        "get-user": HandlerDefinition(
            description=(
                "Retrieves Firebase Authentication user information by UID, email, or phone number. "
                "At least one identifier must be provided."
            ),
            optional_params=("uid", "email", "phoneNumber"),
            input_schema=_object_schema(
                {
                    "uid": uid,
                    "email": _USER_PROPERTIES["email"],
                    "phoneNumber": _USER_PROPERTIES["phoneNumber"],
                },
                [],
            ),
            examples=({"input": {"email": "user@example.com"}, "description": "Get user information by email"},),
        ),
        "update-user": HandlerDefinition(
            description=(
                "Updates an existing Firebase Authentication user's properties, "
                "then sets custom claims if provided."
            ),
            required_params=("uid", "updateRequest"),
            optional_params=("customClaims",),
            input_schema=_object_schema(
                {
                    "uid": uid,
                    "updateRequest": {
                        "type": "object",
                        "description": "Properties to update. Only include fields that change.",
                        "properties": _USER_PROPERTIES,
                    },
                    "customClaims": _CUSTOM_CLAIMS,
                },
                ["uid", "updateRequest"],
            ),
            examples=(
                {
                    "input": {"uid": "user123abc", "updateRequest": {"displayName": "Updated Name"}},
                    "description": "Update user display name",
                },
            ),
        ),
        "delete-user": HandlerDefinition(
            description="Deletes a Firebase Authentication user account",
            required_params=("uid",),
            input_schema=_object_schema({"uid": uid}, ["uid"]),
            examples=({"input": {"uid": "user123abc"}, "description": "Permanently delete user account"},),
        ),
        "list-users": HandlerDefinition(
            description="Lists Firebase Authentication users with pagination support",
            optional_params=("maxResults", "pageToken"),
            input_schema=_object_schema(
                {
                    "maxResults": {"type": "number", "minimum": 1, "maximum": 1000},
                    "pageToken": {"type": "string", "description": "Page token from a previous call"},
                },
                [],
            ),
            examples=({"input": {"maxResults": 100}, "description": "List first 100 users"},),
        ),
        "get-user-claims": HandlerDefinition(
            description="Retrieves custom claims for a Firebase Authentication user",
            required_params=("uid",),
            input_schema=_object_schema({"uid": uid}, ["uid"]),
            examples=({"input": {"uid": "user123abc"}, "description": "Get user's custom claims"},),
        ),
        "set-user-claims": HandlerDefinition(
            description=(
                "Sets custom claims for a Firebase Authentication user (roles, permissions, metadata). "
                "Pass null for customClaims to clear all existing claims."
            ),
            required_params=("uid", "customClaims"),
            input_schema=_object_schema(
                {
                    "uid": uid,
                    "customClaims": {**_CUSTOM_CLAIMS, "type": ["object", "null"]},
                },
                ["uid", "customClaims"],
            ),
            examples=(
                {
                    "input": {"uid": "user123abc", "customClaims": {"role": "admin"}},
                    "description": "Set admin role for user",
                },
            ),
        ),
    }


def build_default_registry() -> HandlerRegistry:
    """Build the registry of every service command known to the pipeline."""
    return {
        "firestore": _firestore_handlers(),
        "storage": _storage_handlers(),
        "ai": _ai_handlers(),
        "authentication": _authentication_handlers(),
    }
