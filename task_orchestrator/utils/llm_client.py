"""
LLM Client - Structured (schema-constrained) generation across providers

Supports:
- Google Gemini via the native google-genai SDK (API key or Vertex AI)
- Google Gemini via LangChain (ChatGoogleGenerativeAI)
- Anthropic Claude via LangChain (ChatAnthropic)

Every call is a single request for JSON output that conforms to a
response schema. The client returns the raw response text; parsing and
validation belong to the caller.

Usage:
    from task_orchestrator.utils.llm_client import LLMClient, ModelRequest

    client = LLMClient(LLMConfig.from_env())
    text = await client.generate_structured(ModelRequest(
        system_instruction="...",
        user_prompt="...",
        response_schema={"type": "object", ...},
    ))
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from langchain_core.messages import HumanMessage, SystemMessage

from ..config.agent_config import LLMBackend, LLMConfig, LLMProvider
from .exceptions import LLMError, MissingDependencyError
from .logger import get_logger
from .rate_limiter import RateLimiter, global_rate_limiter

logger = get_logger(__name__)


@dataclass
class ModelRequest:
    """One structured generation request."""
    system_instruction: str
    user_prompt: str
    response_schema: Dict[str, Any]
    temperature: float = 0.2
    model: Optional[str] = None
    response_mime_type: str = "application/json"

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape of the request."""
        return {
            "systemInstruction": self.system_instruction,
            "userPrompt": self.user_prompt,
            "generationConfig": {
                "temperature": self.temperature,
                "responseSchema": self.response_schema,
                "responseMimeType": self.response_mime_type,
            },
        }


class StructuredModelClient(ABC):
    """Anything that can answer a ModelRequest with raw response text."""

    @abstractmethod
    async def generate_structured(self, request: ModelRequest) -> str:
        """Issue one model call and return the concatenated text of the first candidate."""


class LLMClient(StructuredModelClient):
    """
    Provider-backed structured model client.

    The configured model is used when a request does not name one. Requests
    are paced by the process-wide RateLimiter before they go out.
    """

    def __init__(self, config: LLMConfig, rate_limiter: Optional[RateLimiter] = None):
        self.config = config
        self.provider = config.provider
        self.default_model = config.model_name
        self.rate_limiter = rate_limiter or global_rate_limiter
        self._native_client: Any = None

        if self.provider == LLMProvider.GOOGLE.value and config.backend == LLMBackend.NATIVE.value:
            self._initialize_google_native()
        else:
            # LangChain chat models are built per request (model and schema vary per call)
            self._check_langchain_provider()

        logger.info(
            f"✓ LLM client ready: provider={self.provider}, backend={config.backend}, "
            f"default model={self.default_model}"
        )

    def _initialize_google_native(self) -> None:
        """Initialize native Google GenAI SDK."""
        try:
            from google import genai
        except ImportError:
            raise MissingDependencyError(
                package_name="google-genai",
                install_command="pip install google-genai",
                purpose="native Gemini structured output"
            )

        if self.config.use_vertex_ai:
            self._native_client = genai.Client(
                vertexai=True,
                project=self.config.project,
                location=self.config.location,
            )
        else:
            self._native_client = genai.Client(api_key=self.config.api_key)

    def _check_langchain_provider(self) -> None:
        if self.provider == LLMProvider.GOOGLE.value:
            try:
                import langchain_google_genai  # noqa: F401
            except ImportError:
                raise MissingDependencyError(
                    package_name="langchain-google-genai",
                    install_command="pip install langchain-google-genai",
                    purpose="LangChain Google wrapper"
                )
        elif self.provider == LLMProvider.ANTHROPIC.value:
            try:
                import langchain_anthropic  # noqa: F401
            except ImportError:
                raise MissingDependencyError(
                    package_name="langchain-anthropic",
                    install_command="pip install langchain-anthropic",
                    purpose="LangChain Anthropic wrapper"
                )

    async def generate_structured(self, request: ModelRequest) -> str:
        wait_time = await self.rate_limiter.acquire()
        if wait_time > 0:
            logger.debug(f"Rate limiter delayed request by {wait_time:.2f}s")

        model = request.model or self.default_model

        if self._native_client is not None:
            return await self._generate_native(request, model)
        return await self._generate_langchain(request, model)

    async def _generate_native(self, request: ModelRequest, model: str) -> str:
        """Invoke using the native async SDK."""
        from google.genai import types

        response = await self._native_client.aio.models.generate_content(
            model=model,
            contents=request.user_prompt,
            config=types.GenerateContentConfig(
                system_instruction=request.system_instruction,
                temperature=request.temperature,
                response_mime_type=request.response_mime_type,
                response_json_schema=request.response_schema,
            ),
        )

        candidates = response.candidates or []
        if not candidates:
            raise LLMError(self.provider, "No response generated by AI model", model=model)

        content = candidates[0].content
        parts = (content.parts if content else None) or []
        return "".join(part.text for part in parts if getattr(part, "text", None))

    async def _generate_langchain(self, request: ModelRequest, model: str) -> str:
        """Invoke using a LangChain chat model."""
        chat_model = self._build_langchain_model(request, model)
        system_instruction = request.system_instruction

        if self.provider == LLMProvider.ANTHROPIC.value:
            # No native schema constraint here; the schema travels in the system prompt
            system_instruction = (
                f"{system_instruction}\n\n"
                f"Respond with a single JSON object that conforms to this JSON schema "
                f"and nothing else:\n{json.dumps(request.response_schema, indent=2)}"
            )

        response = await chat_model.ainvoke([
            SystemMessage(content=system_instruction),
            HumanMessage(content=request.user_prompt),
        ])
        return _content_to_text(response.content)

    def _build_langchain_model(self, request: ModelRequest, model: str) -> Any:
        if self.provider == LLMProvider.GOOGLE.value:
            from langchain_google_genai import ChatGoogleGenerativeAI

            return ChatGoogleGenerativeAI(
                model=model,
                google_api_key=self.config.api_key,
                temperature=request.temperature,
                response_mime_type=request.response_mime_type,
                response_schema=request.response_schema,
            )

        from langchain_anthropic import ChatAnthropic

        kwargs: Dict[str, Any] = {
            'model_name': model,
            'temperature': request.temperature,
        }
        if self.config.api_key:
            kwargs['api_key'] = self.config.api_key
        return ChatAnthropic(**kwargs)


def _content_to_text(content: Any) -> str:
    """Join LangChain message content (a string or a list of content blocks) into text."""
    if isinstance(content, str):
        return content

    texts: List[str] = []
    for block in content or []:
        if isinstance(block, str):
            texts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            texts.append(block.get("text", ""))
    return "".join(texts)
