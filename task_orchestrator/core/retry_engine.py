"""
Structured-Call Retry Engine

Turns an unreliable model into a validated, typed response. Each attempt
issues exactly one model call, decodes the answer, and moves the engine
through an explicit state machine:

    ATTEMPTING(n) --ok-------------------------> SUCCEEDED
    ATTEMPTING(n) --failure, n < max_retries---> RETRYING -> ATTEMPTING(n+1)
    ATTEMPTING(n) --failure, n == max_retries--> EXHAUSTED

The loop is a small LangGraph StateGraph: an async "attempt" node and an
"advance" node, routed by the EngineState each attempt produces. Attempts
are strictly sequential; there is never more than one model call in
flight per engine run.
"""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Generic, List, NamedTuple, Optional, TypedDict, TypeVar

from langgraph.graph import StateGraph, END

from ..models.enums import EngineState
from ..utils.exceptions import ExhaustedRetriesError, TransportError
from ..utils.llm_client import ModelRequest, StructuredModelClient
from ..utils.logger import get_logger
from .decoding import AttemptOutcome, ResponseDecoder

logger = get_logger(__name__)

T = TypeVar("T")


class PromptPair(NamedTuple):
    system_instruction: str
    user_prompt: str


@dataclass(frozen=True)
class RetryContext:
    """What the previous attempt got wrong, handed to the prompt factory."""
    attempt: int
    previous_response: Any
    validation_errors: List[str]


PromptFactory = Callable[[Optional[RetryContext]], PromptPair]


@dataclass
class RetryAttemptRecord:
    """One failed, non-final attempt, kept only for traces."""
    attempt: int
    timestamp: str
    validation_errors: List[str]
    raw_response_text: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "attempt": self.attempt,
            "timestamp": self.timestamp,
            "validationErrors": list(self.validation_errors),
        }
        if self.raw_response_text is not None:
            record["aiResponse"] = self.raw_response_text
        return record


@dataclass
class StructuredCallResult(Generic[T]):
    """A validated response plus what it took to get it."""
    value: T
    attempts: int
    system_instruction: str
    user_prompt: str
    raw_response_text: str
    parsed_response: Any = None
    retry_history: List[RetryAttemptRecord] = field(default_factory=list)

    @property
    def retried(self) -> bool:
        return self.attempts > 1


class RetryState(TypedDict):
    """Graph state carried between engine nodes."""
    build_prompts: PromptFactory
    state: EngineState
    attempt: int
    outcome: Optional[AttemptOutcome]
    retry_context: Optional[RetryContext]
    retry_history: List[RetryAttemptRecord]
    system_instruction: str
    user_prompt: str


def next_state(attempt: int, max_retries: int, outcome: AttemptOutcome) -> EngineState:
    """Transition out of ATTEMPTING(attempt) given that attempt's outcome."""
    if outcome.succeeded:
        return EngineState.SUCCEEDED
    if attempt >= max_retries:
        return EngineState.EXHAUSTED
    return EngineState.RETRYING


class StructuredCallEngine(Generic[T]):
    """
    Runs one structured model call to completion.

    Args:
        client: Model client issuing the calls
        decoder: Phase-specific decoder (parse, structure, semantics)
        response_schema: JSON schema the model is asked to conform to
        max_retries: Total attempt budget (at least 1)
        timeout: Seconds allowed per model call; a timeout fails the attempt
        temperature: Sampling temperature for every attempt
        model: Model identifier, or None for the client's default
        enable_tracing: Keep RetryAttemptRecords for the caller's trace
        verbose: Log attempt failures at INFO instead of DEBUG
        label: Prefix for log lines and the exhaustion message
    """

    def __init__(
        self,
        client: StructuredModelClient,
        decoder: ResponseDecoder[T],
        response_schema: Dict[str, Any],
        max_retries: int = 3,
        timeout: float = 60.0,
        temperature: float = 0.2,
        model: Optional[str] = None,
        enable_tracing: bool = False,
        verbose: bool = False,
        label: str = "StructuredCall",
    ):
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")

        self.client = client
        self.decoder = decoder
        self.response_schema = response_schema
        self.max_retries = max_retries
        self.timeout = timeout
        self.temperature = temperature
        self.model = model
        self.enable_tracing = enable_tracing
        self.verbose = verbose
        self.label = label

        self.app = self._build_graph().compile()

    def _build_graph(self) -> StateGraph:
        graph = StateGraph(RetryState)

        graph.add_node("attempt", self._attempt)
        graph.add_node("advance", self._advance)

        graph.set_entry_point("attempt")
        graph.add_conditional_edges(
            "attempt",
            self._route,
            {
                EngineState.SUCCEEDED.value: END,
                EngineState.EXHAUSTED.value: END,
                EngineState.RETRYING.value: "advance",
            }
        )
        graph.add_edge("advance", "attempt")

        return graph

    def _log(self, message: str) -> None:
        if self.verbose:
            logger.info(f"[{self.label}] {message}")
        else:
            logger.debug(f"[{self.label}] {message}")

    async def run(self, build_prompts: PromptFactory) -> StructuredCallResult[T]:
        """
        Drive the state machine until it succeeds or exhausts its attempts.

        Raises:
            ExhaustedRetriesError: every attempt failed; carries the last errors
        """
        started = time.perf_counter()

        initial: RetryState = {
            "build_prompts": build_prompts,
            "state": EngineState.ATTEMPTING,
            "attempt": 1,
            "outcome": None,
            "retry_context": None,
            "retry_history": [],
            "system_instruction": "",
            "user_prompt": "",
        }
        final = await self.app.ainvoke(
            initial,
            config={"recursion_limit": 2 * self.max_retries + 5},
        )

        outcome: AttemptOutcome = final["outcome"]
        attempts = final["attempt"]
        logger.log_performance(
            f"{self.label} structured call",
            time.perf_counter() - started,
            success=outcome.succeeded,
            metadata={"attempts": attempts, "model": self.model}
        )

        if final["state"] == EngineState.SUCCEEDED:
            if attempts > 1:
                self._log(f"Succeeded on attempt {attempts}/{self.max_retries}")
            return StructuredCallResult(
                value=outcome.value,
                attempts=attempts,
                system_instruction=final["system_instruction"],
                user_prompt=final["user_prompt"],
                raw_response_text=outcome.raw_text or "",
                parsed_response=outcome.parsed,
                retry_history=list(final["retry_history"]),
            )

        error = ExhaustedRetriesError(self.label, attempts, outcome.errors)
        logger.error(error.message)
        raise error

    async def _attempt(self, state: RetryState) -> Dict[str, Any]:
        attempt = state["attempt"]
        prompts = state["build_prompts"](state["retry_context"])

        try:
            raw_text = await self._call_model(prompts)
        except TransportError as e:
            outcome: AttemptOutcome = AttemptOutcome.failure(e)
        else:
            outcome = self.decoder.decode(raw_text)

        new_state = next_state(attempt, self.max_retries, outcome)
        update: Dict[str, Any] = {
            "state": new_state,
            "outcome": outcome,
            "system_instruction": prompts.system_instruction,
            "user_prompt": prompts.user_prompt,
        }

        if outcome.succeeded:
            return update

        self._log(
            f"Attempt {attempt}/{self.max_retries} failed ({outcome.kind.value}): "
            f"{'; '.join(outcome.errors)}"
        )

        if new_state == EngineState.RETRYING:
            update["retry_context"] = RetryContext(
                attempt=attempt + 1,
                previous_response=outcome.response_for_retry,
                validation_errors=outcome.errors,
            )
            if self.enable_tracing:
                update["retry_history"] = state["retry_history"] + [
                    RetryAttemptRecord(
                        attempt=attempt,
                        timestamp=datetime.now(timezone.utc).isoformat(),
                        validation_errors=outcome.errors,
                        raw_response_text=outcome.raw_text,
                    )
                ]

        return update

    def _advance(self, state: RetryState) -> Dict[str, Any]:
        return {"state": EngineState.ATTEMPTING, "attempt": state["attempt"] + 1}

    def _route(self, state: RetryState) -> str:
        return state["state"].value

    async def _call_model(self, prompts: PromptPair) -> str:
        """One model call, cancelled if it outlives the timeout."""
        request = ModelRequest(
            system_instruction=prompts.system_instruction,
            user_prompt=prompts.user_prompt,
            response_schema=self.response_schema,
            temperature=self.temperature,
            model=self.model,
        )

        try:
            return await asyncio.wait_for(
                self.client.generate_structured(request),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            raise TransportError(f"AI call timeout after {self.timeout}s", timed_out=True)
        except Exception as e:
            raise TransportError(f"AI call failed: {type(e).__name__}: {e}") from e
