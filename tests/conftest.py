"""
Shared fixtures for the Task Orchestrator test suite.

Model calls never leave the process: ScriptedModelClient answers each
request with the next scripted response.
"""

import asyncio
import json
from typing import Any, List

import pytest

from task_orchestrator.catalog import CommandCatalog, build_default_registry
from task_orchestrator.core.job_context import InMemoryJobContext
from task_orchestrator.utils.llm_client import ModelRequest, StructuredModelClient


class ScriptedModelClient(StructuredModelClient):
    """
    Fake model client returning scripted responses in order.

    Strings are returned as-is, dicts and lists are JSON-encoded, exception
    instances are raised. The last response repeats once the script runs out.
    """

    def __init__(self, *responses: Any):
        self.responses: List[Any] = list(responses)
        self.requests: List[ModelRequest] = []

    @property
    def call_count(self) -> int:
        return len(self.requests)

    async def generate_structured(self, request: ModelRequest) -> str:
        self.requests.append(request)
        index = min(len(self.requests), len(self.responses)) - 1
        response = self.responses[index]

        if isinstance(response, BaseException):
            raise response
        if isinstance(response, (dict, list)):
            return json.dumps(response)
        return response


class SlowModelClient(StructuredModelClient):
    """Fake model client that never answers within a short timeout; counts cancellations."""

    def __init__(self, delay: float = 5.0):
        self.delay = delay
        self.calls = 0
        self.cancelled = 0

    async def generate_structured(self, request: ModelRequest) -> str:
        self.calls += 1
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled += 1
            raise
        return "{}"


def run(coroutine):
    """Drive an async entry point from a synchronous test."""
    return asyncio.run(coroutine)


@pytest.fixture
def catalog():
    catalog = CommandCatalog(build_default_registry())
    catalog.initialize_catalogs()
    return catalog


@pytest.fixture
def context():
    return InMemoryJobContext()


@pytest.fixture
def tracing_context():
    return InMemoryJobContext(enable_tracing=True)
