"""Tests for trace ID attachment and the request middleware."""

import asyncio
import contextvars
import uuid

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from service_bootstrap.config import TRACE_ID_HEADER
from service_bootstrap.shared.api import LoggingMiddleware, TraceIDMiddleware
from service_bootstrap.tracing import TRACE_ID, attach_trace_id, get_trace_id


class TestAttachTraceId:
    def test_derived_context_carries_uuid4(self):
        ctx = attach_trace_id()

        trace_id = get_trace_id(ctx)
        assert isinstance(trace_id, uuid.UUID)
        assert trace_id.version == 4
        assert ctx[TRACE_ID] == trace_id

    def test_input_context_not_mutated(self):
        base = contextvars.copy_context()

        derived = attach_trace_id(base)

        assert get_trace_id(base) is None
        assert TRACE_ID not in base
        assert get_trace_id(derived) is not None

    def test_current_context_not_mutated(self):
        attach_trace_id()
        assert get_trace_id() is None

    def test_two_derivations_differ(self):
        base = contextvars.copy_context()
        assert get_trace_id(attach_trace_id(base)) != get_trace_id(attach_trace_id(base))

    def test_no_collisions_across_many_calls(self):
        base = contextvars.copy_context()
        ids = {get_trace_id(attach_trace_id(base)) for _ in range(10_000)}
        assert len(ids) == 10_000

    def test_visible_inside_run(self):
        ctx = attach_trace_id()
        assert ctx.run(get_trace_id) == get_trace_id(ctx)

    def test_existing_values_preserved(self):
        other = contextvars.ContextVar("tenant")
        base = contextvars.copy_context()
        base.run(other.set, "acme")

        derived = attach_trace_id(base)

        assert derived[other] == "acme"

    def test_rederiving_replaces_id(self):
        first = attach_trace_id()
        second = attach_trace_id(first)

        assert get_trace_id(second) != get_trace_id(first)
        assert get_trace_id(first) is not None

    def test_asyncio_task_sees_id(self):
        async def main():
            ctx = attach_trace_id()
            seen = await asyncio.create_task(_current_trace_id(), context=ctx)
            return ctx, seen

        ctx, seen = asyncio.run(main())
        assert seen == get_trace_id(ctx)


async def _current_trace_id():
    return get_trace_id()


# --- Middleware ---


@pytest.fixture
def client() -> TestClient:
    app = FastAPI()
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(TraceIDMiddleware)

    @app.get("/whoami")
    async def whoami():
        return {"trace_id": str(get_trace_id())}

    @app.get("/boom")
    async def boom():
        raise RuntimeError("boom")

    return TestClient(app, raise_server_exceptions=False)


class TestTraceIDMiddleware:
    def test_mints_id_and_echoes_header(self, client):
        response = client.get("/whoami")

        assert response.status_code == 200
        header = response.headers[TRACE_ID_HEADER]
        assert uuid.UUID(header).version == 4
        assert response.json()["trace_id"] == header

    def test_each_request_gets_new_id(self, client):
        first = client.get("/whoami").headers[TRACE_ID_HEADER]
        second = client.get("/whoami").headers[TRACE_ID_HEADER]
        assert first != second

    def test_reuses_valid_incoming_id(self, client):
        incoming = str(uuid.uuid4())

        response = client.get("/whoami", headers={TRACE_ID_HEADER: incoming})

        assert response.headers[TRACE_ID_HEADER] == incoming
        assert response.json()["trace_id"] == incoming

    def test_replaces_invalid_incoming_id(self, client):
        response = client.get("/whoami", headers={TRACE_ID_HEADER: "not-a-uuid"})

        header = response.headers[TRACE_ID_HEADER]
        assert header != "not-a-uuid"
        uuid.UUID(header)

    def test_request_logs_carry_trace_id(self, client, caplog):
        caplog.set_level("INFO", logger="service_bootstrap.shared.api.middleware")

        response = client.get("/whoami")

        records = [r for r in caplog.records if r.name == "service_bootstrap.shared.api.middleware"]
        assert [r.getMessage() for r in records] == ["Request started", "Request completed"]
        assert records[1].trace_id == response.headers[TRACE_ID_HEADER]
        assert records[1].status_code == 200

    def test_failed_request_logged(self, client, caplog):
        caplog.set_level("INFO", logger="service_bootstrap.shared.api.middleware")

        response = client.get("/boom")

        assert response.status_code == 500
        messages = [r.getMessage() for r in caplog.records]
        assert "Request failed" in messages
