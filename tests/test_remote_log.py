import asyncio
import json
from contextlib import asynccontextmanager

import pytest
from aiohttp import test_utils, web

from client.remote_log import RemoteLogClient
from server.log_server import MESSAGES_KEY, create_app
from shared.errors import MalformedResponseError, ServerError, TransportFailureError


@asynccontextmanager
async def running(app: web.Application):
    server = test_utils.TestServer(app)
    await server.start_server()
    try:
        yield str(server.make_url("/"))
    finally:
        await server.close()


def _app_returning(status=200, body="[]", delay=0.0):
    async def handler(request):
        if delay:
            await asyncio.sleep(delay)
        return web.Response(status=status, text=body, content_type="application/json")

    app = web.Application()
    app.router.add_get("/api/messages", handler)
    app.router.add_post("/api/sendMessage", handler)
    return app


@pytest.mark.asyncio
async def test_fetch_returns_log_in_order():
    async with running(create_app(["Alice: hi", "Bob: hey"])) as url:
        async with RemoteLogClient(url) as client:
            assert await client.fetch_messages() == ["Alice: hi", "Bob: hey"]


@pytest.mark.asyncio
async def test_send_posts_json_string_and_server_appends_it():
    app = create_app()
    async with running(app) as url:
        async with RemoteLogClient(url) as client:
            await client.send_message("Bob: \"quoted\" hello")
            assert await client.fetch_messages() == ["Bob: \"quoted\" hello"]
    assert app[MESSAGES_KEY] == ["Bob: \"quoted\" hello"]


@pytest.mark.asyncio
async def test_non_200_fetch_is_server_error():
    async with running(_app_returning(status=500, body="boom")) as url:
        async with RemoteLogClient(url) as client:
            with pytest.raises(ServerError) as excinfo:
                await client.fetch_messages()
    assert excinfo.value.status == 500


@pytest.mark.asyncio
async def test_fetch_with_201_is_still_a_failure():
    async with running(_app_returning(status=201, body="[]")) as url:
        async with RemoteLogClient(url) as client:
            with pytest.raises(ServerError):
                await client.fetch_messages()


@pytest.mark.asyncio
async def test_send_accepts_any_2xx():
    async with running(_app_returning(status=202, body="{}")) as url:
        async with RemoteLogClient(url) as client:
            await client.send_message("Bob: hi")


@pytest.mark.asyncio
async def test_send_non_2xx_is_server_error():
    async with running(_app_returning(status=400, body="bad")) as url:
        async with RemoteLogClient(url) as client:
            with pytest.raises(ServerError):
                await client.send_message("Bob: hi")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        "not json",
        json.dumps({"messages": ["Alice: hi"]}),
        json.dumps(["Alice: hi", 3]),
        json.dumps("Alice: hi"),
    ],
)
async def test_wrong_shape_is_malformed(body):
    async with running(_app_returning(body=body)) as url:
        async with RemoteLogClient(url) as client:
            with pytest.raises(MalformedResponseError):
                await client.fetch_messages()


@pytest.mark.asyncio
async def test_deeply_nested_body_is_malformed():
    body = "[" * 100000 + "]" * 100000
    async with running(_app_returning(body=body)) as url:
        async with RemoteLogClient(url) as client:
            with pytest.raises(MalformedResponseError):
                await client.fetch_messages()


@pytest.mark.asyncio
async def test_slow_server_times_out_as_transport_failure():
    async with running(_app_returning(body="[]", delay=0.5)) as url:
        async with RemoteLogClient(url, timeout=0.05) as client:
            with pytest.raises(TransportFailureError):
                await client.fetch_messages()


@pytest.mark.asyncio
async def test_unreachable_server_is_transport_failure():
    async with running(web.Application()) as url:
        pass
    # server is closed now; the port refuses connections
    async with RemoteLogClient(url, timeout=0.5) as client:
        with pytest.raises(TransportFailureError):
            await client.fetch_messages()


@pytest.mark.asyncio
async def test_dev_server_rejects_non_string_body():
    app = create_app()
    client = test_utils.TestClient(test_utils.TestServer(app))
    await client.start_server()
    try:
        resp = await client.post("/api/sendMessage", data=json.dumps({"username": "x"}))
        assert resp.status == 400
        resp = await client.post("/api/sendMessage", data="not json")
        assert resp.status == 400
    finally:
        await client.close()
    assert app[MESSAGES_KEY] == []
