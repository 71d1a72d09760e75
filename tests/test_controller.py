"""Tests for the mock server controller lifecycle."""

import pytest

from chaoscraft.brain.errors import MockServerStartError
from chaoscraft.brain.planner import Recipe
from chaoscraft.paws.controller import MockServerController


@pytest.mark.asyncio
async def test_start_serves_endpoint(controller, fake_server):
    await controller.start_or_replace("/login", Recipe(status_code=500, body="boom"))

    assert controller.is_running
    assert controller.bound_port == 8080
    assert controller.url_for("/login") == "http://localhost:8080/login"
    assert fake_server.live_paths() == {"/login"}
    assert fake_server.recipe_for("/login").status_code == 500


@pytest.mark.asyncio
async def test_replace_stops_previous_server(controller, fake_server):
    await controller.start_or_replace("/users", Recipe(status_code=404))
    await controller.start_or_replace("/products", Recipe(status_code=500))

    assert len(fake_server.handles) == 2
    assert not fake_server.handles[0].alive
    assert fake_server.live_paths() == {"/products"}
    assert fake_server.recipe_for("/users") is None
    assert fake_server.max_live == 1


@pytest.mark.asyncio
async def test_stop_is_idempotent(controller, fake_server):
    await controller.stop()
    await controller.start_or_replace("/login", Recipe(status_code=200))
    await controller.stop()
    await controller.stop()

    assert not controller.is_running
    assert fake_server.live_handles() == []


@pytest.mark.asyncio
async def test_start_failure_leaves_nothing_running(fake_server_factory):
    controller = MockServerController(server=fake_server_factory(fail_start=True), drain_interval=0)
    with pytest.raises(MockServerStartError, match="already in use"):
        await controller.start_or_replace("/login", Recipe(status_code=500))
    assert not controller.is_running


@pytest.mark.asyncio
async def test_configure_failure_stops_new_server(fake_server_factory):
    server = fake_server_factory(fail_configure=True)
    controller = MockServerController(server=server, drain_interval=0)

    with pytest.raises(MockServerStartError, match="Could not configure /login"):
        await controller.start_or_replace("/login", Recipe(status_code=500))

    assert not controller.is_running
    assert server.live_handles() == []


@pytest.mark.asyncio
async def test_unexpected_start_error_is_wrapped(fake_server_factory):
    class ExplodingServer(fake_server_factory):
        def start(self, port):
            raise OSError("no sockets left")

    controller = MockServerController(server=ExplodingServer(), drain_interval=0)
    with pytest.raises(MockServerStartError, match="no sockets left"):
        await controller.start_or_replace("/login", Recipe(status_code=500))
