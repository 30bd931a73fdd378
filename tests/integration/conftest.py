"""Shared fixtures and utilities for integration tests."""

import asyncio
import contextlib
import socket
import subprocess
import sys
import time

import pytest
import pytest_asyncio

from game.difficulty import DifficultyTiers
from game.settings import MatchSettings
from server.main import GameServer


def find_free_port() -> int:
    """Ask the OS for a port nobody is listening on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def wait_for_server(port: int, timeout: float = 5.0) -> bool:
    """Wait for server to start accepting connections.

    Returns True if server is ready, False if timeout.
    """
    start_time = time.time()
    while time.time() - start_time < timeout:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.settimeout(0.5)
            if sock.connect_ex(("127.0.0.1", port)) == 0:
                return True
        time.sleep(0.1)
    return False


@pytest.fixture
def fast_settings():
    """A two second match with sub-second respawn tiers."""
    return MatchSettings(
        match_duration_ms=2000,
        tick_ms=100,
        points_per_hit=10,
        min_players_to_start=3,
        tiers=DifficultyTiers(
            easy_ms=400,
            medium_ms=200,
            hard_ms=100,
            medium_below_ms=1500,
            hard_below_ms=1000
        )
    )


@pytest_asyncio.fixture
async def running_server(fast_settings):
    """GameServer running in-process on a free port. Yields (server, uri)."""
    port = find_free_port()
    server = GameServer(host="127.0.0.1", port=port, settings=fast_settings)
    task = asyncio.create_task(server.start())

    ready = await asyncio.to_thread(wait_for_server, port)
    if not ready:
        task.cancel()
        pytest.fail(f"Server did not start accepting connections on port {port}")

    yield server, f"ws://127.0.0.1:{port}"

    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task


@pytest.fixture
def server_process():
    """Server launched through ``python -m server.main``. Yields the port."""
    port = find_free_port()

    # Capture stderr to diagnose startup failures
    proc = subprocess.Popen(
        [sys.executable, "-m", "server.main", "--host", "127.0.0.1", "--port", str(port)],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE
    )

    if not wait_for_server(port, timeout=15.0):
        poll_result = proc.poll()
        if poll_result is not None:
            _, stderr = proc.communicate(timeout=2)
            stderr_text = stderr.decode().strip() if stderr else "No stderr"
            error_msg = f"Server process exited with code {poll_result}. stderr: {stderr_text}"
        else:
            error_msg = "Server did not start accepting connections in time"
            proc.kill()
            proc.wait()
        pytest.fail(f"Server failed to start on port {port}: {error_msg}")

    yield port

    proc.terminate()
    try:
        proc.wait(timeout=5)
    except subprocess.TimeoutExpired:
        proc.kill()
        proc.wait()
