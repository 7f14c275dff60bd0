"""Tests for signal-driven graceful shutdown."""

import asyncio
import os
import signal

import pytest

from partscrape.shutdown import get_shutdown_handler, shutdown_requested


@pytest.mark.asyncio
async def test_signal_sets_flag():
    handler = get_shutdown_handler().install(asyncio.get_running_loop())
    try:
        os.kill(os.getpid(), signal.SIGTERM)
        for _ in range(50):
            if shutdown_requested():
                break
            await asyncio.sleep(0.01)
        assert shutdown_requested()
    finally:
        handler.uninstall()


@pytest.mark.asyncio
async def test_second_signal_forces_exit():
    handler = get_shutdown_handler().install(asyncio.get_running_loop())
    try:
        handler._handle_signal(signal.SIGINT)
        assert shutdown_requested()
        with pytest.raises(SystemExit):
            handler._handle_signal(signal.SIGINT)
    finally:
        handler.uninstall()


def test_reset_clears_flag():
    handler = get_shutdown_handler()
    handler.request_shutdown()
    assert shutdown_requested()
    handler.reset()
    assert not shutdown_requested()
