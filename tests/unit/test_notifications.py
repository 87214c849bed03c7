"""Unit tests for the notification relay and sale message formatting."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest
from libs.common.notifications import (
    NotificationRelay,
    build_sale_message,
    build_sale_payload,
)

RELAY_URL = "https://hook.example.com/relay"


def test_sale_message():
    message = build_sale_message(2000001, "Juan Gómez", 24000, ["2x Dragón", "1x Otro"])

    assert "Orden: 2000001" in message
    assert "Comprador: Juan Gómez" in message
    assert "Total: $24000" in message
    assert "📦 *Productos:*\n2x Dragón\n1x Otro\n" in message


def test_sale_payload():
    payload = build_sale_payload(
        2000001, "Juan Gómez", 24000, ["2x Dragón", "1x Otro"], "2026-10-18T12:00:00Z"
    )

    assert payload["event"] == "ml_sale"
    assert payload["items"] == "2x Dragón, 1x Otro"
    assert payload["timestamp"] == "2026-10-18T12:00:00Z"
    assert payload["detailed_message"].startswith("💰 *¡Nueva Venta ML!*")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_disabled_relay_does_not_post():
    relay = NotificationRelay(None)

    with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock) as post:
        assert await relay.send({"event": "ml_sale"}) is False

    post.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.unit
async def test_relay_accepts():
    relay = NotificationRelay(RELAY_URL)

    with patch.object(
        httpx.AsyncClient,
        "post",
        new_callable=AsyncMock,
        return_value=httpx.Response(200, text="Accepted"),
    ) as post:
        assert await relay.send({"event": "ml_sale"}) is True

    assert post.await_args.args[0] == RELAY_URL
    assert post.await_args.kwargs["json"] == {"event": "ml_sale"}


@pytest.mark.asyncio
@pytest.mark.unit
async def test_relay_rejection_is_reported_not_raised():
    relay = NotificationRelay(RELAY_URL)

    with patch.object(
        httpx.AsyncClient,
        "post",
        new_callable=AsyncMock,
        return_value=httpx.Response(500, text="boom"),
    ):
        assert await relay.send({"event": "ml_sale"}) is False


@pytest.mark.asyncio
@pytest.mark.unit
async def test_relay_network_error_is_reported_not_raised():
    relay = NotificationRelay(RELAY_URL)

    with patch.object(
        httpx.AsyncClient,
        "post",
        new_callable=AsyncMock,
        side_effect=httpx.ConnectError("unreachable"),
    ):
        assert await relay.send({"event": "ml_sale"}) is False
