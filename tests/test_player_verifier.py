import asyncio
from urllib.parse import parse_qsl

import httpx
import pytest

from diamondapi.config import Settings
from diamondapi.providers.player.moogold import PlayerIdVerifier


def _verifier(handler):
    return PlayerIdVerifier(
        Settings(DATABASE_URL="sqlite://", PLAYER_VERIFY_URL="https://verify.example.com/check"),
        transport=httpx.MockTransport(handler),
    )


def _verify(verifier, account="12345678", server="2001"):
    return asyncio.run(verifier.verify(account, server))


def test_found():
    captured = {}

    def handler(request):
        captured["url"] = str(request.url)
        captured["form"] = dict(parse_qsl(request.content.decode()))
        return httpx.Response(
            200, json={"message": "Original Server Name: xXKaguraXx\nRegion: ID"}
        )

    result = _verify(_verifier(handler))

    assert result.found
    assert result.display_name == "xXKaguraXx"
    assert captured["url"] == "https://verify.example.com/check"
    assert captured["form"]["text-5f6f144f8ffee"] == "12345678"
    assert captured["form"]["text-1601115253775"] == "2001"


def test_http_error_status():
    result = _verify(_verifier(lambda request: httpx.Response(503)))

    assert not result.found
    assert result.error == "HTTP Error: 503"


def test_invalid_json():
    result = _verify(_verifier(lambda request: httpx.Response(200, text="<html>oops</html>")))

    assert result.error == "Invalid JSON response"


@pytest.mark.parametrize(
    "body",
    [{}, {"message": ""}, {"message": "Invalid ID"}, ["unexpected"]],
)
def test_player_not_found(body):
    result = _verify(_verifier(lambda request: httpx.Response(200, json=body)))

    assert not result.found
    assert result.error == "Player not found"


def test_network_error_is_reported_not_raised():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    result = _verify(_verifier(handler))

    assert not result.found
    assert "connection refused" in result.error


@pytest.mark.parametrize(
    "message, expected",
    [
        ("Original Server Name: Foo\nRegion: ID", "Foo"),
        ("Username: Bar Baz", "Bar Baz"),
        ("Region: ID", None),
    ],
)
def test_parse_display_name(message, expected):
    assert PlayerIdVerifier.parse_display_name(message) == expected
