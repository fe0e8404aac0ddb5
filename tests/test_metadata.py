import asyncio

import httpx
import pytest

from core.metadata import ProviderError, fetch_song_details


def run_lookup(handler, base_url="http://provider.test/", group="Muse", song="Madness"):
    return asyncio.run(
        fetch_song_details(
            base_url=base_url,
            group=group,
            song=song,
            transport=httpx.MockTransport(handler),
        )
    )


def test_lookup_sends_encoded_params_and_parses_body():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        return httpx.Response(
            200,
            json={"releaseDate": "2012-10-01", "text": "v1\n\nv2", "link": "http://x"},
        )

    details = run_lookup(handler, group="Guns N' Roses", song="Sweet & Child")

    assert seen == {"path": "/info", "params": {"group": "Guns N' Roses", "song": "Sweet & Child"}}
    assert details.release_date == "2012-10-01"
    assert details.text == "v1\n\nv2"
    assert details.link == "http://x"


def test_missing_fields_become_empty_strings():
    details = run_lookup(lambda request: httpx.Response(200, json={"text": "only text"}))

    assert details.release_date == ""
    assert details.link == ""


def test_non_200_is_provider_error():
    with pytest.raises(ProviderError):
        run_lookup(lambda request: httpx.Response(404, text="not found"))


def test_malformed_body_is_provider_error():
    with pytest.raises(ProviderError):
        run_lookup(lambda request: httpx.Response(200, text="<html>"))


def test_non_object_body_is_provider_error():
    with pytest.raises(ProviderError):
        run_lookup(lambda request: httpx.Response(200, json=["a"]))


def test_non_string_field_is_provider_error():
    with pytest.raises(ProviderError):
        run_lookup(lambda request: httpx.Response(200, json={"text": 5}))


def test_transport_failure_is_provider_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ProviderError):
        run_lookup(handler)


def test_empty_base_url_is_provider_error():
    with pytest.raises(ProviderError):
        run_lookup(lambda request: httpx.Response(200, json={}), base_url="  ")
