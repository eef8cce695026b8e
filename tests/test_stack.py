"""Tests for stack configuration and entry links."""

import asyncio

import pytest

from semsearch.client.stack import StackConfig, StackConfigLoader, build_entry_url
from semsearch.core.errors import InvalidResponseError

STACK_BODY = {
    "stackApiKey": "blt0123",
    "managementToken": "secret-token",
    "environment": "production",
}


def test_build_entry_url():
    url = build_entry_url(
        "https://eu-app.contentstack.com/", "blt0123", "product", "en-us", "blt9", "dev"
    )

    assert url == (
        "https://eu-app.contentstack.com/#!/stack/blt0123/content-type/product"
        "/en-us/entry/blt9/edit?branch=dev"
    )


def test_build_entry_url_quotes_parts():
    url = build_entry_url("https://app.example.com", "key", "my type", "en-us", "a/b")

    assert "/content-type/my%20type/" in url
    assert "/entry/a/b/" in url


def test_stack_config_drops_management_token():
    stack = StackConfig.from_dict(STACK_BODY)

    assert stack == StackConfig(stack_api_key="blt0123", environment="production")
    assert not hasattr(stack, "management_token")


def test_stack_config_requires_api_key():
    with pytest.raises(InvalidResponseError):
        StackConfig.from_dict({"environment": "production"})


def test_loader_caches_until_invalidated(backend, default_config):
    backend.add("GET", "/config/stack", STACK_BODY)
    default_config.set("cms.app_url", "https://app.example.com")
    default_config.set("cms.branch", "staging")

    async def go():
        async with backend.client() as client:
            loader = StackConfigLoader(client, default_config)
            first = await loader.entry_url("faq", "en-us", "e1")
            await loader.entry_url("faq", "en-us", "e2")
            assert len(backend.calls("GET", "/config/stack")) == 1
            loader.invalidate()
            await loader.load()
            return first

    first = asyncio.run(go())

    assert first == (
        "https://app.example.com/#!/stack/blt0123/content-type/faq/en-us/entry/e1/edit?branch=staging"
    )
    assert len(backend.calls("GET", "/config/stack")) == 2


def test_concurrent_first_loads_share_one_request(backend):
    backend.add("GET", "/config/stack", STACK_BODY)

    async def go():
        async with backend.client() as client:
            loader = StackConfigLoader(client)
            return await asyncio.gather(loader.load(), loader.load(), loader.load())

    results = asyncio.run(go())

    assert len({id(r) for r in results}) == 1
    assert len(backend.calls("GET", "/config/stack")) == 1


def test_failed_load_is_not_cached(backend):
    backend.add("GET", "/config/stack", {"environment": "production"})

    async def go():
        async with backend.client() as client:
            loader = StackConfigLoader(client)
            with pytest.raises(InvalidResponseError):
                await loader.load()
            backend.add("GET", "/config/stack", STACK_BODY)
            return await loader.load()

    assert asyncio.run(go()).stack_api_key == "blt0123"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
