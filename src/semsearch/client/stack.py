"""CMS stack configuration and entry links."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import quote

from semsearch.client.service import SearchServiceClient
from semsearch.core.errors import InvalidResponseError
from semsearch.utils.config import Config, get_config
from semsearch.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class StackConfig:
    """Stack settings reported by the backend (``GET /config/stack``)."""

    stack_api_key: str
    environment: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> StackConfig:
        api_key = data.get("stackApiKey")
        if not api_key:
            raise InvalidResponseError("Stack configuration is missing 'stackApiKey'")
        # managementToken is never stored
        return cls(stack_api_key=str(api_key), environment=data.get("environment"))


def build_entry_url(
    app_url: str,
    stack_api_key: str,
    content_type: str,
    locale: str,
    uid: str,
    branch: str = "main",
) -> str:
    """Build the CMS editor URL of an entry.

    Example:
        >>> build_entry_url("https://eu-app.contentstack.com", "blt1", "product", "en-us", "e1")
        'https://eu-app.contentstack.com/#!/stack/blt1/content-type/product/en-us/entry/e1/edit?branch=main'
    """
    return (
        f"{app_url.rstrip('/')}/#!/stack/{quote(stack_api_key)}"
        f"/content-type/{quote(content_type)}/{quote(locale)}"
        f"/entry/{quote(uid)}/edit?branch={quote(branch)}"
    )


class StackConfigLoader:
    """Lazily fetched, instance-scoped cache of the stack configuration.

    The first successful fetch is cached until :meth:`invalidate` is called.
    Concurrent first calls share a single backend request.
    """

    def __init__(self, client: SearchServiceClient, config: Optional[Config] = None):
        config = config or get_config()
        self.client = client
        self.app_url = config.get("cms.app_url", "https://eu-app.contentstack.com")
        self.branch = config.get("cms.branch", "main")
        self._cached: Optional[StackConfig] = None
        self._lock = asyncio.Lock()

    async def load(self) -> StackConfig:
        if self._cached is not None:
            return self._cached
        async with self._lock:
            if self._cached is None:
                data = await self.client.get_stack_config()
                self._cached = StackConfig.from_dict(data)
                logger.info(
                    f"Loaded stack configuration (environment={self._cached.environment})"
                )
        return self._cached

    def invalidate(self) -> None:
        """Drop the cached configuration; the next call fetches it again."""
        self._cached = None

    async def entry_url(self, content_type: str, locale: str, uid: str) -> str:
        """Editor URL for an entry of this stack."""
        stack = await self.load()
        return build_entry_url(
            self.app_url, stack.stack_api_key, content_type, locale, uid, self.branch
        )


__all__ = ["StackConfig", "StackConfigLoader", "build_entry_url"]
