"""
Async PowerDNS-Admin API client.

Zones are keyed by SLD (``no.kg``); a registered domain is the NS RRset at
``<domain>.<sld>.`` inside that zone.
"""

import os
from collections.abc import Mapping
from typing import Any

from suffixbot.exceptions import APIError, ConfigurationError, NotFoundError
from suffixbot.logging import get_logger
from suffixbot.transport import AsyncHTTPTransport, RetryConfig

logger = get_logger("dns")


def _absolute(name: str) -> str:
    return name if name.endswith(".") else f"{name}."


class AsyncPowerDNSAdminClient:
    """Async client for the PowerDNS-Admin (PowerDNS API compatible) endpoints."""

    DEFAULT_TIMEOUT = 30.0
    DEFAULT_TTL = 7200
    SERVER = "localhost"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT,
        retry_config: RetryConfig | None = None,
        transport: AsyncHTTPTransport | None = None,
    ) -> None:
        """
        Initialize the PowerDNS-Admin client.

        Args:
            base_url: PowerDNS-Admin URL (PDA_API_URL)
            api_key: API key sent as X-API-Key (PDA_API_KEY)
            timeout: Per-call timeout in seconds
            retry_config: Configuration for retry behavior (optional)
            transport: Pre-built transport (optional)
        """
        self._transport = transport or AsyncHTTPTransport(
            base_url=base_url,
            headers={"X-API-Key": api_key},
            timeout=timeout,
            retry_config=retry_config,
        )

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        retry_config: RetryConfig | None = None,
    ) -> "AsyncPowerDNSAdminClient":
        """
        Create a client from PDA_API_URL and PDA_API_KEY.

        Raises:
            ConfigurationError: If required environment variables are missing
        """
        env = os.environ if environ is None else environ
        base_url = env.get("PDA_API_URL")
        api_key = env.get("PDA_API_KEY")

        if not base_url:
            raise ConfigurationError("PDA_API_URL environment variable is required")
        if not api_key:
            raise ConfigurationError("PDA_API_KEY environment variable is required")

        return cls(base_url=base_url, api_key=api_key, timeout=timeout, retry_config=retry_config)

    @property
    def transport(self) -> AsyncHTTPTransport:
        return self._transport

    def _zone_path(self, zone_id: str) -> str:
        return f"/api/v1/servers/{self.SERVER}/zones/{zone_id}"

    async def get_zone(self, zone_id: str) -> dict[str, Any]:
        return await self._transport.request("GET", self._zone_path(zone_id))

    async def check_zone_exists(self, zone_id: str) -> bool:
        """True when the zone exists; errors other than 404 propagate."""
        try:
            await self.get_zone(zone_id)
        except NotFoundError:
            return False
        return True

    async def get_zone_records(self, zone_id: str) -> list[dict[str, Any]]:
        zone = await self.get_zone(zone_id)
        records = zone.get("rrsets", [])
        logger.info("Fetched %d RRsets for zone %s", len(records), zone_id)
        return records

    async def get_domain_records(self, zone_id: str, domain: str) -> list[dict[str, Any]]:
        """RRsets named exactly ``<domain>.<zone_id>``."""
        target = f"{domain}.{zone_id}"
        records = await self.get_zone_records(zone_id)
        return [record for record in records if record.get("name", "").rstrip(".") == target]

    async def replace_ns_records(
        self,
        zone_id: str,
        domain: str,
        nameservers: list[str] | tuple[str, ...],
        ttl: int = DEFAULT_TTL,
    ) -> None:
        """Create or overwrite the NS RRset of ``domain.zone_id.``."""
        name = _absolute(f"{domain}.{zone_id}")
        logger.info("Replacing NS records for %s with %s", name, ", ".join(nameservers))

        payload = {
            "rrsets": [
                {
                    "name": name,
                    "type": "NS",
                    "ttl": ttl,
                    "changetype": "REPLACE",
                    "records": [
                        {"content": _absolute(ns), "disabled": False} for ns in nameservers
                    ],
                }
            ]
        }
        await self._transport.request("PATCH", self._zone_path(zone_id), body=payload)

    async def delete_ns_records(self, zone_id: str, domain: str) -> None:
        """Delete the NS RRset of ``domain.zone_id.``."""
        name = _absolute(f"{domain}.{zone_id}")
        logger.info("Deleting NS records for %s", name)

        payload = {"rrsets": [{"name": name, "type": "NS", "changetype": "DELETE"}]}
        await self._transport.request("PATCH", self._zone_path(zone_id), body=payload)

    async def test_connection(self) -> dict[str, Any]:
        """Query the server endpoint; never raises for API errors."""
        try:
            info = await self._transport.request("GET", f"/api/v1/servers/{self.SERVER}")
        except APIError as e:
            logger.error("PowerDNS-Admin connection test failed: %s", e.message)
            return {"success": False, "error": e.message}
        return {"success": True, "serverInfo": info}

    async def close(self) -> None:
        await self._transport.close()

    async def __aenter__(self) -> "AsyncPowerDNSAdminClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
