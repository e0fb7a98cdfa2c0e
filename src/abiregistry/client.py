"""ABI registry HTTP client for abiregistry library."""

from typing import Any, Dict, List, Optional

import requests

from .constants import DEFAULT_BASE_URL
from .exceptions import RegistryError
from .types import PublishRecord, PushResult


class AbiRegistryClient:
    """Pushes and pulls ABIs from the registry API."""

    def __init__(
        self,
        api_key: str,
        project_id: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 30,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: Registry API key (sent as a bearer token)
            project_id: Project to scope requests to; when None the API key's
                        own project is used
            base_url: API base URL (defaults to https://abiregistry.com)
            timeout: Per-request timeout in seconds
            session: requests session to reuse (created if None)
        """
        self.api_key = api_key
        self.project_id = project_id
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    @property
    def abis_url(self) -> str:
        if self.project_id:
            return f"{self.base_url}/api/projects/{self.project_id}/abis"
        return f"{self.base_url}/api/abis"

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def _request(self, method: str, url: str, action: str, **kwargs) -> Dict[str, Any]:
        try:
            response = self._session.request(
                method, url, headers=self._headers(), timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            raise RegistryError(f"Network error while trying to {action}: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if not response.ok:
            message = data.get("error") if isinstance(data, dict) else None
            raise RegistryError(
                message or f"Failed to {action}: {response.status_code} {response.reason}"
            )

        if not isinstance(data, dict):
            raise RegistryError(f"Failed to {action}: unexpected response body")
        return data

    def push(self, record: PublishRecord) -> PushResult:
        """
        Push one resolved ABI record.

        The registry decides whether the record is a duplicate using its
        abiHash and assigns the version number.

        Returns:
            PushResult with the duplicate flag and the stored record id

        Raises:
            RegistryError: If the request fails or is rejected
        """
        data = self._request("POST", self.abis_url, "push ABI", json=record.to_payload())
        record_id = data.get("abiId") or data.get("id") or ""
        return PushResult(
            is_duplicate=bool(data.get("isDuplicate", False)), record_id=str(record_id)
        )

    def pull(self) -> List[Dict[str, Any]]:
        """
        Pull all ABIs visible to the API key.

        Returns:
            List of ABI items as returned by the API (empty if none)

        Raises:
            RegistryError: If the request fails or is rejected
        """
        data = self._request("GET", self.abis_url, "pull ABIs")
        if "abis" in data:
            return data["abis"] or []
        project = data.get("project") or {}
        return project.get("abis") or []

    def get_abi(self, abi_id: str) -> Optional[Dict[str, Any]]:
        """Get a specific ABI by id, or None if not found."""
        for item in self.pull():
            if item.get("id") == abi_id:
                return item
        return None

    def get_by_network(self, network: str) -> List[Dict[str, Any]]:
        """Get ABIs deployed on a network (case-insensitive)."""
        network = network.lower()
        return [item for item in self.pull() if str(item.get("network", "")).lower() == network]

    def get_by_address(self, address: str) -> List[Dict[str, Any]]:
        """Get ABIs deployed at an address (case-insensitive)."""
        address = address.lower()
        return [item for item in self.pull() if str(item.get("address", "")).lower() == address]
