"""Unit tests for Etherscan ABI fetching."""

import json

import pytest
import requests
import responses
from responses import matchers

from abiregistry.constants import ETHERSCAN_V2_BASE_URL
from abiregistry.exceptions import ExplorerError
from abiregistry.explorer import (
    fetch_abi_from_etherscan,
    fetch_abi_with_proxy_detection,
    fetch_implementation_address,
    get_chain_name,
)

ABI = [{"type": "function", "name": "transfer", "inputs": [], "outputs": []}]
IMPLEMENTATION_ABI = [{"type": "function", "name": "upgradeTo", "inputs": [], "outputs": []}]


def _matcher(**params):
    return [matchers.query_param_matcher(params, strict_match=False)]


@pytest.fixture(autouse=True)
def no_api_key(monkeypatch):
    monkeypatch.delenv("ETHERSCAN_API_KEY", raising=False)


class TestGetChainName:
    """Test explorer chain names."""

    def test_known_chain(self):
        """Test a supported chain."""
        assert get_chain_name(56) == "bsc"

    def test_unknown_chain(self):
        """Test that unknown chains fall back to the id."""
        assert get_chain_name(999) == "999"


class TestFetchAbiFromEtherscan:
    """Test the getabi query."""

    @responses.activate
    def test_fetches_abi(self):
        """Test that the JSON-encoded ABI string is decoded."""
        responses.add(
            responses.GET,
            ETHERSCAN_V2_BASE_URL,
            json={"status": "1", "message": "OK", "result": json.dumps(ABI)},
            match=_matcher(chainid="1", module="contract", action="getabi", address="0xabc"),
        )

        assert fetch_abi_from_etherscan(1, "0xabc") == ABI

    @responses.activate
    def test_sends_api_key_from_env(self, monkeypatch):
        """Test that ETHERSCAN_API_KEY is sent when set."""
        monkeypatch.setenv("ETHERSCAN_API_KEY", "ekey")
        responses.add(
            responses.GET,
            ETHERSCAN_V2_BASE_URL,
            json={"status": "1", "result": ABI},
            match=_matcher(apikey="ekey"),
        )

        assert fetch_abi_from_etherscan(8453, "0xabc") == ABI

    def test_unsupported_chain(self):
        """Test that unsupported chains fail before any request."""
        with pytest.raises(ExplorerError, match="Unsupported chain ID: 999"):
            fetch_abi_from_etherscan(999, "0xabc")

    @responses.activate
    def test_not_verified(self):
        """Test that an Etherscan error message is surfaced."""
        responses.add(
            responses.GET,
            ETHERSCAN_V2_BASE_URL,
            json={"status": "0", "message": "NOTOK", "result": "Contract source code not verified"},
        )

        with pytest.raises(ExplorerError, match="NOTOK"):
            fetch_abi_from_etherscan(1, "0xabc")

    @responses.activate
    def test_v1_deprecation(self):
        """Test the V1 deprecation hint."""
        responses.add(
            responses.GET,
            ETHERSCAN_V2_BASE_URL,
            json={
                "status": "0",
                "message": "NOTOK",
                "result": "You are using a deprecated V1 endpoint, switch to V2",
            },
        )

        with pytest.raises(ExplorerError, match="V1 is deprecated"):
            fetch_abi_from_etherscan(1, "0xabc")

    @responses.activate
    def test_http_error(self):
        """Test that non-200 responses fail."""
        responses.add(responses.GET, ETHERSCAN_V2_BASE_URL, status=503)

        with pytest.raises(ExplorerError, match="503"):
            fetch_abi_from_etherscan(1, "0xabc")

    @responses.activate
    def test_network_error(self):
        """Test that connection failures become ExplorerError."""
        responses.add(responses.GET, ETHERSCAN_V2_BASE_URL, body=requests.ConnectionError("down"))

        with pytest.raises(ExplorerError, match="Network error"):
            fetch_abi_from_etherscan(1, "0xabc")

    @responses.activate
    def test_invalid_abi_string(self):
        """Test that an undecodable ABI string fails."""
        responses.add(
            responses.GET, ETHERSCAN_V2_BASE_URL, json={"status": "1", "result": "[not json"}
        )

        with pytest.raises(ExplorerError, match="Invalid ABI JSON"):
            fetch_abi_from_etherscan(1, "0xabc")


class TestProxyDetection:
    """Test following verified proxies to their implementation."""

    @responses.activate
    def test_implementation_address(self):
        """Test reading the Implementation field of getsourcecode."""
        responses.add(
            responses.GET,
            ETHERSCAN_V2_BASE_URL,
            json={"status": "1", "result": [{"Implementation": "0ximpl"}]},
            match=_matcher(action="getsourcecode"),
        )

        assert fetch_implementation_address(1, "0xproxy") == "0ximpl"

    @responses.activate
    def test_follows_proxy(self):
        """Test that a proxy's ABI is taken from its implementation."""
        responses.add(
            responses.GET,
            ETHERSCAN_V2_BASE_URL,
            json={"status": "1", "result": [{"Implementation": "0ximpl"}]},
            match=_matcher(action="getsourcecode", address="0xproxy"),
        )
        responses.add(
            responses.GET,
            ETHERSCAN_V2_BASE_URL,
            json={"status": "1", "result": json.dumps(IMPLEMENTATION_ABI)},
            match=_matcher(action="getabi", address="0ximpl"),
        )

        assert fetch_abi_with_proxy_detection(1, "0xproxy", is_proxy=True) == IMPLEMENTATION_ABI

    @responses.activate
    def test_proxy_without_implementation_uses_own_abi(self):
        """Test the fallback when Etherscan has no implementation recorded."""
        responses.add(
            responses.GET,
            ETHERSCAN_V2_BASE_URL,
            json={"status": "1", "result": [{"Implementation": ""}]},
            match=_matcher(action="getsourcecode"),
        )
        responses.add(
            responses.GET,
            ETHERSCAN_V2_BASE_URL,
            json={"status": "1", "result": json.dumps(ABI)},
            match=_matcher(action="getabi", address="0xproxy"),
        )

        assert fetch_abi_with_proxy_detection(1, "0xproxy", is_proxy=True) == ABI

    @responses.activate
    def test_not_a_proxy(self):
        """Test that no source lookup happens without the proxy flag."""
        responses.add(
            responses.GET,
            ETHERSCAN_V2_BASE_URL,
            json={"status": "1", "result": json.dumps(ABI)},
            match=_matcher(action="getabi"),
        )

        assert fetch_abi_with_proxy_detection(1, "0xabc") == ABI
        assert len(responses.calls) == 1
