"""Unit tests for candidate building and allow-list filtering."""

from conftest import make_broadcast, make_call, make_create, make_nested

from abiregistry.parsers import decode_trace
from abiregistry.proxies import detect_proxies
from abiregistry.resolution import build_candidates, filter_candidates, proxy_name
from abiregistry.types import Candidate, ContractSelector, ProxySpec, ScriptConfig


def _candidates(transactions, selectors=()):
    txs = decode_trace(make_broadcast(transactions)).transactions
    return build_candidates(txs, detect_proxies(txs), selectors)


class TestBuildCandidates:
    """Test turning a trace into deployments to publish."""

    def test_plain_creates_in_order(self):
        """Test that named CREATEs become candidates in transaction order."""
        candidates = _candidates([make_create("TokenA", "0xA"), make_create("TokenB", "0xB")])

        assert candidates == [Candidate("TokenA", "0xA"), Candidate("TokenB", "0xB")]

    def test_unnamed_creates_and_calls_skipped(self):
        """Test that only named CREATEs are candidates."""
        candidates = _candidates(
            [make_create(None, "0xA"), make_call("0xB"), make_create("Token", "0xC")]
        )

        assert [c.name for c in candidates] == ["Token"]

    def test_proxy_supersedes_implementation(self):
        """Test that a detected proxy replaces its implementation."""
        candidates = _candidates(
            [
                make_create("TokenV1", "0xA1"),
                make_call("0xF0", [make_nested("0xB2")]),
            ]
        )

        assert candidates == [
            Candidate("TokenV1Proxy", "0xB2", proxy=ProxySpec("TokenV1")),
        ]

    def test_proxies_follow_plain_deployments(self):
        """Test that proxy candidates come after plain deployments."""
        candidates = _candidates(
            [
                make_create("TokenV1", "0xA1"),
                make_call("0xF0", [make_nested("0xB2")]),
                make_create("SimpleToken", "0xC3"),
            ]
        )

        assert [c.name for c in candidates] == ["SimpleToken", "TokenV1Proxy"]

    def test_two_factories_two_implementations(self):
        """Test that each factory CALL yields a proxy and no implementation is kept."""
        candidates = _candidates(
            [
                make_create("Vault", "0xA1"),
                make_call("0xF0", [make_nested("0xB1")]),
                make_create("Staking", "0xA2"),
                make_call("0xF0", [make_nested("0xB2")]),
            ]
        )

        assert candidates == [
            Candidate("VaultProxy", "0xB1", proxy=ProxySpec("Vault")),
            Candidate("StakingProxy", "0xB2", proxy=ProxySpec("Staking")),
        ]
        assert not {"Vault", "Staking"} & {c.name for c in candidates}

    def test_explicit_proxy_overrides_detected(self):
        """Test that a configured proxy spec wins over the detected one."""
        spec = ProxySpec("TokenV1", ("TokenFacet",))
        candidates = _candidates(
            [
                make_create("TokenV1", "0xA1"),
                make_call("0xF0", [make_nested("0xB2")]),
            ],
            selectors=[ContractSelector("TokenV1Proxy", proxy=spec)],
        )

        assert candidates[0].proxy == spec

    def test_explicit_proxy_on_plain_create(self):
        """Test that a manual proxy config applies to a CREATE with that name."""
        spec = ProxySpec("DiamondImpl", ("FacetA", "FacetB"))
        candidates = _candidates(
            [make_create("Diamond", "0xD1")],
            selectors=[ContractSelector("Diamond", proxy=spec)],
        )

        assert candidates == [Candidate("Diamond", "0xD1", proxy=spec)]

    def test_selectors_without_proxy_change_nothing(self):
        """Test that plain selectors do not alter candidates."""
        candidates = _candidates(
            [make_create("Token", "0xA")], selectors=[ContractSelector("Token")]
        )

        assert candidates == [Candidate("Token", "0xA")]

    def test_proxy_name(self):
        """Test the synthesized proxy name."""
        assert proxy_name("Vault") == "VaultProxy"


class TestFilterCandidates:
    """Test the allow-list filter."""

    CANDIDATES = [Candidate("TokenA", "0xA"), Candidate("TokenB", "0xB")]

    def test_empty_allow_list_keeps_all(self):
        """Test that no allow-list means no filtering."""
        assert filter_candidates(self.CANDIDATES, []) == self.CANDIDATES

    def test_keeps_only_allowed(self):
        """Test that unlisted candidates are dropped."""
        assert filter_candidates(self.CANDIDATES, ["TokenB"]) == [self.CANDIDATES[1]]

    def test_unknown_names_are_ignored(self):
        """Test that allow-list names absent from the trace are harmless."""
        assert filter_candidates(self.CANDIDATES, ["Missing"]) == []

    def test_idempotent(self):
        """Test that filtering twice gives the same result."""
        once = filter_candidates(self.CANDIDATES, ["TokenA"])
        assert filter_candidates(once, ["TokenA"]) == once

    def test_allow_list_from_script_config(self):
        """Test that the script's allow-list is its contract names."""
        script = ScriptConfig(
            "Deploy.s.sol", (ContractSelector("TokenA"), ContractSelector("TokenB"))
        )

        assert script.allow_list == ["TokenA", "TokenB"]
