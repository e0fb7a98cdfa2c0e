"""Shared pytest fixtures for abiregistry tests."""

import json
import logging
import shutil
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

import pytest

from abiregistry.log import LOGGER_NAME

# Init code of an ERC1967 forwarding shim (well under the proxy threshold)
SHIM_INIT_CODE = "0x607f3d8160093d39f33d3d3373"

# Init code of a contract with real logic
LARGE_INIT_CODE = "0x" + "60" * 400


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo setup_logging() so caplog sees package records in every test."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def foundry_project(fixtures_dir: Path, tmp_path: Path) -> Path:
    """
    Copy the sample Foundry project into a temporary directory.

    Layout:
        broadcast/Deploy.s.sol/11155111/run-latest.json  TokenV1 + proxy, SimpleToken
        broadcast/Deploy.s.sol/1/run-latest.json         SimpleToken
        broadcast/DeployGovernance.s.sol/run-latest.json Governor (flat layout)
        out/{TokenV1,SimpleToken,Governor}.sol/*.json
    """
    project = tmp_path / "project"
    shutil.copytree(fixtures_dir / "project", project)
    return project


@pytest.fixture
def broadcast_dir(tmp_path: Path) -> Path:
    """Create an empty broadcast/ directory."""
    path = tmp_path / "broadcast"
    path.mkdir()
    return path


@pytest.fixture
def out_dir(tmp_path: Path) -> Path:
    """Create an empty out/ directory."""
    path = tmp_path / "out"
    path.mkdir()
    return path


def make_create(name: Optional[str], address: str) -> Dict[str, Any]:
    """Build a CREATE broadcast transaction."""
    return {
        "transactionType": "CREATE",
        "contractName": name,
        "contractAddress": address,
        "function": None,
    }


def make_call(
    address: str,
    nested: Sequence[Dict[str, Any]] = (),
    function: str = "deployProxy(address)",
) -> Dict[str, Any]:
    """Build a CALL broadcast transaction with optional additionalContracts."""
    return {
        "transactionType": "CALL",
        "contractName": None,
        "contractAddress": address,
        "function": function,
        "additionalContracts": list(nested),
    }


def make_nested(
    address: str, init_code: str = SHIM_INIT_CODE, name: Optional[str] = None
) -> Dict[str, Any]:
    """Build an additionalContracts entry."""
    return {
        "transactionType": "CREATE",
        "contractName": name,
        "address": address,
        "initCode": init_code,
    }


def make_broadcast(
    transactions: List[Dict[str, Any]], chain: int = 11155111, timestamp: Optional[int] = None
) -> Dict[str, Any]:
    """Build a broadcast document."""
    data: Dict[str, Any] = {"transactions": transactions, "receipts": [], "chain": chain}
    if timestamp is not None:
        data["timestamp"] = timestamp
    return data


@pytest.fixture
def write_broadcast(broadcast_dir: Path) -> Callable[..., Path]:
    """
    Return a helper writing a broadcast file.

    write_broadcast(script, data, chain_dir=None, filename="run-latest.json")
    writes broadcast/<script>/[<chain_dir>/]<filename>.
    """

    def _write(
        script: str,
        data: Any,
        chain_dir: Optional[str] = None,
        filename: str = "run-latest.json",
    ) -> Path:
        directory = broadcast_dir / script
        if chain_dir is not None:
            directory = directory / chain_dir
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / filename
        if isinstance(data, str):
            path.write_text(data)
        else:
            path.write_text(json.dumps(data))
        return path

    return _write


@pytest.fixture
def write_artifact(out_dir: Path) -> Callable[..., Path]:
    """
    Return a helper writing a compiled artifact.

    write_artifact(name, abi) writes out/<name>.sol/<name>.json with the
    given abi; pass raw=... to write arbitrary content instead.
    """

    def _write(name: str, abi: Any = None, raw: Optional[str] = None) -> Path:
        directory = out_dir / f"{name}.sol"
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{name}.json"
        if raw is not None:
            path.write_text(raw)
        else:
            path.write_text(json.dumps({"abi": abi if abi is not None else []}))
        return path

    return _write


def function_entry(name: str, *input_types: str, mutability: str = "nonpayable") -> Dict[str, Any]:
    """Build an ABI function entry."""
    return {
        "type": "function",
        "name": name,
        "inputs": [{"name": f"arg{i}", "type": t} for i, t in enumerate(input_types)],
        "outputs": [],
        "stateMutability": mutability,
    }


def event_entry(name: str, *input_types: str) -> Dict[str, Any]:
    """Build an ABI event entry."""
    return {
        "type": "event",
        "name": name,
        "inputs": [
            {"name": f"arg{i}", "type": t, "indexed": False} for i, t in enumerate(input_types)
        ],
        "anonymous": False,
    }
