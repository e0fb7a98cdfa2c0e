"""Compiled artifact loading for abiregistry library."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple, Union

from .exceptions import ArtifactNotFoundError, InvalidArtifactError
from .paths import get_artifact_path, get_artifacts_dir
from .types import ProxySpec

logger = logging.getLogger(__name__)


def _not_found_message(contract_name: str, abi_path: Path) -> str:
    return (
        f"Could not find ABI file for contract {contract_name}.\n"
        f"Expected location: {abi_path}\n\n"
        "Make sure:\n"
        "  1. Contracts are compiled: run 'forge build'\n"
        "  2. You're in the Foundry project root directory\n"
        "  3. The out/ folder exists with compiled artifacts\n\n"
        f"Foundry creates: out/{contract_name}.sol/{contract_name}.json"
    )


def load_artifact_abi(
    contract_name: str, out_dir: Optional[Union[Path, str]] = None
) -> List[Dict[str, Any]]:
    """
    Load a contract ABI from Foundry's out/ directory.

    Args:
        contract_name: Contract name as recorded in the broadcast file
        out_dir: Foundry out/ directory (defaults to ./out)

    Returns:
        ABI entries

    Raises:
        ArtifactNotFoundError: If out/<Name>.sol/<Name>.json does not exist
        InvalidArtifactError: If the artifact is not JSON or its abi field is
                              missing or not an array of objects
    """
    if out_dir is None:
        out_dir = get_artifacts_dir()
    abi_path = get_artifact_path(contract_name, out_dir)

    try:
        with open(abi_path) as f:
            artifact = json.load(f)
    except FileNotFoundError as e:
        raise ArtifactNotFoundError(
            _not_found_message(contract_name, abi_path),
            contract_name=contract_name,
            expected_path=abi_path,
        ) from e
    except json.JSONDecodeError as e:
        raise InvalidArtifactError(
            f"Failed to load ABI for {contract_name}: {abi_path} is not valid JSON ({e})",
            contract_name=contract_name,
            path=abi_path,
        ) from e

    abi = artifact.get("abi") if isinstance(artifact, dict) else None
    if not isinstance(abi, list) or not all(isinstance(entry, dict) for entry in abi):
        raise InvalidArtifactError(
            f"Failed to load ABI for {contract_name}: "
            "Invalid artifact format: missing or invalid ABI field "
            f"({abi_path})",
            contract_name=contract_name,
            path=abi_path,
        )

    return abi


def _entry_identity(entry: Dict[str, Any]) -> Tuple[Any, Any]:
    return (entry.get("type"), entry.get("name"))


def merge_abis(*abis: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Union several ABIs into one, in argument order.

    An entry is dropped when an entry with the same (type, name) was already
    taken, whatever its parameters. Overloaded functions or events sharing a
    name therefore collapse to the first one seen.

    Args:
        *abis: ABIs to merge; the first wins on conflicts

    Returns:
        Merged ABI
    """
    seen: Set[Tuple[Any, Any]] = set()
    merged: List[Dict[str, Any]] = []

    for abi in abis:
        for entry in abi:
            identity = _entry_identity(entry)
            if identity in seen:
                logger.debug("Skipped duplicate ABI entry: %s %s", *identity)
                continue
            seen.add(identity)
            merged.append(entry)

    return merged


def load_proxy_abi(
    proxy: ProxySpec, out_dir: Optional[Union[Path, str]] = None
) -> List[Dict[str, Any]]:
    """
    Load the ABI published for a proxy.

    The implementation's artifact is loaded first; for multi-facet (Diamond)
    contracts each listed interface is loaded in order and merged in.

    Args:
        proxy: Implementation name and optional interface facets
        out_dir: Foundry out/ directory (defaults to ./out)

    Returns:
        Implementation ABI, merged with interface ABIs when any are listed

    Raises:
        ArtifactNotFoundError: If any artifact is missing
        InvalidArtifactError: If any artifact is invalid
    """
    abi = load_artifact_abi(proxy.implementation, out_dir)
    if not proxy.interfaces:
        return abi

    facets = [load_artifact_abi(name, out_dir) for name in proxy.interfaces]
    return merge_abis(abi, *facets)
