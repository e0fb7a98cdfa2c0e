"""Local ABI file output for abiregistry library."""

import json
import re
from pathlib import Path
from typing import Any, Dict, List, Union


def group_identical_abis(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Group identical ABIs deployed at several addresses.

    Items with the same contract name, chain and ABI hash collapse into one
    group listing every address, in first-seen order.

    Args:
        items: ABI items as returned by the registry (contractName, chainId,
               network, address, abiHash, abi, ...)

    Returns:
        One dict per group, with an "addresses" list
    """
    grouped: Dict[tuple, Dict[str, Any]] = {}

    for item in items:
        name = item.get("contractName") or item.get("contract")
        key = (name, item.get("chainId"), item.get("abiHash"))

        if key in grouped:
            addresses = grouped[key]["addresses"]
            if item.get("address") not in addresses:
                addresses.append(item.get("address"))
            continue

        grouped[key] = {
            "contractName": name,
            "network": item.get("network"),
            "chainId": item.get("chainId"),
            "abiHash": item.get("abiHash"),
            "version": item.get("version"),
            "addresses": [item.get("address")],
            "abi": item.get("abi", []),
        }

    return list(grouped.values())


def _file_stem(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9_.-]", "_", name)


def _network_part(group: Dict[str, Any]) -> str:
    return _file_stem(str(group["network"] or group["chainId"]))


def _version_part(group: Dict[str, Any]) -> str:
    if group.get("version") is not None:
        return _file_stem(f"v{group['version']}")
    return _file_stem(str(group.get("abiHash") or "")[2:10])


def _unique_stems(groups: List[Dict[str, Any]]) -> List[str]:
    """
    Pick one file stem per group.

    <Name> when the name occurs once, <Name>_<network> when it occurs on
    several networks, <Name>_<network>_v<version> (or the ABI hash prefix
    when there is no version) when one network holds several versions.
    Any remaining clash gets a numeric suffix.
    """
    name_counts: Dict[str, int] = {}
    network_counts: Dict[tuple, int] = {}
    for group in groups:
        name = group["contractName"]
        name_counts[name] = name_counts.get(name, 0) + 1
        key = (name, _network_part(group))
        network_counts[key] = network_counts.get(key, 0) + 1

    stems: List[str] = []
    used = set()
    for group in groups:
        name = group["contractName"]
        stem = _file_stem(name)
        if name_counts[name] > 1:
            network = _network_part(group)
            stem = f"{stem}_{network}"
            if network_counts[(name, network)] > 1:
                stem = f"{stem}_{_version_part(group)}"

        candidate = stem
        n = 2
        while candidate in used:
            candidate = f"{stem}_{n}"
            n += 1
        used.add(candidate)
        stems.append(candidate)

    return stems


def write_abi_files(items: List[Dict[str, Any]], out_dir: Union[Path, str]) -> List[Path]:
    """
    Write ABI items as JSON files.

    One <ContractName>.json per group. A name with several groups gets
    _<network> and, within one network, _v<version> suffixes so that no file
    overwrites another. An index.json lists every written file.

    Args:
        items: ABI items (see group_identical_abis)
        out_dir: Output directory (created if needed)

    Returns:
        Paths of all written files, index last
    """
    out_path = Path(out_dir)
    out_path.mkdir(parents=True, exist_ok=True)

    groups = group_identical_abis(items)
    stems = _unique_stems(groups)

    written: List[Path] = []
    index: List[Dict[str, Any]] = []
    for group, stem in zip(groups, stems):
        file_path = out_path / f"{stem}.json"
        with open(file_path, "w") as f:
            json.dump(group, f, indent=2)
        written.append(file_path)

        index.append(
            {
                "contractName": group["contractName"],
                "network": group["network"],
                "chainId": group["chainId"],
                "addresses": group["addresses"],
                "file": file_path.name,
            }
        )

    index_path = out_path / "index.json"
    with open(index_path, "w") as f:
        json.dump(index, f, indent=2)
    written.append(index_path)

    return written
