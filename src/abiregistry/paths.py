"""Path management utilities for abiregistry library."""

from pathlib import Path
from typing import Optional, Union

from .constants import (
    ARTIFACT_SOURCE_EXTENSION,
    ARTIFACTS_DIR_NAME,
    BROADCAST_DIR_NAME,
    CONFIG_FILE_NAME,
)


def get_project_root(project_root: Optional[Union[Path, str]] = None) -> Path:
    """
    Get the Foundry project root.

    Args:
        project_root: Custom project root (defaults to current working directory)

    Returns:
        Absolute path to the project root
    """
    if project_root is None:
        return Path.cwd()
    return Path(project_root).absolute()


def get_broadcast_dir(project_root: Optional[Union[Path, str]] = None) -> Path:
    """Return <project_root>/broadcast."""
    return get_project_root(project_root) / BROADCAST_DIR_NAME


def get_artifacts_dir(project_root: Optional[Union[Path, str]] = None) -> Path:
    """Return <project_root>/out."""
    return get_project_root(project_root) / ARTIFACTS_DIR_NAME


def get_artifact_path(contract_name: str, out_dir: Union[Path, str]) -> Path:
    """
    Get the compiled artifact path for a contract.

    Foundry writes one artifact per contract to out/<Name>.sol/<Name>.json.

    Args:
        contract_name: Contract name as it appears in the broadcast file
        out_dir: Foundry out/ directory

    Returns:
        Expected artifact path (may not exist)
    """
    return (
        Path(out_dir)
        / f"{contract_name}.{ARTIFACT_SOURCE_EXTENSION}"
        / f"{contract_name}.json"
    )


def get_config_path(project_root: Optional[Union[Path, str]] = None) -> Path:
    """Return the config file path in the project root."""
    return get_project_root(project_root) / CONFIG_FILE_NAME
