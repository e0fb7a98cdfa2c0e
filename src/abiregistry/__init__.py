"""
abiregistry: Python client and CLI for syncing smart contract ABIs with ABI Registry
"""

from importlib.metadata import PackageNotFoundError, version

from .artifacts import load_artifact_abi, load_proxy_abi, merge_abis
from .client import AbiRegistryClient
from .discovery import find_trace_files
from .exceptions import (
    AbiRegistryError,
    ArtifactNotFoundError,
    ConfigError,
    ExplorerError,
    InvalidArtifactError,
    MalformedTraceError,
    NothingToPublishError,
    RegistryError,
)
from .hashing import calculate_abi_hash
from .parsers import parse_trace
from .proxies import detect_proxies
from .resolution import DeploymentResolver, ResolutionResult
from .types import (
    ContractSelector,
    ProxyMapping,
    ProxySpec,
    PublishRecord,
    PushResult,
    ScriptConfig,
    Trace,
)

try:
    __version__ = version("abiregistry")
except PackageNotFoundError:
    __version__ = None

__all__ = [
    "AbiRegistryClient",
    "DeploymentResolver",
    "ResolutionResult",
    "find_trace_files",
    "parse_trace",
    "detect_proxies",
    "load_artifact_abi",
    "load_proxy_abi",
    "merge_abis",
    "calculate_abi_hash",
    "ContractSelector",
    "ProxyMapping",
    "ProxySpec",
    "PublishRecord",
    "PushResult",
    "ScriptConfig",
    "Trace",
    "AbiRegistryError",
    "MalformedTraceError",
    "ArtifactNotFoundError",
    "InvalidArtifactError",
    "ConfigError",
    "RegistryError",
    "ExplorerError",
    "NothingToPublishError",
]
