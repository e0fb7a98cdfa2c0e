"""Configuration loading for abiregistry library."""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from .constants import CONFIG_FILE_NAME, DEFAULT_BASE_URL, DEFAULT_OUT_DIR, ENV_VARS
from .exceptions import ConfigError
from .paths import get_config_path
from .types import ContractSelector, ProxySpec, ScriptConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchTarget:
    """A contract to fetch from the block explorer."""

    chain: int
    address: str
    name: str
    is_proxy: bool = False


@dataclass(frozen=True)
class FoundryConfig:
    """The foundry section of the config file."""

    scripts: Tuple[ScriptConfig, ...] = ()
    script_dir: Optional[str] = None  # Legacy single-script setting
    exclude_chains: Tuple[int, ...] = ()

    def script(self, name: str) -> Optional[ScriptConfig]:
        for script in self.scripts:
            if script.name == name:
                return script
        return None


@dataclass
class AbiRegistryConfig:
    """Effective CLI configuration (file, environment and overrides merged)."""

    api_key: Optional[str] = None
    project_id: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    out_dir: str = DEFAULT_OUT_DIR
    foundry: FoundryConfig = field(default_factory=FoundryConfig)
    contracts: List[FetchTarget] = field(default_factory=list)


# Config file keys (camelCase) -> AbiRegistryConfig attributes
_FILE_KEYS = {
    "apiKey": "api_key",
    "projectId": "project_id",
    "baseUrl": "base_url",
    "outDir": "out_dir",
}


def load_config_file(config_path: Optional[Union[Path, str]] = None) -> Dict[str, Any]:
    """
    Load abiregistry.config.json.

    Args:
        config_path: Config file path (defaults to ./abiregistry.config.json)

    Returns:
        Decoded config object; empty dict if the file doesn't exist or is
        not a valid JSON object
    """
    path = Path(config_path) if config_path is not None else get_config_path()
    try:
        with open(path) as f:
            data = json.load(f)
    except FileNotFoundError:
        return {}
    except json.JSONDecodeError as e:
        logger.warning("Failed to parse %s: %s", path.name, e)
        return {}

    if not isinstance(data, dict):
        logger.warning("Ignoring %s: expected a JSON object", path.name)
        return {}
    return data


def load_env_config() -> Dict[str, str]:
    """
    Load settings from environment variables.

    Each setting reads ABI_REGISTRY_<NAME> first, then the ABIREGISTRY_<NAME> alias.

    Returns:
        Mapping of attribute name -> value, for variables that are set
    """
    settings: Dict[str, str] = {}
    for attribute, names in ENV_VARS.items():
        for name in names:
            value = os.environ.get(name)
            if value:
                settings[attribute] = value
                break
    return settings


def _parse_proxy(data: Any, where: str) -> ProxySpec:
    if not isinstance(data, dict) or not isinstance(data.get("implementation"), str):
        raise ConfigError(f"{where}.proxy must be an object with an 'implementation' name")

    interfaces = data.get("interfaces", [])
    if not isinstance(interfaces, list) or not all(isinstance(i, str) for i in interfaces):
        raise ConfigError(f"{where}.proxy.interfaces must be a list of contract names")

    return ProxySpec(implementation=data["implementation"], interfaces=tuple(interfaces))


def _parse_selector(data: Any, where: str) -> ContractSelector:
    if not isinstance(data, dict) or not isinstance(data.get("name"), str):
        raise ConfigError(f"{where} must be an object with a 'name'")

    proxy = None
    if data.get("proxy") is not None:
        proxy = _parse_proxy(data["proxy"], where)
    return ContractSelector(name=data["name"], proxy=proxy)


def _parse_script(data: Any, where: str) -> ScriptConfig:
    if not isinstance(data, dict) or not isinstance(data.get("name"), str):
        raise ConfigError(f"{where} must be an object with a 'name'")

    contracts = data.get("contracts") or []
    if not isinstance(contracts, list):
        raise ConfigError(f"{where}.contracts must be a list")

    return ScriptConfig(
        name=data["name"],
        contracts=tuple(
            _parse_selector(c, f"{where}.contracts[{i}]") for i, c in enumerate(contracts)
        ),
    )


def parse_foundry_config(section: Any) -> FoundryConfig:
    """
    Parse the foundry section of the config file.

    Args:
        section: Value of the "foundry" key (None when absent)

    Returns:
        FoundryConfig

    Raises:
        ConfigError: If the section has the wrong shape
    """
    if section is None:
        return FoundryConfig()
    if not isinstance(section, dict):
        raise ConfigError("foundry must be an object")

    scripts = section.get("scripts") or []
    if not isinstance(scripts, list):
        raise ConfigError("foundry.scripts must be a list")

    script_dir = section.get("scriptDir")
    if script_dir is not None and not isinstance(script_dir, str):
        raise ConfigError("foundry.scriptDir must be a string")

    exclude_chains = section.get("excludeChains") or []
    if not isinstance(exclude_chains, list) or not all(
        isinstance(c, int) and not isinstance(c, bool) for c in exclude_chains
    ):
        raise ConfigError("foundry.excludeChains must be a list of chain ids")

    return FoundryConfig(
        scripts=tuple(
            _parse_script(s, f"foundry.scripts[{i}]") for i, s in enumerate(scripts)
        ),
        script_dir=script_dir,
        exclude_chains=tuple(exclude_chains),
    )


def parse_fetch_targets(contracts: Any) -> List[FetchTarget]:
    """
    Parse the contracts list used by the fetch command.

    Raises:
        ConfigError: If an entry lacks chain, address or name
    """
    if contracts is None:
        return []
    if not isinstance(contracts, list):
        raise ConfigError("contracts must be a list")

    targets = []
    for i, entry in enumerate(contracts):
        if (
            not isinstance(entry, dict)
            or not isinstance(entry.get("chain"), int)
            or not isinstance(entry.get("address"), str)
            or not isinstance(entry.get("name"), str)
        ):
            raise ConfigError(f"contracts[{i}] must have chain, address and name")
        targets.append(
            FetchTarget(
                chain=entry["chain"],
                address=entry["address"],
                name=entry["name"],
                is_proxy=bool(entry.get("isProxy", False)),
            )
        )
    return targets


def load_config(
    overrides: Optional[Dict[str, Any]] = None,
    config_path: Optional[Union[Path, str]] = None,
) -> AbiRegistryConfig:
    """
    Load configuration from file, environment variables and overrides.

    Precedence: overrides > environment > config file > defaults.
    Override values of None are ignored.

    Args:
        overrides: Attribute values from CLI flags (api_key, project_id, ...)
        config_path: Config file path (defaults to ./abiregistry.config.json)

    Returns:
        AbiRegistryConfig

    Raises:
        ConfigError: If the foundry or contracts sections are malformed
    """
    file_config = load_config_file(config_path)

    settings: Dict[str, Any] = {}
    for key, attribute in _FILE_KEYS.items():
        if file_config.get(key):
            settings[attribute] = file_config[key]
    settings.update(load_env_config())
    settings.update({k: v for k, v in (overrides or {}).items() if v is not None})

    return AbiRegistryConfig(
        **settings,
        foundry=parse_foundry_config(file_config.get("foundry")),
        contracts=parse_fetch_targets(file_config.get("contracts")),
    )


def validate_config(config: AbiRegistryConfig, require_project: bool = False) -> List[str]:
    """
    Validate required configuration.

    Args:
        config: Loaded configuration
        require_project: Whether a project id is required

    Returns:
        List of error messages; empty when valid
    """
    errors = []
    if not config.api_key:
        errors.append(
            "API key is required. Set it via --api-key, ABI_REGISTRY_API_KEY env var, "
            f"or in {CONFIG_FILE_NAME}"
        )
    if require_project and not config.project_id:
        errors.append(
            "Project ID is required. Set it via --project, ABI_REGISTRY_PROJECT_ID env var, "
            f"or in {CONFIG_FILE_NAME}"
        )
    return errors


def get_scripts_to_process(
    script_flag: Optional[str], foundry: FoundryConfig
) -> List[ScriptConfig]:
    """
    Determine which deploy scripts to process.

    A --script flag takes precedence, then the scripts list, then the legacy
    scriptDir setting. A flagged script keeps its configured contract list.

    Raises:
        ConfigError: If no script is specified anywhere
    """
    if script_flag:
        return [foundry.script(script_flag) or ScriptConfig(name=script_flag)]
    if foundry.scripts:
        return list(foundry.scripts)
    if foundry.script_dir:
        return [ScriptConfig(name=foundry.script_dir)]
    raise ConfigError(
        "Script directory is required.\n"
        f'Provide it via --script flag or set "foundry.scripts" in {CONFIG_FILE_NAME}'
    )


SAMPLE_CONFIG: Dict[str, Any] = {
    "baseUrl": DEFAULT_BASE_URL,
    "outDir": DEFAULT_OUT_DIR,
    "foundry": {
        "scripts": [
            {
                "name": "Deploy.s.sol",
                "contracts": [
                    {"name": "MyToken"},
                    {"name": "TokenProxy", "proxy": {"implementation": "TokenV1"}},
                ],
            }
        ]
    },
    "contracts": [
        {
            "chain": 1,
            "address": "0x0000000000000000000000000000000000000000",
            "name": "ExampleContract",
        }
    ],
}


def create_config_file(config_path: Optional[Union[Path, str]] = None) -> Path:
    """
    Create a sample config file.

    Raises:
        ConfigError: If the file already exists
    """
    path = Path(config_path) if config_path is not None else get_config_path()
    if path.exists():
        raise ConfigError(f"{path.name} already exists")

    with open(path, "w") as f:
        json.dump(SAMPLE_CONFIG, f, indent=2)
    return path


def save_foundry_config(
    foundry_section: Dict[str, Any], config_path: Optional[Union[Path, str]] = None
) -> Path:
    """
    Write the foundry section into the config file, keeping other settings.

    Creates the file if it doesn't exist.
    """
    path = Path(config_path) if config_path is not None else get_config_path()
    data = load_config_file(path)
    data["foundry"] = foundry_section

    with open(path, "w") as f:
        json.dump(data, f, indent=2)
    return path
