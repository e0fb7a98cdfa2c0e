"""Configuration constants for abiregistry library."""

DEFAULT_BASE_URL = "https://abiregistry.com"

CONFIG_FILE_NAME = "abiregistry.config.json"
DEFAULT_OUT_DIR = "abiregistry"

# Foundry layout
BROADCAST_DIR_NAME = "broadcast"
ARTIFACTS_DIR_NAME = "out"
ARTIFACT_SOURCE_EXTENSION = "sol"
SCRIPT_DIR_SUFFIX = ".s.sol"
DEFAULT_TRACE_FILENAME = "run-latest.json"

# Anvil's default chain id
DEV_CHAIN_ID = 31337

# Nested creations with hex init code shorter than this are treated as proxy shims
PROXY_INIT_CODE_THRESHOLD = 500

# Chain id -> network label attached to published records
NETWORK_NAMES = {
    1: "mainnet",
    11155111: "sepolia",
    137: "polygon",
    80001: "mumbai",
    10: "optimism",
    42161: "arbitrum",
    8453: "base",
    31337: "localhost",
}

# Etherscan API V2: one endpoint for every chain, selected by chainid
ETHERSCAN_V2_BASE_URL = "https://api.etherscan.io/v2/api"

ETHERSCAN_CHAINS = {
    1: "mainnet",
    11155111: "sepolia",
    56: "bsc",
    137: "polygon",
    42161: "arbitrum",
    10: "optimism",
    8453: "base",
}

# Environment variables, primary name first
ENV_VARS = {
    "api_key": ("ABI_REGISTRY_API_KEY", "ABIREGISTRY_API_KEY"),
    "project_id": ("ABI_REGISTRY_PROJECT_ID", "ABIREGISTRY_PROJECT_ID"),
    "base_url": ("ABI_REGISTRY_BASE_URL", "ABIREGISTRY_BASE_URL"),
    "out_dir": ("ABI_REGISTRY_OUT_DIR", "ABIREGISTRY_OUT_DIR"),
}

ETHERSCAN_API_KEY_ENV = "ETHERSCAN_API_KEY"
