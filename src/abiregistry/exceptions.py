"""Custom exception classes for abiregistry library."""


class AbiRegistryError(Exception):
    """Base exception for abiregistry errors."""

    pass


class MalformedTraceError(AbiRegistryError, ValueError):
    """Raised when a broadcast trace file does not have the expected structure."""

    def __init__(self, message: str, field: str = "", path=None):
        super().__init__(message)
        self.field = field
        self.path = path


class ArtifactNotFoundError(AbiRegistryError, FileNotFoundError):
    """Raised when no compiled artifact exists for a contract."""

    def __init__(self, message: str, contract_name: str = "", expected_path=None):
        super().__init__(message)
        self.contract_name = contract_name
        self.expected_path = expected_path


class InvalidArtifactError(AbiRegistryError, ValueError):
    """Raised when a compiled artifact exists but has no usable ABI."""

    def __init__(self, message: str, contract_name: str = "", path=None):
        super().__init__(message)
        self.contract_name = contract_name
        self.path = path


class ConfigError(AbiRegistryError, ValueError):
    """Raised when configuration is missing or has the wrong shape."""

    pass


class RegistryError(AbiRegistryError, RuntimeError):
    """Raised when the ABI registry API rejects a request or is unreachable."""

    pass


class ExplorerError(AbiRegistryError, RuntimeError):
    """Raised when an ABI cannot be fetched from the block explorer."""

    pass


class NothingToPublishError(AbiRegistryError):
    """Raised by the push workflow when resolution produced no records."""

    pass
