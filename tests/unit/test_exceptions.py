"""Unit tests for custom exception classes."""

from pathlib import Path

import pytest

from abiregistry.exceptions import (
    AbiRegistryError,
    ArtifactNotFoundError,
    ConfigError,
    ExplorerError,
    InvalidArtifactError,
    MalformedTraceError,
    NothingToPublishError,
    RegistryError,
)


class TestExceptionCatching:
    """Test that exceptions can be caught as their base types."""

    def test_catch_malformed_trace_as_value_error(self):
        """Test that MalformedTraceError can be caught as ValueError."""
        with pytest.raises(ValueError):
            raise MalformedTraceError("test")

    def test_catch_artifact_not_found_as_file_not_found_error(self):
        """Test that ArtifactNotFoundError can be caught as FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            raise ArtifactNotFoundError("test")

    def test_catch_invalid_artifact_as_value_error(self):
        """Test that InvalidArtifactError can be caught as ValueError."""
        with pytest.raises(ValueError):
            raise InvalidArtifactError("test")

    def test_catch_config_error_as_value_error(self):
        """Test that ConfigError can be caught as ValueError."""
        with pytest.raises(ValueError):
            raise ConfigError("test")

    def test_catch_remote_errors_as_runtime_error(self):
        """Test that registry and explorer failures are RuntimeErrors."""
        for exc in (RegistryError("test"), ExplorerError("test")):
            with pytest.raises(RuntimeError):
                raise exc

    def test_catch_all_as_abiregistry_error(self):
        """Test that all custom exceptions can be caught as AbiRegistryError."""
        exceptions = [
            MalformedTraceError("test"),
            ArtifactNotFoundError("test"),
            InvalidArtifactError("test"),
            ConfigError("test"),
            RegistryError("test"),
            ExplorerError("test"),
            NothingToPublishError("test"),
        ]

        for exc in exceptions:
            with pytest.raises(AbiRegistryError):
                raise exc


class TestExceptionCreation:
    """Test creating exceptions with messages and context."""

    def test_exceptions_accept_string_messages(self):
        """Test that all exceptions render their message unchanged."""
        exceptions = [
            AbiRegistryError,
            MalformedTraceError,
            ArtifactNotFoundError,
            InvalidArtifactError,
            ConfigError,
            RegistryError,
            ExplorerError,
            NothingToPublishError,
        ]

        for exc_class in exceptions:
            exc = exc_class("test message")
            assert str(exc) == "test message"

    def test_malformed_trace_context(self):
        """Test that MalformedTraceError carries the field and file."""
        exc = MalformedTraceError("bad", field="chain", path=Path("run-latest.json"))

        assert exc.field == "chain"
        assert exc.path == Path("run-latest.json")

    def test_artifact_not_found_context(self):
        """Test that ArtifactNotFoundError carries the contract and expected path."""
        path = Path("out/Token.sol/Token.json")
        exc = ArtifactNotFoundError("missing", contract_name="Token", expected_path=path)

        assert exc.contract_name == "Token"
        assert exc.expected_path == path
        assert str(exc) == "missing"
