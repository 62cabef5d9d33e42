# leakmon_cli/exceptions.py
from typing import Optional


class LeakmonBaseError(Exception):
    """Base class for all custom errors in the leakmon-cli application."""
    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.original_error = original_error
        if original_error:
            self.__cause__ = original_error

# --- Configuration Errors ---
class ConfigError(LeakmonBaseError):
    """Errors related to application configuration loading or validation."""
    pass

class ConfigValidationError(ConfigError):
    """Raised specifically when configuration validation fails."""

    def __init__(self, message: str, config_path: Optional[str] = None, original_error: Optional[Exception] = None):
        self.config_path = config_path
        super().__init__(message, original_error=original_error)

# --- Setup Errors ---
class SetupError(LeakmonBaseError):
    """Errors when required external tools (git) or credentials are missing."""
    pass

# --- Discovery Errors ---
class DiscoveryError(LeakmonBaseError):
    """Errors while enumerating candidate repositories or gists from the API."""
    def __init__(self, message: str, endpoint: Optional[str] = None, status_code: Optional[int] = None,
                 original_error: Optional[Exception] = None):
        self.endpoint = endpoint
        self.status_code = status_code
        if status_code is not None:
            message = f"{message} (Status: {status_code})"
        super().__init__(message, original_error=original_error)

# --- Scan Process Errors ---
class ScanError(LeakmonBaseError):
    """Base class for errors while processing a single scan target."""
    pass

class CloneError(ScanError):
    """Errors specifically during the git clone process."""
    def __init__(self, repo_url: str, message: str, original_error: Optional[Exception] = None, exit_code: Optional[int] = None):
        self.repo_url = repo_url
        self.specific_message = message
        self.exit_code = exit_code
        exit_code_str = str(exit_code) if exit_code is not None else "unknown"
        super().__init__(f"CloneError for '{repo_url}' (Exit: {exit_code_str}): {message}",
                         original_error=original_error)

class PersistenceError(ScanError):
    """Errors while appending a finding to the durable findings store."""
    def __init__(self, path: str, message: str, original_error: Optional[Exception] = None):
        self.path = path
        super().__init__(f"PersistenceError for '{path}': {message}", original_error=original_error)

# --- Signature Errors ---
class SignatureError(LeakmonBaseError):
    """Raised when a signature definition cannot be compiled."""
    def __init__(self, name: str, message: str, original_error: Optional[Exception] = None):
        self.name = name
        super().__init__(f"Invalid signature '{name}': {message}", original_error=original_error)

# --- Notification Errors ---
class NotificationError(LeakmonBaseError):
    """Errors during the notification sending process."""
    def __init__(self, service: str, message: str, status_code: Optional[int] = None, response_body: Optional[str] = None, original_error: Optional[Exception] = None):
        self.service = service
        self.status_code = status_code
        self.response_body = response_body

        error_msg = f"Notification error for {service}"
        if status_code is not None:
            error_msg += f" (Status: {status_code})"
        error_msg += f": {message}"

        if response_body:
            snippet = response_body[:200] + ('...' if len(response_body) > 200 else '')
            error_msg += f" - Response: {snippet}"

        super().__init__(error_msg, original_error=original_error)
