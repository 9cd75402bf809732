# Custom exceptions for headwatch

class HeadwatchError(Exception):
    """Base exception for all application-specific errors."""
    pass

class InspectionError(HeadwatchError):
    """Raised when a repository query fails for a directory."""
    def __init__(self, directory: str, message: str):
        self.directory = directory
        self.message = message
        super().__init__(f"Failed to inspect {directory}: {message}")

class WatchError(HeadwatchError):
    """Raised when a filesystem watch cannot be scheduled."""
    def __init__(self, path: str, message: str):
        self.path = path
        self.message = message
        super().__init__(f"Cannot watch {path}: {message}")

class GitNotFoundError(HeadwatchError):
    """Raised when the git executable is not on PATH."""
    def __init__(self, executable: str = "git"):
        self.executable = executable
        super().__init__(f"'{executable}' not found in PATH. Aborting setup.")

class ConfigError(HeadwatchError):
    """Raised for configuration-related problems."""
    pass
