"""Exceptions raised by respawn."""


class RespawnError(Exception):
    """Base class for respawn errors."""
    pass


class ConfigError(RespawnError):
    """Raised when a config file is missing, malformed or invalid."""
    pass


class ScriptNotFound(RespawnError):
    """Raised when a script name is not defined in the config."""

    def __init__(self, script: str):
        super().__init__(f"script '{script}' is not defined in the config")
        self.script = script


class DaemonAlreadyStarted(RespawnError, RuntimeError):
    """Raised when a Daemon is entered or iterated more than once."""
    pass
