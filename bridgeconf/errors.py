"""
Custom exception hierarchy for bridgeconf.
"""

class BridgeConfError(Exception):
    """Base exception for all bridgeconf errors."""
    pass

class InvalidRequestError(BridgeConfError):
    """A caller asked for something the store refuses to do."""
    pass

class PluginNotFoundError(InvalidRequestError):
    pass

class BackupError(BridgeConfError):
    pass

class BackupNotFoundError(BackupError):
    pass

class ConfigStoreError(BridgeConfError):
    pass

class ConfigReadError(ConfigStoreError):
    pass

class ConfigWriteError(ConfigStoreError):
    pass
