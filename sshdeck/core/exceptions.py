"""
Unified exception definitions
"""


class RemoteError(Exception):
    """Base exception class"""
    pass


class ConfigError(RemoteError):
    """Configuration error"""
    pass


class ConnectionError(RemoteError):
    """Connection error (auth rejected, unreachable, timeout, closed)"""
    pass


class NotConnectedError(ConnectionError):
    """Operation attempted without a live transport session"""
    pass


class HostKeyError(ConnectionError):
    """Server host key rejected by the verification policy"""
    pass


class ChannelError(RemoteError):
    """Channel open failed or channel closed unexpectedly"""
    pass


class OperationError(RemoteError):
    """Remote side rejected a file operation"""
    pass


class StreamError(RemoteError):
    """Read or write failure in the middle of a stream"""
    pass
