"""
Core utility functions
"""
import paramiko

from .constants import HOST_KEY_POLICIES
from .exceptions import ConfigError


# ============================================================
# Remote Path Composition
# ============================================================

def join_remote_path(parent: str, name: str) -> str:
    """
    Compose a child path the way the server listing is browsed.

    Appends ``name`` directly when ``parent`` already ends with ``/``,
    otherwise inserts a single separator. No other normalization.

    Examples:
        join_remote_path("/home/u", "a.txt") -> "/home/u/a.txt"
        join_remote_path("/", "etc") -> "/etc"
        join_remote_path(".", "sub") -> "./sub"
    """
    if parent.endswith("/"):
        return f"{parent}{name}"
    return f"{parent}/{name}"


def replace_last_segment(path: str, new_name: str) -> str:
    """
    Replace the final segment of ``path``, keeping the parent directory.

    Examples:
        replace_last_segment("/home/u/old.txt", "new.txt") -> "/home/u/new.txt"
        replace_last_segment("/old.txt", "new.txt") -> "/new.txt"
        replace_last_segment("old.txt", "new.txt") -> "new.txt"
    """
    parent, sep, _ = path.rpartition("/")
    if not sep:
        return new_name
    return f"{parent}/{new_name}"


def last_segment(path: str) -> str:
    """Final path segment, ignoring a trailing slash"""
    return path.rstrip("/").rpartition("/")[2]


# ============================================================
# Host Key Verification
# ============================================================

def build_host_key_policy(name: str) -> paramiko.MissingHostKeyPolicy:
    """
    Map a policy name to a paramiko missing-host-key policy.

    - strict: reject hosts missing from known_hosts
    - warn: accept but log a warning
    - accept: accept and remember for this client

    Raises:
        ConfigError: If the name is unknown
    """
    if name == "strict":
        return paramiko.RejectPolicy()
    if name == "warn":
        return paramiko.WarningPolicy()
    if name == "accept":
        return paramiko.AutoAddPolicy()
    raise ConfigError(
        f"Unknown host key policy: {name!r} (expected one of {', '.join(HOST_KEY_POLICIES)})"
    )
