"""
Host string parser

Handles parsing of host strings in various formats:
- hostname
- user@hostname
- user@hostname:port
"""
from typing import Optional, Tuple


def parse_host_string(
    host: str,
    user: Optional[str] = None,
    port: Optional[int] = None,
) -> Tuple[str, Optional[str], Optional[int]]:
    """
    Parse host string into components.

    Explicit ``user``/``port`` arguments win over values in the string.

    Returns:
        Tuple of (hostname, user, port)

    Examples:
        parse_host_string("server") -> ("server", None, None)
        parse_host_string("user@server") -> ("server", "user", None)
        parse_host_string("user@server:2222") -> ("server", "user", 2222)
        parse_host_string("user@server:2222", port=3333) -> ("server", "user", 3333)
    """
    parsed_user = user
    parsed_port = port
    host_part = host

    if "@" in host:
        string_user, host_part = host.split("@", 1)
        parsed_user = user or string_user or None

    # One colon means host:port; more than one is a bare IPv6 address
    if host_part.count(":") == 1:
        name, _, port_text = host_part.partition(":")
        if port_text.isdigit():
            host_part = name
            parsed_port = port or int(port_text)

    return host_part, parsed_user, parsed_port
