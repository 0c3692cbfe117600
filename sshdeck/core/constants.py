"""
Project constants definitions
"""

# ============================================================
# Connection
# ============================================================

DEFAULT_SSH_PORT = 22
DEFAULT_CONNECT_TIMEOUT = 30.0
DEFAULT_HOST_KEY_POLICY = "strict"
HOST_KEY_POLICIES = ("strict", "warn", "accept")

# ============================================================
# Shell Channel
# ============================================================

DEFAULT_TERM = "xterm"
DEFAULT_TERM_WIDTH = 80
DEFAULT_TERM_HEIGHT = 24
DEFAULT_SHELL_OPEN_TIMEOUT = 15.0
DEFAULT_SHELL_READ_SIZE = 1024
DEFAULT_SHELL_POLL_INTERVAL = 0.5
LINE_TERMINATOR = "\n"

# ============================================================
# File Transfer
# ============================================================

DEFAULT_CHUNK_SIZE = 32 * 1024
FALLBACK_UPLOAD_NAME = "upload.tmp"
SELF_ENTRY = "."
PARENT_ENTRY = ".."

# ============================================================
# Worker Pool
# ============================================================

DEFAULT_MAX_WORKERS = 4
WORKER_THREAD_PREFIX = "sshdeck-io"

# ============================================================
# Configuration
# ============================================================

ENV_PREFIX = "SSHDECK_"
DEFAULT_CONFIG_PATH = "~/.config/sshdeck/config.toml"
