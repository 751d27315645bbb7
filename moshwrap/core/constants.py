"""
Project constants definitions
"""

# ============================================================
# SSH
# ============================================================

DEFAULT_SSH_PORT = 22
DEFAULT_SSH_TIMEOUT = 5.0
DEFAULT_KNOWN_HOSTS = "~/.ssh/known_hosts"
AGENT_SOCKET_ENV = "SSH_AUTH_SOCK"

# ============================================================
# Mosh
# ============================================================

DEFAULT_MOSH_PORTS = "60000:60050"
DEFAULT_SERVER_PROGRAM = "mosh-server"
DEFAULT_CLIENT_PROGRAM = "mosh-client"
MOSH_KEY_ENV = "MOSH_KEY"
CONNECT_MARKER = b"MOSH CONNECT"

# ============================================================
# Terminal
# ============================================================

DEFAULT_TERM = "xterm"
DEFAULT_TERM_WIDTH = 80
DEFAULT_TERM_HEIGHT = 25

# ============================================================
# Proxy
# ============================================================

PROXY_ENV_VARS = ("ALL_PROXY", "all_proxy")
NO_PROXY_ENV_VARS = ("NO_PROXY", "no_proxy")
DEFAULT_SOCKS_PORT = 1080
DEFAULT_HTTP_PROXY_PORT = 80

# ============================================================
# Configuration
# ============================================================

DEFAULT_CONFIG_PATH = "~/.config/moshwrap/config.toml"
