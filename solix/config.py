"""Solix shell settings.

Plain constants, plus a few helpers that read the process environment at call
time so that tests (and `export`) can change them while the shell runs.
"""
import os

# Parsing limits
MAX_TOKENS = 64
MAX_ARGS = 64

# History
HISTORY_SIZE = 200
HISTORY_NAME = ".solix_history"

# Environment
DEFAULT_HOME = "/root"
DEFAULT_PATH = "/bin:/sbin:/usr/bin:/usr/sbin"
SHELL_PATH = "/bin/shell"
PS1 = "solix> "

UPTIME_SOURCE = "/proc/uptime"
REDIRECT_MODE = 0o644

# Exit statuses
STATUS_NOT_FOUND = 127
STATUS_SIGNAL_BASE = 128
STATUS_INTERRUPTED = 130

PROMPT_COLOR = "\033[1;32m"
ERROR_COLOR = "\033[1;31m"
INFO_COLOR = "\033[1;34m"
RESET_COLOR = "\033[0m"


def home_dir():
    return os.environ.get("HOME") or DEFAULT_HOME


def search_path():
    return os.environ.get("PATH") or DEFAULT_PATH


def history_file():
    """Location of the persistent history file."""
    override = os.environ.get("SOLIX_HISTFILE")
    if override:
        return override
    return os.path.join(home_dir(), HISTORY_NAME)


def history_size():
    """Ring capacity, SOLIX_HISTSIZE wins when it is a positive integer."""
    raw = os.environ.get("SOLIX_HISTSIZE", "")
    if raw.isdigit() and int(raw) > 0:
        return int(raw)
    return HISTORY_SIZE


def prepare_environment():
    """Variables every Solix session exports to its children."""
    os.environ["SHELL"] = SHELL_PATH
    os.environ["PS1"] = PS1
    if not os.environ.get("PATH"):
        os.environ["PATH"] = DEFAULT_PATH
