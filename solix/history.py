import logging
import sys

from solix import config

logger = logging.getLogger(__name__)

try:
    import readline
    HAS_READLINE = True
except ImportError:
    HAS_READLINE = False
    logger.debug("readline not available - line editing disabled")


class HistoryBuffer:
    """
    Fixed-capacity ring of the most recent command lines.
    `count` keeps growing; once it passes `capacity` the oldest slot is reused.
    """

    def __init__(self, capacity=None):
        self.capacity = capacity or config.history_size()
        self._slots = [None] * self.capacity
        self.count = 0

    def __len__(self):
        return min(self.count, self.capacity)

    def add(self, line):
        if not line:
            return
        self._slots[self.count % self.capacity] = line
        self.count += 1

    def entries(self):
        """(sequence number, line) pairs, oldest first, numbered from 1."""
        start = max(0, self.count - self.capacity)
        return [(i + 1, self._slots[i % self.capacity]) for i in range(start, self.count)]

    def lines(self):
        return [line for _, line in self.entries()]

    def load(self, path):
        """Read one command per line, skipping blanks. Returns lines read."""
        loaded = 0
        with open(path, encoding="utf-8", errors="replace") as f:
            for raw in f:
                line = raw.rstrip("\n")
                if line:
                    self.add(line)
                    loaded += 1
        return loaded

    def save(self, path):
        """Append the current window (at most `capacity` lines) to path."""
        lines = self.lines()
        with open(path, "a", encoding="utf-8") as f:
            for line in lines:
                f.write(line + "\n")
        return len(lines)


def init_readline(history):
    """Configure readline like a Linux terminal and seed it with history."""
    if not HAS_READLINE or not sys.stdin.isatty():
        return
    try:
        readline.parse_and_bind("\\e[A: previous-history")
        readline.parse_and_bind("\\e[B: next-history")
        readline.parse_and_bind("\\e[1;5D: backward-word")
        readline.parse_and_bind("\\e[1;5C: forward-word")
        readline.parse_and_bind("set editing-mode emacs")
        for line in history.lines():
            readline.add_history(line)
    except Exception as e:
        print(f"solix: readline: {e}", file=sys.stderr)


def load_history(history, path=None):
    path = path or config.history_file()
    try:
        loaded = history.load(path)
    except FileNotFoundError:
        return 0
    except OSError as e:
        print(f"solix: history: {path}: {e.strerror}", file=sys.stderr)
        return 0
    logger.debug("loaded %d history lines from %s", loaded, path)
    return loaded


def save_history(history, path=None):
    path = path or config.history_file()
    try:
        saved = history.save(path)
    except OSError as e:
        print(f"solix: history: {path}: {e.strerror}", file=sys.stderr)
        return 0
    logger.debug("appended %d history lines to %s", saved, path)
    return saved


def show_history(history):
    for seq, line in history.entries():
        print(f"{seq:3d}  {line}")
