"""Commands that run inside the shell's own process.

Every handler takes (argv, ctx) and returns an exit status. Normal output goes
to stdout, problems go to stderr as `name: message`.
"""
import logging
import os
import re
import shutil
import stat
import sys
import time

import psutil

from solix import config
from solix.history import show_history

logger = logging.getLogger(__name__)


class Builtin:
    def __init__(self, name, description, func):
        self.name = name
        self.description = description
        self.func = func

    def __call__(self, argv, ctx):
        return self.func(argv, ctx)

    def __repr__(self):
        return f"Builtin({self.name!r})"


class BuiltinRegistry:
    """Name -> Builtin table, kept in registration order for `help`."""

    def __init__(self, commands=None):
        self.commands = dict(commands or {})

    def register(self, name, description):
        """Decorator form of add()."""
        def decorator(func):
            self.add(name, description, func)
            return func
        return decorator

    def add(self, name, description, func):
        self.commands[name] = Builtin(name, description, func)
        logger.debug("registered builtin %s", name)

    def get(self, name):
        return self.commands.get(name)

    def __contains__(self, name):
        return name in self.commands

    def list_commands(self):
        return list(self.commands.values())


BUILTINS = BuiltinRegistry()


def default_registry():
    """A fresh registry holding the standard builtins."""
    return BuiltinRegistry(BUILTINS.commands)


def _error(name, message):
    print(f"{name}: {message}", file=sys.stderr)


def _paint(text, color):
    if sys.stdout.isatty():
        return f"{color}{text}{config.RESET_COLOR}"
    return text


def _atoi(text):
    # C atoi: optional sign and leading digits, anything else is 0
    match = re.match(r"\s*([+-]?\d+)", text)
    return int(match.group(1)) if match else 0


@BUILTINS.register("cd", "Change directory")
def builtin_cd(argv, ctx):
    target = argv[1] if len(argv) > 1 else config.home_dir()
    previous = os.environ.get("PWD")
    try:
        os.chdir(target)
    except OSError as e:
        _error("cd", f"{target}: {e.strerror}")
        return 1
    if previous:
        os.environ["OLDPWD"] = previous
    os.environ["PWD"] = os.getcwd()
    return 0


@BUILTINS.register("pwd", "Print working directory")
def builtin_pwd(argv, ctx):
    try:
        print(os.getcwd())
    except OSError as e:
        _error("pwd", e.strerror)
        return 1
    return 0


@BUILTINS.register("help", "Show this help message")
def builtin_help(argv, ctx):
    print("Solix Shell - Built-in Commands:")
    print("================================")
    print()
    for cmd in ctx.builtins.list_commands():
        print(f"  {cmd.name:<12} - {cmd.description}")
    print()
    print("External programs can also be executed by typing their name.")
    print("Use Ctrl+C to interrupt running programs.")
    print("Use 'exit' to quit the shell.")
    return 0


@BUILTINS.register("exit", "Exit the shell")
def builtin_exit(argv, ctx):
    code = _atoi(argv[1]) if len(argv) > 1 else 0
    print("Goodbye from Solix!")
    ctx.running = False
    return code


@BUILTINS.register("clear", "Clear the screen")
def builtin_clear(argv, ctx):
    sys.stdout.write("\033[2J\033[H")
    sys.stdout.flush()
    return 0


@BUILTINS.register("echo", "Display text")
def builtin_echo(argv, ctx):
    print(" ".join(argv[1:]))
    return 0


@BUILTINS.register("ls", "List directory contents")
def builtin_ls(argv, ctx):
    explicit = len(argv) > 1
    path = argv[1] if explicit else "."
    try:
        names = sorted(os.listdir(path))
    except OSError as e:
        _error("ls", f"{path}: {e.strerror}")
        return 1

    if explicit:
        names = [".", ".."] + names
    shown = []
    for name in names:
        if name.startswith(".") and not explicit:
            continue
        try:
            mode = os.stat(os.path.join(path, name)).st_mode
        except OSError:
            shown.append(name)
            continue
        if stat.S_ISDIR(mode):
            shown.append(_paint(name + "/", config.INFO_COLOR))
        elif mode & stat.S_IXUSR:
            shown.append(_paint(name + "*", config.PROMPT_COLOR))
        else:
            shown.append(name)
    print("\t".join(shown))
    return 0


@BUILTINS.register("cat", "Display file contents")
def builtin_cat(argv, ctx):
    sys.stdout.flush()
    out = sys.stdout.buffer
    if len(argv) < 2:
        # no operand: copy stdin, so `cmd | cat` works
        shutil.copyfileobj(sys.stdin.buffer, out)
        out.flush()
        return 0

    status = 0
    for path in argv[1:]:
        try:
            with open(path, "rb") as f:
                shutil.copyfileobj(f, out)
        except OSError as e:
            out.flush()
            _error("cat", f"{path}: {e.strerror}")
            status = 1
    out.flush()
    return status


@BUILTINS.register("history", "Show command history")
def builtin_history(argv, ctx):
    show_history(ctx.history)
    return 0


def _read_uptime():
    """Seconds since boot, or None when no source is readable."""
    try:
        with open(config.UPTIME_SOURCE) as f:
            return float(f.read().split()[0])
    except (OSError, ValueError, IndexError) as e:
        logger.debug("cannot read %s: %s", config.UPTIME_SOURCE, e)
    try:
        return time.time() - psutil.boot_time()
    except (psutil.Error, OSError) as e:
        logger.debug("psutil boot time unavailable: %s", e)
    return None


@BUILTINS.register("uptime", "Show system uptime")
def builtin_uptime(argv, ctx):
    seconds = _read_uptime()
    if seconds is None:
        _error("uptime", "uptime information not available")
        return 1
    hours = int(seconds // 3600)
    minutes = int((seconds - hours * 3600) // 60)
    secs = int(seconds - hours * 3600 - minutes * 60)
    print(f"System uptime: {hours} hours, {minutes} minutes, {secs} seconds")
    return 0


@BUILTINS.register("which", "Locate a command in PATH")
def builtin_which(argv, ctx):
    if len(argv) < 2:
        _error("which", "missing operand")
        return 1
    status = 0
    for name in argv[1:]:
        found = shutil.which(name, path=config.search_path())
        if found:
            print(found)
        else:
            _error("which", f"{name}: not found")
            status = 1
    return status


@BUILTINS.register("export", "Set environment variables")
def builtin_export(argv, ctx):
    if len(argv) < 2:
        for name in sorted(os.environ):
            print(f"{name}={os.environ[name]}")
        return 0
    status = 0
    for entry in argv[1:]:
        name, sep, value = entry.partition("=")
        if not sep or not name:
            _error("export", f"{entry}: expected NAME=value")
            status = 1
            continue
        os.environ[name] = value
    return status


@BUILTINS.register("unset", "Remove environment variables")
def builtin_unset(argv, ctx):
    for name in argv[1:]:
        os.environ.pop(name, None)
    return 0
