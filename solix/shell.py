import argparse
import logging
import os
import socket
import sys

from solix import config
from solix.context import ShellContext
from solix.executor import execute_chain
from solix.history import init_readline, load_history, save_history
from solix.parser import tokenize
from solix.signals import TerminateRequested, init_signal_handlers, restore_signal_handlers

logger = logging.getLogger(__name__)

BANNER = """\
╔══════════════════════════════════════════════════════════════╗
║                     Solix Custom Shell                       ║
║                                                              ║
║  Built-in commands: cd, pwd, ls, cat, echo, help, exit       ║
║  Type 'help' for more information                            ║
╚══════════════════════════════════════════════════════════════╝"""


def setup_logging(verbose=False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr
    )


def short_cwd(cwd=None):
    """The last two components of the working directory, "/" at the root."""
    if cwd is None:
        try:
            cwd = os.getcwd()
        except OSError:
            return "?"
    parts = [p for p in cwd.split(os.sep) if p]
    if not parts:
        return os.sep
    return os.path.join(*parts[-2:])


def prompt():
    """Generate shell prompt"""
    user = os.getenv("USER") or os.getenv("USERNAME") or "root"
    host = socket.gethostname() or "solix"
    return f"{user}@{host}:{short_cwd()}$ "


def print_banner():
    print(f"{config.INFO_COLOR}{BANNER}{config.RESET_COLOR}\n")


def run_line(line, ctx):
    """Tokenize and execute one input line. Returns its final status."""
    tokens = tokenize(line)
    logger.debug("tokens: %r", tokens)
    return execute_chain(tokens, ctx)


def main_loop(ctx, read=input):
    """
    Read-eval loop. Stops on end of input, `exit` or SIGTERM.
    Returns: the last status, which becomes the shell's exit code
    """
    while ctx.running and not ctx.signals.terminate_requested:
        try:
            with ctx.signals.reading_input():
                line = read(prompt())
            line = line.rstrip("\n")
            if not line:
                continue
            ctx.history.add(line)
            run_line(line, ctx)
        except EOFError:
            print()
            break
        except TerminateRequested:
            print()
            break
        except KeyboardInterrupt:
            # Ctrl+C abandons the line, not the shell
            print()
            ctx.last_status = config.STATUS_INTERRUPTED

    print("Exiting Solix shell...")
    return ctx.last_status


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="solix", description="Solix interactive shell")
    parser.add_argument("-c", dest="command", metavar="COMMAND",
                        help="run one command line and exit with its status")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="log interpreter internals to stderr")
    parser.add_argument("--no-history", action="store_true",
                        help="neither load nor save the history file")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    setup_logging(args.verbose)
    config.prepare_environment()

    ctx = ShellContext()
    history_path = None if args.no_history else config.history_file()
    previous_handlers = init_signal_handlers(ctx.signals)
    try:
        if history_path:
            load_history(ctx.history, history_path)
        if args.command is not None:
            ctx.history.add(args.command)
            status = run_line(args.command, ctx)
        else:
            init_readline(ctx.history)
            if sys.stdin.isatty():
                print_banner()
            status = main_loop(ctx)
    finally:
        if history_path:
            save_history(ctx.history, history_path)
        restore_signal_handlers(previous_handlers)
    return status


if __name__ == "__main__":
    sys.exit(main())
