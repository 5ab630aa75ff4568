import contextlib
import logging
import signal

logger = logging.getLogger(__name__)


class TerminateRequested(Exception):
    """SIGTERM arrived while the shell was blocked reading a line."""


class SignalState:
    """Flags the signal handlers share with the read-eval loop.

    Handlers only flip these attributes (or raise at the read point); the loop
    polls them before each read and between chained segments.
    """

    def __init__(self):
        self.terminate_requested = False
        self.reading = False

    def handle_sigterm(self, signum, frame):
        self.terminate_requested = True
        if self.reading:
            self.reading = False
            raise TerminateRequested()

    @contextlib.contextmanager
    def reading_input(self):
        """Mark the stretch where the shell is blocked on input."""
        self.reading = True
        try:
            yield
        finally:
            self.reading = False


def init_signal_handlers(state):
    """Install the interpreter's dispositions.

    Returns the previous handlers so they can be put back on shutdown.
    """
    previous = {
        signal.SIGINT: signal.getsignal(signal.SIGINT),
        signal.SIGTERM: signal.getsignal(signal.SIGTERM),
        signal.SIGQUIT: signal.getsignal(signal.SIGQUIT),
    }
    # Ctrl+C at the prompt surfaces as KeyboardInterrupt
    signal.signal(signal.SIGINT, signal.default_int_handler)
    signal.signal(signal.SIGTERM, state.handle_sigterm)
    signal.signal(signal.SIGQUIT, signal.SIG_IGN)
    return previous


def restore_signal_handlers(previous):
    for signum, handler in previous.items():
        if handler is None:
            handler = signal.SIG_DFL
        signal.signal(signum, handler)


@contextlib.contextmanager
def foreground():
    """Ignore SIGINT in the shell while it waits on foreground children.

    The terminal delivers Ctrl+C to the whole process group, so the children
    die and report 128+SIGINT while the interpreter keeps running.
    """
    previous = signal.signal(signal.SIGINT, signal.SIG_IGN)
    if previous is None:
        previous = signal.SIG_DFL
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def reset_child_signals():
    """Default dispositions for a freshly forked child, before exec."""
    signal.signal(signal.SIGINT, signal.SIG_DFL)
    signal.signal(signal.SIGQUIT, signal.SIG_DFL)
    signal.signal(signal.SIGPIPE, signal.SIG_DFL)
