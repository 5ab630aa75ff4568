import logging
import os
import sys
from functools import partial

from solix import config
from solix.parser import Pipeline, compile_segment, expand_variables, split_chain
from solix.process import ExitOutcome, FinishedProcess
from solix.signals import foreground

logger = logging.getLogger(__name__)


def _fail(message):
    print(f"solix: {message}", file=sys.stderr)


def _open_input(path):
    return os.open(path, os.O_RDONLY)


def _open_output(path, append):
    flags = os.O_WRONLY | os.O_CREAT | (os.O_APPEND if append else os.O_TRUNC)
    return os.open(path, flags, config.REDIRECT_MODE)


def _should_run(operator, status):
    if operator == "&&":
        return status == 0
    if operator == "||":
        return status != 0
    return True


def execute_chain(tokens, ctx):
    """
    Run the segments of a line left to right.
    Each segment's run/skip decision looks at the operator right before it and
    the status of the last segment that actually ran.
    Returns: status of the last executed segment
    """
    status = ctx.last_status
    previous_op = None
    for link in split_chain(tokens):
        if not ctx.running or ctx.signals.terminate_requested:
            break
        if link.tokens and _should_run(previous_op, status):
            status = execute_segment(expand_variables(link.tokens, ctx.last_status), ctx)
            ctx.last_status = status
        elif link.tokens:
            logger.debug("skipped %r after %s (status %d)", link.tokens, previous_op, status)
        previous_op = link.operator
    return status


def execute_segment(tokens, ctx):
    segment = compile_segment(tokens)
    logger.debug("compiled %r -> %r", tokens, segment)
    if segment is None:
        return 0
    if isinstance(segment, Pipeline):
        return exec_pipeline(segment, ctx)
    return exec_simple(segment, ctx)


def run_builtin(builtin, argv, ctx):
    """Call a builtin handler, turning stray errors into a status."""
    try:
        return builtin(argv, ctx)
    except KeyboardInterrupt:
        print()
        return config.STATUS_INTERRUPTED
    except OSError as e:
        print(f"{argv[0]}: {e.strerror or e}", file=sys.stderr)
        return 1


def spawn_external(argv, ctx, stdin=None, stdout=None):
    """
    Start argv[0] found through PATH.
    Returns: a process handle; failures come back as an already finished one
    """
    name = argv[0]
    path = ctx.spawner.resolve(name)
    if path is None:
        _fail(f"{name}: command not found")
        return FinishedProcess(ExitOutcome.exited(config.STATUS_NOT_FOUND))
    try:
        return ctx.spawner.spawn(path, argv, stdin=stdin, stdout=stdout)
    except FileNotFoundError:
        _fail(f"{name}: command not found")
        return FinishedProcess(ExitOutcome.exited(config.STATUS_NOT_FOUND))
    except PermissionError as e:
        _fail(f"{name}: {e.strerror}")
        return FinishedProcess(ExitOutcome.exited(config.STATUS_NOT_FOUND))
    except OSError as e:
        _fail(f"{name}: {e.strerror}")
        return FinishedProcess(ExitOutcome.exited(1))


def exec_simple(cmd, ctx):
    """
    Run a single command.
    A builtin without redirections runs in this process; everything else is
    launched as an external program with the redirect files on fd 0/1.
    """
    if not cmd.argv:
        return 0

    if cmd.name in ctx.builtins and not cmd.has_redirects:
        return run_builtin(ctx.builtins.get(cmd.name), cmd.argv, ctx)

    opened_fds = []
    try:
        stdin = stdout = None
        try:
            if cmd.input_path is not None:
                stdin = _open_input(cmd.input_path)
                opened_fds.append(stdin)
            if cmd.output_path is not None:
                stdout = _open_output(cmd.output_path, cmd.append)
                opened_fds.append(stdout)
        except OSError as e:
            _fail(f"{e.filename}: {e.strerror}")
            return 1

        with foreground():
            proc = spawn_external(cmd.argv, ctx, stdin=stdin, stdout=stdout)
            outcome = proc.wait()
        logger.debug("%s finished: %r", cmd.argv, outcome)
        return outcome.status

    finally:
        for fd in opened_fds:
            os.close(fd)


def _launch(cmd, ctx, stdin, stdout, close):
    if cmd.name not in ctx.builtins:
        return spawn_external(cmd.argv, ctx, stdin=stdin, stdout=stdout)
    # a builtin stage still needs its own process to own a separate stdout
    try:
        return ctx.spawner.fork(
            partial(run_builtin, ctx.builtins.get(cmd.name), cmd.argv, ctx),
            cmd.argv,
            stdin=stdin,
            stdout=stdout,
            close=close
        )
    except OSError as e:
        _fail(f"fork: {e.strerror}")
        return FinishedProcess(ExitOutcome.exited(1))


def _start_stage(cmd, ctx, pipe, first):
    """
    Start one side of a pipeline.
    The left side may take an input redirect, the right side an output redirect.
    """
    read_end, write_end = pipe
    redirect = None
    try:
        if first and cmd.input_path is not None:
            redirect = _open_input(cmd.input_path)
        elif not first and cmd.output_path is not None:
            redirect = _open_output(cmd.output_path, cmd.append)
    except OSError as e:
        _fail(f"{e.filename}: {e.strerror}")
        return FinishedProcess(ExitOutcome.exited(1))

    if first:
        stdin, stdout = redirect, write_end
    else:
        stdin, stdout = read_end, redirect
    try:
        return _launch(cmd, ctx, stdin, stdout, close=pipe)
    finally:
        if redirect is not None:
            os.close(redirect)


def exec_pipeline(pipeline, ctx):
    """
    Run `left | right`.
    Both children are always reaped; the segment reports the right side's status.
    """
    try:
        pipe = os.pipe()
    except OSError as e:
        _fail(f"pipe: {e.strerror}")
        return 1

    with foreground():
        try:
            left = _start_stage(pipeline.left, ctx, pipe, first=True)
            right = _start_stage(pipeline.right, ctx, pipe, first=False)
        finally:
            for fd in pipe:
                os.close(fd)
        left_outcome = left.wait()
        right_outcome = right.wait()

    logger.debug("pipeline finished: left=%r right=%r", left_outcome, right_outcome)
    return right_outcome.status
