import logging
import os
from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional

from solix import config

logger = logging.getLogger(__name__)

WHITESPACE = " \t"
TWO_CHAR_OPERATORS = ("&&", "||", ">>")
ONE_CHAR_OPERATORS = (";", "|", ">", "<")
OPERATORS = (";", "|", ">", ">>", "<", "&&", "||")
CHAIN_OPERATORS = (";", "&&", "||")
REDIRECTS = (">", ">>", "<")


@dataclass
class Command:
    argv: List[str] = field(default_factory=list)
    input_path: Optional[str] = None
    output_path: Optional[str] = None
    append: bool = False

    @property
    def name(self):
        return self.argv[0] if self.argv else None

    @property
    def has_redirects(self):
        return self.input_path is not None or self.output_path is not None


@dataclass
class Pipeline:
    left: Command
    right: Command


class ChainLink(NamedTuple):
    """Tokens of one segment and the chain operator that followed it."""

    tokens: List[str]
    operator: Optional[str]


def _at_operator(line, i):
    # a lone '&' is an ordinary character, only '&&' splits words
    return line[i] in ONE_CHAR_OPERATORS or line.startswith("&&", i)


def _scan_word(line, i):
    """
    Read one word starting at line[i].
    Returns: (word, index after the word)
    """
    chars = []
    in_double = in_single = False
    n = len(line)
    while i < n:
        ch = line[i]
        if ch == "\\" and i + 1 < n:
            chars.append(line[i + 1])
            i += 2
            continue
        if ch == '"' and not in_single:
            in_double = not in_double
            i += 1
            continue
        if ch == "'" and not in_double:
            in_single = not in_single
            i += 1
            continue
        if not (in_double or in_single) and (ch in WHITESPACE or _at_operator(line, i)):
            break
        chars.append(ch)
        i += 1
    # an unterminated quote simply runs to end of line
    return "".join(chars), i


def tokenize(line, limit=None):
    """
    Split a command line into words and operator tokens.
    At most `limit` tokens are kept (MAX_TOKENS by default), the rest is dropped.
    """
    limit = limit or config.MAX_TOKENS
    tokens = []
    i, n = 0, len(line)
    while i < n and len(tokens) < limit:
        ch = line[i]
        if ch in WHITESPACE:
            i += 1
        elif line[i:i + 2] in TWO_CHAR_OPERATORS:
            tokens.append(line[i:i + 2])
            i += 2
        elif ch in ONE_CHAR_OPERATORS:
            tokens.append(ch)
            i += 1
        else:
            word, i = _scan_word(line, i)
            tokens.append(word)
    return tokens


def expand_variables(tokens, last_status):
    """
    Replace whole tokens `$?` and `$NAME`.
    Everything after the `$` is the variable name, so `$HOME/bin` looks up
    "HOME/bin". Unset variables expand to an empty string; a `$` inside a
    word is never touched.
    """
    expanded = []
    for tok in tokens:
        if tok == "$?":
            expanded.append(str(last_status))
        elif tok.startswith("$") and len(tok) > 1:
            expanded.append(os.environ.get(tok[1:], ""))
        else:
            expanded.append(tok)
    return expanded


def split_chain(tokens):
    """Cut the token list at `;`, `&&` and `||`."""
    links, current = [], []
    for tok in tokens:
        if tok in CHAIN_OPERATORS:
            links.append(ChainLink(current, tok))
            current = []
        else:
            current.append(tok)
    if current:
        links.append(ChainLink(current, None))
    return links


def build_command(tokens):
    """
    Peel redirections off a token range.
    Returns: Command with the remaining words as argv
    """
    cmd = Command()
    i = 0
    while i < len(tokens):
        tok = tokens[i]
        if tok in REDIRECTS:
            if i + 1 < len(tokens):
                target = tokens[i + 1]
                if tok == "<":
                    cmd.input_path = target
                else:
                    cmd.output_path = target
                    cmd.append = tok == ">>"
            i += 2
            continue
        if len(cmd.argv) < config.MAX_ARGS - 1:
            cmd.argv.append(tok)
        i += 1
    return cmd


def compile_segment(tokens):
    """
    Compile one chain segment.
    Returns: Command, Pipeline, or None when a pipe side has no words
    """
    if "|" not in tokens:
        return build_command(tokens)

    split = tokens.index("|")
    # anything after the first pipe, a second '|' included, belongs to the right side
    left = build_command(tokens[:split])
    right = build_command(tokens[split + 1:])
    if not left.argv or not right.argv:
        logger.debug("empty pipeline side in %r", tokens)
        return None
    return Pipeline(left, right)
