"""Tests for tokenizing, variable expansion and segment compilation."""

import pytest

from solix import config
from solix.parser import (
    ChainLink,
    Command,
    Pipeline,
    build_command,
    compile_segment,
    expand_variables,
    split_chain,
    tokenize,
)


class TestTokenize:
    """Word and operator scanning."""

    def test_double_quotes_keep_spaces(self):
        """A double-quoted word is one argument."""
        assert tokenize('echo "a b" c') == ["echo", "a b", "c"]

    def test_single_quotes_keep_spaces(self):
        assert tokenize("echo 'a  b'") == ["echo", "a  b"]

    def test_whitespace_runs_and_tabs(self):
        assert tokenize("  ls \t -l\t\t/tmp  ") == ["ls", "-l", "/tmp"]

    def test_blank_line(self):
        assert tokenize("") == []
        assert tokenize(" \t ") == []

    @pytest.mark.parametrize("line,expected", [
        ("a>b", ["a", ">", "b"]),
        ("a>>b", ["a", ">>", "b"]),
        ("a<b", ["a", "<", "b"]),
        ("a|b", ["a", "|", "b"]),
        ("a;b", ["a", ";", "b"]),
        ("a&&b", ["a", "&&", "b"]),
        ("a||b", ["a", "||", "b"]),
    ])
    def test_operators_split_words(self, line, expected):
        """Operators need no surrounding whitespace."""
        assert tokenize(line) == expected

    def test_two_char_operators_win(self):
        assert tokenize("x >> y || z && w") == ["x", ">>", "y", "||", "z", "&&", "w"]

    def test_lone_ampersand_is_a_word_character(self):
        assert tokenize("a & b") == ["a", "&", "b"]
        assert tokenize("a&b") == ["a&b"]

    def test_quoted_operator_characters_stay_in_word(self):
        assert tokenize('echo "a;b|c>d"') == ["echo", "a;b|c>d"]

    def test_backslash_escapes_next_character(self):
        assert tokenize(r"echo a\ b") == ["echo", "a b"]
        assert tokenize(r"echo \"hi\"") == ["echo", '"hi"']
        assert tokenize(r"echo a\;b") == ["echo", "a;b"]

    def test_trailing_backslash_is_literal(self):
        assert tokenize("echo a\\") == ["echo", "a\\"]

    def test_other_quote_is_literal_inside_quotes(self):
        assert tokenize('echo "it\'s"') == ["echo", "it's"]
        assert tokenize("echo 'say \"hi\"'") == ["echo", 'say "hi"']

    def test_adjacent_quoted_parts_join(self):
        assert tokenize("echo pre'mid'\"post\"") == ["echo", "premidpost"]

    def test_empty_quotes_give_empty_word(self):
        assert tokenize('echo ""') == ["echo", ""]

    def test_unterminated_double_quote_runs_to_end_of_line(self):
        """No diagnostic: the open quote swallows the rest of the line."""
        assert tokenize('echo "a b; c') == ["echo", "a b; c"]

    def test_unterminated_single_quote_runs_to_end_of_line(self):
        assert tokenize("echo 'x | y") == ["echo", "x | y"]

    def test_token_count_is_capped(self):
        line = " ".join(f"w{i}" for i in range(config.MAX_TOKENS + 20))
        tokens = tokenize(line)
        assert len(tokens) == config.MAX_TOKENS
        assert tokens[-1] == f"w{config.MAX_TOKENS - 1}"

    def test_explicit_limit(self):
        assert tokenize("a b c d", limit=2) == ["a", "b"]


class TestExpandVariables:
    """Whole-token `$?` and `$NAME` substitution."""

    def test_last_status(self):
        assert expand_variables(["echo", "$?"], 3) == ["echo", "3"]

    def test_environment_variable(self, monkeypatch):
        monkeypatch.setenv("GREETING", "hello")
        assert expand_variables(["echo", "$GREETING"], 0) == ["echo", "hello"]

    def test_unset_variable_is_empty(self, monkeypatch):
        monkeypatch.delenv("SOLIX_NOT_SET", raising=False)
        assert expand_variables(["echo", "$SOLIX_NOT_SET", "x"], 0) == ["echo", "", "x"]

    def test_no_partial_substitution(self, monkeypatch):
        monkeypatch.setenv("HOME", "/home/me")
        tokens = ["echo", "x$HOME", "a$?"]
        assert expand_variables(tokens, 1) == tokens

    def test_whole_token_after_dollar_is_the_name(self, monkeypatch):
        monkeypatch.setenv("HOME", "/home/me")
        monkeypatch.delenv("1", raising=False)
        monkeypatch.delenv("FOO-x", raising=False)
        assert expand_variables(["$1", "$HOME/bin", "$FOO-x", "$?!"], 0) == ["", "", "", ""]

    def test_non_identifier_name_looked_up(self, monkeypatch):
        monkeypatch.setenv("A-B", "dash")
        assert expand_variables(["$A-B"], 0) == ["dash"]

    def test_bare_dollar_untouched(self):
        assert expand_variables(["echo", "$"], 0) == ["echo", "$"]


class TestSplitChain:
    """Partitioning at `;`, `&&` and `||`."""

    def test_operators_recorded_with_segment(self):
        links = split_chain(["a", ";", "b", "x", "&&", "c", "||", "d"])
        assert links == [
            ChainLink(["a"], ";"),
            ChainLink(["b", "x"], "&&"),
            ChainLink(["c"], "||"),
            ChainLink(["d"], None),
        ]

    def test_trailing_operator_adds_no_segment(self):
        assert split_chain(["a", ";"]) == [ChainLink(["a"], ";")]

    def test_leading_operator_gives_empty_segment(self):
        assert split_chain([";", "a"]) == [ChainLink([], ";"), ChainLink(["a"], None)]

    def test_pipe_and_redirects_stay_inside_segment(self):
        assert split_chain(["a", "|", "b", ">", "f"]) == [ChainLink(["a", "|", "b", ">", "f"], None)]


class TestCompileSegment:
    """Redirect peeling and pipe detection."""

    def test_plain_command(self):
        assert compile_segment(["ls", "-l"]) == Command(argv=["ls", "-l"])

    def test_redirects_removed_from_argv(self):
        cmd = compile_segment(["sort", "<", "in.txt", "-r", ">", "out.txt"])
        assert cmd.argv == ["sort", "-r"]
        assert cmd.input_path == "in.txt"
        assert cmd.output_path == "out.txt"
        assert cmd.append is False

    def test_append_redirect(self):
        cmd = compile_segment(["echo", "x", ">>", "log"])
        assert cmd.output_path == "log"
        assert cmd.append is True

    def test_last_redirect_of_a_kind_wins(self):
        cmd = compile_segment(["echo", ">", "a", "<", "i1", ">>", "b", "<", "i2"])
        assert cmd.argv == ["echo"]
        assert cmd.output_path == "b"
        assert cmd.append is True
        assert cmd.input_path == "i2"

    def test_redirect_without_target_is_dropped(self):
        cmd = compile_segment(["echo", "hi", ">"])
        assert cmd.argv == ["echo", "hi"]
        assert not cmd.has_redirects

    def test_redirect_only_segment_has_no_argv(self):
        cmd = compile_segment([">", "f"])
        assert cmd.argv == []
        assert cmd.name is None

    def test_pipeline(self):
        seg = compile_segment(["cat", "<", "in", "|", "wc", "-l", ">", "out"])
        assert isinstance(seg, Pipeline)
        assert seg.left == Command(argv=["cat"], input_path="in")
        assert seg.right == Command(argv=["wc", "-l"], output_path="out")

    def test_second_pipe_is_a_literal_argument(self):
        seg = compile_segment(["a", "|", "b", "|", "c"])
        assert seg.left.argv == ["a"]
        assert seg.right.argv == ["b", "|", "c"]

    @pytest.mark.parametrize("tokens", [["|", "wc"], ["ls", "|"], ["|"], [">", "f", "|", "wc"]])
    def test_empty_pipe_side_is_a_no_op(self, tokens):
        assert compile_segment(tokens) is None

    def test_argv_is_capped(self):
        cmd = build_command(["w"] * 100)
        assert len(cmd.argv) == config.MAX_ARGS - 1
