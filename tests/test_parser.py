"""
httpdconf Parser Tests
Tokenizer, tree builder and variable expansion, driven from in-memory text.
"""

import os
import sys
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from httpdconf.core.exceptions import MalformedLineError, MismatchedCloseError, UnclosedBlockError
from httpdconf.core.models import LineKind, SourceLine
from httpdconf.core.normalizer import Normalizer, fix_boolean, mangle_name
from httpdconf.core.variable_expander import VariableExpander
from httpdconf.parsers.apache_parser import ApacheParser, classify_line, split_tokens, strip_comment


def parse_text(text, ignore_case=False, fix_booleans=False, expand_vars=False, raise_error=True):
    """Parse a config given as a string."""
    lines = [
        SourceLine(line, "test.conf", number)
        for number, line in enumerate(text.splitlines(), start=1)
    ]
    parser = ApacheParser(
        normalizer=Normalizer(ignore_case, fix_booleans),
        expand_vars=expand_vars,
        raise_error=raise_error,
    )
    return parser.parse(lines)


class TestTokenizer:
    """Tests for line classification and token splitting."""

    def test_directive(self):
        line = classify_line("ServerName www.example.com")
        assert line.kind == LineKind.DIRECTIVE
        assert line.name == "ServerName"
        assert line.raw_value == "www.example.com"

    def test_directive_without_value(self):
        line = classify_line("  ClearModuleList")
        assert line.kind == LineKind.DIRECTIVE
        assert line.name == "ClearModuleList"
        assert line.raw_value == ""

    def test_blank_and_comment(self):
        assert classify_line("").kind == LineKind.BLANK
        assert classify_line("    ").kind == LineKind.BLANK
        assert classify_line("# just a comment").kind == LineKind.BLANK
        assert classify_line("   # indented comment").kind == LineKind.BLANK

    def test_trailing_comment_keeps_directive(self):
        line = classify_line("Listen 80   # default port")
        assert line.kind == LineKind.DIRECTIVE
        assert line.raw_value == "80"

    def test_hash_inside_quotes_is_not_a_comment(self):
        assert strip_comment('Color "#ff0000" # red') == 'Color "#ff0000"'
        line = classify_line('Foo "a # b" c')
        assert split_tokens(line.raw_value) == ["a # b", "c"]

    def test_block_close(self):
        line = classify_line("  </VirtualHost>  ")
        assert line.kind == LineKind.BLOCK_CLOSE
        assert line.tag == "VirtualHost"

    def test_block_open_quoted_param(self):
        line = classify_line('<VirtualHost "1.2.3.4">')
        assert line.kind == LineKind.BLOCK_OPEN
        assert line.tag == "VirtualHost"
        assert line.param == "1.2.3.4"

    def test_block_open_bare_param(self):
        line = classify_line("<Directory />")
        assert line.kind == LineKind.BLOCK_OPEN
        assert line.tag == "Directory"
        assert line.param == "/"

    def test_block_open_without_param(self):
        line = classify_line("    <Limit>")
        assert line.kind == LineKind.BLOCK_OPEN
        assert line.tag == "Limit"
        assert line.param == ""

    def test_block_open_keeps_whole_param(self):
        line = classify_line("<VirtualHost 1.2.3.4:80 5.6.7.8:80>")
        assert line.param == "1.2.3.4:80 5.6.7.8:80"

    def test_block_open_single_quoted_param(self):
        assert classify_line("<Files '*.cgi'>").param == "*.cgi"

    def test_open_and_close_on_one_line_is_malformed(self):
        # Each line is a single open, close or directive
        with pytest.raises(MalformedLineError):
            classify_line("<Foo></Bar>")
        with pytest.raises(MalformedLineError):
            classify_line("<Foo></Foo>")

    def test_malformed_line(self):
        with pytest.raises(MalformedLineError):
            classify_line("= not a directive")

    def test_split_quoted_and_bare(self):
        assert split_tokens('"a b" c') == ["a b", "c"]

    def test_split_on_commas(self):
        assert split_tokens("a,b  c") == ["a", "b", "c"]

    def test_split_empty_and_empty_quotes(self):
        assert split_tokens("") == []
        assert split_tokens('"" x') == ["", "x"]

    def test_tokens_stay_strings(self):
        assert split_tokens("1 2.5 On") == ["1", "2.5", "On"]


class TestTreeBuilder:
    """Tests for tree construction and nesting checks."""

    def test_repeated_directives_accumulate_rows(self):
        result = parse_text(
            "ErrorDocument 404 /e/404.cgi\n"
            "ErrorDocument 500 /e/500.cgi\n"
        )
        assert result.root.directives["ErrorDocument"] == (
            ("404", "/e/404.cgi"),
            ("500", "/e/500.cgi"),
        )

    def test_multi_token_row(self):
        result = parse_text('Foo "a b" c')
        assert result.root.directives["Foo"] == (("a b", "c"),)

    def test_repeated_blocks_grouped_by_param(self):
        result = parse_text(
            '<VirtualHost "1.2.3.4">\n'
            '    ServerName "a"\n'
            '</VirtualHost>\n'
            '<VirtualHost "1.2.3.4">\n'
            '    ServerName "b"\n'
            '</VirtualHost>\n'
            '<VirtualHost "5.6.7.8">\n'
            '    ServerName "c"\n'
            '</VirtualHost>\n'
        )
        group = result.root.blocks["VirtualHost"]
        assert list(group.keys()) == ["1.2.3.4", "5.6.7.8"]
        assert [node.directives["ServerName"][0][0] for node in group["1.2.3.4"]] == ["a", "b"]

    def test_nested_blocks(self):
        result = parse_text(
            "<Location /upload>\n"
            "    <Limit>\n"
            "        require user bob\n"
            "    </Limit>\n"
            "</Location>\n"
            "After 1\n"
        )
        location = result.root.blocks["Location"]["/upload"][0]
        limit = location.blocks["Limit"][""][0]
        assert limit.directives["require"] == (("user", "bob"),)
        assert result.root.directives["After"] == (("1",),)

    def test_no_inheritance(self):
        result = parse_text("ServerAdmin root\n<Foo x>\n    Bar 1\n</Foo>\n")
        child = result.root.blocks["Foo"]["x"][0]
        assert "ServerAdmin" not in child.directives

    def test_tree_is_read_only(self):
        result = parse_text("Foo 1\n<Bar>\n</Bar>\n")
        with pytest.raises(TypeError):
            result.root.directives["Foo"] = ()
        with pytest.raises(TypeError):
            result.root.blocks["Bar"][""] = ()

    def test_mismatched_close(self):
        with pytest.raises(MismatchedCloseError) as exc:
            parse_text("<Foo>\n</Bar>\n")
        assert exc.value.line_number == 2
        assert exc.value.file == "test.conf"

    def test_close_without_open(self):
        with pytest.raises(MismatchedCloseError):
            parse_text("Foo 1\n</Foo>\n")

    def test_unclosed_block_names_outermost_tag(self):
        with pytest.raises(UnclosedBlockError) as exc:
            parse_text("<Outer>\n    <Inner>\n")
        assert exc.value.tag == "Outer"
        assert exc.value.line_number == 1

    def test_malformed_line_carries_position(self):
        with pytest.raises(MalformedLineError) as exc:
            parse_text("Foo 1\n\n=oops\n")
        assert exc.value.line_number == 3
        assert "test.conf line 3" in str(exc.value)

    def test_case_sensitive_close_by_default(self):
        with pytest.raises(MismatchedCloseError):
            parse_text("<VirtualHost x>\n</virtualhost>\n")

    def test_ignore_case_normalizes_names(self):
        result = parse_text(
            "<VirtualHost x>\n    ServerName a\n</virtualhost>\n",
            ignore_case=True,
        )
        assert result.root.blocks["virtualhost"]["x"][0].directives["servername"] == (("a",),)

    def test_recoverable_errors_become_diagnostics(self):
        result = parse_text(
            "ServerName ok\n<Foo>\n    Bar 1\n</Baz>\n= bad\n",
            raise_error=False,
        )
        assert [d.kind for d in result.diagnostics] == [
            "mismatched_close", "malformed_line", "unclosed_block"
        ]
        assert [d.line_number for d in result.diagnostics] == [4, 5, 2]
        assert result.root.directives["ServerName"] == (("ok",),)
        assert result.root.blocks["Foo"][""][0].directives["Bar"] == (("1",),)

    def test_boolean_fix(self):
        result = parse_text("Supported Yes\nDeprecated no\nOther maybe\nFlag ON off\n", fix_booleans=True)
        assert result.root.directives["Supported"] == (("1",),)
        assert result.root.directives["Deprecated"] == (("0",),)
        assert result.root.directives["Other"] == (("maybe",),)
        # only the first token is rewritten
        assert result.root.directives["Flag"] == (("1", "off"),)

    def test_booleans_untouched_by_default(self):
        result = parse_text("Supported Yes\n")
        assert result.root.directives["Supported"] == (("Yes",),)


class TestVariableExpansion:
    """Tests for $name / ${name} substitution."""

    def test_expands_root_variable(self):
        result = parse_text('Base "/x"\nHome "$Base/y"\n', expand_vars=True)
        assert result.root.directives["Home"] == (("/x/y",),)

    def test_braced_form(self):
        result = parse_text('Base "/x"\nHome "${Base}y"\n', expand_vars=True)
        assert result.root.directives["Home"] == (("/xy",),)

    def test_undefined_variable_is_empty(self):
        result = parse_text('Home "$Nope/y"\n', expand_vars=True)
        assert result.root.directives["Home"] == (("/y",),)

    def test_uses_most_recent_row(self):
        result = parse_text("Base a\nBase b\nUse $Base\n", expand_vars=True)
        assert result.root.directives["Use"] == (("b",),)

    def test_only_root_scope_is_visible(self):
        result = parse_text(
            "Top t\n<Foo>\n    Inner i\n    Use $Inner-$Top\n</Foo>\n",
            expand_vars=True,
        )
        inner = result.root.blocks["Foo"][""][0]
        assert inner.directives["Use"] == (("-t",),)

    def test_single_pass(self):
        result = parse_text('C boom\nDollar "$"\nX "${Dollar}C"\n', expand_vars=True)
        assert result.root.directives["X"] == (("$C",),)

    def test_ignore_case_lookup(self):
        result = parse_text('BaseDir "/export"\nHome "$basedir/home"\n',
                            expand_vars=True, ignore_case=True)
        assert result.root.directives["home"] == (("/export/home",),)

    def test_disabled_by_default(self):
        result = parse_text('Base "/x"\nHome "$Base/y"\n')
        assert result.root.directives["Home"] == (("$Base/y",),)

    def test_expander_lookup(self):
        expander = VariableExpander({"Base": [("/x",), ("/z", "extra")]}, lambda k: k)
        assert expander.lookup("Base") == "/z"
        assert expander.lookup("Missing") == ""
        assert expander.expand("$Base and ${Base}") == "/z and /z"


class TestNormalizer:
    """Tests for the pure helpers."""

    def test_fix_boolean_table(self):
        for word in ("yes", "Yes", "TRUE", "on"):
            assert fix_boolean(word) == "1"
        for word in ("no", "False", "OFF"):
            assert fix_boolean(word) == "0"
        assert fix_boolean("1") == "1"
        assert fix_boolean("enabled") == "enabled"

    def test_mangle_name(self):
        assert mangle_name("server_root") == "ServerRoot"
        assert mangle_name("document_root") == "DocumentRoot"
        assert mangle_name("DocumentRoot") == "DocumentRoot"
        assert mangle_name("supported") == "Supported"

    def test_normalize_key(self):
        assert Normalizer(ignore_case=True).normalize_key("ServerName") == "servername"
        assert Normalizer().normalize_key("ServerName") == "ServerName"
