"""Lexer tests."""

from __future__ import annotations

from c_conform.lexer import SourceFile, tokenize


def test_tokenize_classifies_basic_declaration() -> None:
    tokens = tokenize("int x = 42;")
    significant = [(tok.kind, tok.text) for tok in tokens if tok.kind != "whitespace"]
    assert significant == [
        ("keyword", "int"),
        ("identifier", "x"),
        ("punctuator", "="),
        ("literal", "42"),
        ("punctuator", ";"),
    ]


def test_tokenize_keeps_positions_after_multiline_comment() -> None:
    tokens = tokenize("/* a\n b */ x")
    comment = tokens[0]
    assert comment.kind == "comment"
    assert (comment.line, comment.column) == (1, 1)
    assert (comment.end_line, comment.end_column) == (2, 6)

    identifier = tokens[-1]
    assert identifier.text == "x"
    assert (identifier.line, identifier.column) == (2, 7)
    assert identifier.offset == 11


def test_tokenize_never_raises_on_malformed_input() -> None:
    tokens = tokenize('int @x = "open\nchar c;')
    kinds = {tok.text: tok.kind for tok in tokens}
    assert kinds["@"] == "unknown"
    assert kinds['"open'] == "unknown"
    assert kinds["char"] == "keyword"


def test_unterminated_block_comment_runs_to_end_of_text() -> None:
    tokens = tokenize("int a;\n/* open\nint b;")
    last = tokens[-1]
    assert last.kind == "comment"
    assert last.text == "/* open\nint b;"
    assert last.terminated is False
    assert tokens[0].terminated is True


def test_tokenize_reads_whole_numbers_and_longest_punctuators() -> None:
    tokens = [tok for tok in tokenize("a <<= 0x1Fu + 1.5e-3f;") if tok.kind != "whitespace"]
    assert [tok.text for tok in tokens] == ["a", "<<=", "0x1Fu", "+", "1.5e-3f", ";"]
    assert tokens[2].is_number
    assert tokens[4].is_number


def test_comments_and_literals_are_first_class_tokens() -> None:
    tokens = tokenize("// note\nchar s[] = \"a // b\";")
    assert tokens[0].kind == "comment"
    assert tokens[0].text == "// note"
    strings = [tok for tok in tokens if tok.kind == "literal"]
    assert [tok.text for tok in strings] == ['"a // b"']


def test_crlf_line_endings_count_as_one_line_break() -> None:
    tokens = tokenize("a\r\nb")
    last = tokens[-1]
    assert last.text == "b"
    assert (last.line, last.column) == (2, 1)


def test_source_file_splits_lines() -> None:
    source_file = SourceFile.from_text("demo.c", "int a;\nint b;\n")
    assert source_file.lines == ("int a;", "int b;", "")
    assert source_file.line_text(2) == "int b;"
    assert source_file.line_text(99) == ""
    assert source_file.tokens[0].text == "int"
