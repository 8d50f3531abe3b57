from specialresource.yamlutil import YAMLScanner, split_documents


def test_splits_on_separator():
    assert list(split_documents(b"a: 1\n---\nb: 2\n")) == [b"a: 1\n", b"b: 2\n"]


def test_empty_documents_are_skipped():
    assert list(split_documents(b"---\n---\na: 1\n---\n")) == [b"a: 1\n"]


def test_crlf_is_normalized_and_last_line_gets_newline():
    assert list(split_documents(b"a: 1\r\n---\r\nb: 2")) == [b"a: 1\n", b"b: 2\n"]


def test_separator_with_trailing_whitespace():
    assert list(split_documents(b"a: 1\n---   \nb: 2\n")) == [b"a: 1\n", b"b: 2\n"]


def test_separator_followed_by_text_is_content():
    docs = list(split_documents(b"a: 1\n--- x\n"))
    assert docs == [b"a: 1\n--- x\n"]


def test_empty_input():
    assert list(split_documents(b"")) == []


def test_scanner_accepts_str_and_iterates_again():
    scanner = YAMLScanner("kind: Pod\n---\nkind: Service\n")
    first = list(scanner)
    assert first == [b"kind: Pod\n", b"kind: Service\n"]
    assert list(scanner) == first


def test_joined_documents_round_trip():
    docs = [b"a: 1\nb: 2\n", b"c: 3\n", b"d: 4\n"]
    stream = b"---\n".join(docs)
    assert list(YAMLScanner(stream)) == docs