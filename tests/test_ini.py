from pathlib import Path

from makeepub.core.ini import BookConfig


def test_sections_and_keys_are_case_insensitive() -> None:
    config = BookConfig.parse(
        "[Book]\nName = Title\n# comment\n\n[SPLIT]\nAtLevel = 2\n"
    )
    assert config.get_str("/book/name") == "Title"
    assert config.get_str("BOOK/NAME") == "Title"
    assert config.get_int("/split/atlevel") == 2
    assert "/split/AtLevel" in config
    assert "/split/bydiv" not in config


def test_missing_values_use_defaults() -> None:
    config = BookConfig.parse("[book]\ntoc = deep\n")
    assert config.get_str("/book/author") == ""
    assert config.get_str("/book/author", "anon") == "anon"
    assert config.get_int("/book/toc") is None
    assert config.get_int("/book/toc", 2) == 2
    assert config.get_bool("/output/duokan", True) is True


def test_bool_values() -> None:
    config = BookConfig.parse("[o]\na = true\nb = 0\nc = Yes\nd = maybe\n")
    assert config.get_bool("/o/a") is True
    assert config.get_bool("/o/b", True) is False
    assert config.get_bool("/o/c") is True
    assert config.get_bool("/o/d", True) is True


def test_continuation_lines() -> None:
    config = BookConfig.parse(
        "[book]\n"
        "description = A long\n"
        "= description\n"
        "=\n"
        "= Second line\n"
        "name = 中文\n"
        "= 书名\n"
    )
    assert config.get_str("/book/description") == "A long description\n Second line"
    assert config.get_str("/book/name") == "中文书名"


def test_line_without_equals_starts_new_line() -> None:
    config = BookConfig.parse("[book]\ndescription = first\nplain line\n= second\nname = N\n")
    assert config.get_str("/book/description") == "first\n second"
    assert config.get_str("/book/name") == "N"


def test_line_without_equals_before_any_key_is_dropped() -> None:
    config = BookConfig.parse("stray text\n[book]\nname = N\n")
    assert config.get_str("/book/name") == "N"


def test_continuation_survives_section_header() -> None:
    config = BookConfig.parse("[book]\nname = Part\n[output]\n= two\npath = a.epub\n")
    assert config.get_str("/book/name") == "Part two"
    assert config.get_str("/output/path") == "a.epub"


def test_hyphen_joins_without_space() -> None:
    config = BookConfig.parse("[book]\ndescription = well-\n= known\n")
    assert config.get_str("/book/description") == "well-known"


def test_value_keeps_inner_equals() -> None:
    config = BookConfig.parse("[book]\nid = urn:isbn=123\n")
    assert config.get_str("/book/id") == "urn:isbn=123"


def test_load_strips_bom(tmp_path: Path) -> None:
    path = tmp_path / "book.ini"
    path.write_bytes("\ufeff[book]\nname = BOM\n".encode("utf-8"))
    assert BookConfig.load(path).get_str("/book/name") == "BOM"
