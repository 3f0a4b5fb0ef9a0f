from cricket_pipeline.common.parsing import (
    clean_text,
    element_text,
    parse_float_or,
    parse_int_or,
    soup_from_html,
    text_lines,
)


def test_parse_int_reads_leading_digits():
    assert parse_int_or("14") == 14
    assert parse_int_or(" 20* ") == 20
    assert parse_int_or("-3") == -3


def test_parse_int_defaults():
    assert parse_int_or("") == 0
    assert parse_int_or(None) == 0
    assert parse_int_or("abc") == 0
    # zero falls back like a JS `parseInt(x) || fallback`
    assert parse_int_or("0", 7) == 7


def test_parse_float():
    assert parse_float_or("1.542") == 1.542
    assert parse_float_or("-0.45*") == -0.45
    assert parse_float_or("n/a") == 0.0


def test_text_helpers():
    soup = soup_from_html("<div>  MI <b>vs</b> CSK  </div>")
    assert element_text(soup.div) == "MI vs CSK"
    assert element_text(None) == ""
    assert clean_text("  a \n  b ") == "a b"
    assert clean_text("   ") is None
    assert text_lines("one\n\n  two  \n") == ["one", "two"]
