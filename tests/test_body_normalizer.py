"""
Tests for catchhook/services/body_normalizer.py.
"""
import pytest

from catchhook.services.body_normalizer import (
    MAX_INTEGER_DIGITS,
    RAW_TEXT_FIELD,
    EmptyBody,
    JsonBody,
    RawTextBody,
    decode_body,
    from_storage,
    normalize,
)


class TestNormalize:
    def test_empty_string_is_empty_body(self):
        body = normalize("")
        assert isinstance(body, EmptyBody)
        assert body.to_storage() is None

    def test_object(self):
        body = normalize('{"event": "charge.succeeded", "data": {"amount": 1200}}')
        assert body == JsonBody({"event": "charge.succeeded", "data": {"amount": 1200}})

    @pytest.mark.parametrize("text,expected", [
        ("[1, 2, 3]", [1, 2, 3]),
        ('"just a string"', "just a string"),
        ("42", 42),
        ("3.5", 3.5),
        ("true", True),
        ("null", None),
    ])
    def test_any_json_value_is_stored_verbatim(self, text, expected):
        body = normalize(text)
        assert isinstance(body, JsonBody)
        assert body.to_storage() == expected

    def test_surrounding_whitespace_is_valid_json(self):
        assert normalize('  {"a": 1}\n') == JsonBody({"a": 1})

    @pytest.mark.parametrize("text", [
        "not json{",
        "a=1&b=2",
        "<xml><a>1</a></xml>",
        "{'single': 'quotes'}",
        "   ",
        '{"a": 1} trailing',
    ])
    def test_non_json_is_wrapped(self, text):
        body = normalize(text)
        assert isinstance(body, RawTextBody)
        assert body.to_storage() == {RAW_TEXT_FIELD: text}

    @pytest.mark.parametrize("text", ["NaN", "Infinity", "-Infinity", '{"x": NaN}'])
    def test_non_standard_constants_are_not_json(self, text):
        assert normalize(text) == RawTextBody(text)

    def test_raw_text_kept_unmodified(self):
        text = "line one\r\n\tline two  é中"
        assert normalize(text).to_storage()["_raw"] == text


class TestDecodeBody:
    def test_utf8(self):
        assert decode_body("café".encode("utf-8")) == "café"

    def test_invalid_bytes_are_replaced(self):
        assert decode_body(b"ab\xffcd") == "ab�cd"

    def test_bom_is_dropped(self):
        assert decode_body(b'\xef\xbb\xbf{"a": 1}') == '{"a": 1}'


class TestFromStorage:
    def test_none(self):
        assert isinstance(from_storage(None), EmptyBody)

    def test_raw_wrapper(self):
        assert from_storage({"_raw": "not json{"}) == RawTextBody("not json{")

    def test_json_with_extra_keys_is_json(self):
        assert from_storage({"_raw": "x", "other": 1}) == JsonBody({"_raw": "x", "other": 1})

    def test_list(self):
        assert from_storage([1]) == JsonBody([1])


class TestParserLimits:
    def test_unterminated_deep_nesting_is_raw_text(self):
        text = "[" * 100_000
        assert normalize(text) == RawTextBody(text)

    def test_valid_but_too_deep_nesting_is_raw_text(self):
        text = "[" * 5000 + "]" * 5000
        assert normalize(text) == RawTextBody(text)

    def test_moderate_nesting_stays_json(self):
        expected = []
        for _ in range(49):
            expected = [expected]
        assert normalize("[" * 50 + "]" * 50) == JsonBody(expected)

    @pytest.mark.parametrize("text", ["1e400", "-1e400", '{"amount": 1e999}'])
    def test_float_overflow_is_raw_text(self, text):
        assert normalize(text) == RawTextBody(text)

    def test_ordinary_floats_stay_json(self):
        assert normalize('{"a": 1.5, "b": 2e10, "c": -0.25}') == JsonBody({"a": 1.5, "b": 2e10, "c": -0.25})

    def test_integer_at_digit_limit_stays_json(self):
        text = "9" * MAX_INTEGER_DIGITS
        assert normalize(text) == JsonBody(int(text))

    @pytest.mark.parametrize("text", [
        "1" * (MAX_INTEGER_DIGITS + 1),
        "-" + "1" * (MAX_INTEGER_DIGITS + 1),
    ])
    def test_integer_past_digit_limit_is_raw_text(self, text):
        assert normalize(text) == RawTextBody(text)


class TestBinaryBodies:
    def test_nul_bytes_are_kept_in_raw_text(self):
        text = decode_body(b"\x00\x01binary\x00")
        assert normalize(text) == RawTextBody("\x00\x01binary\x00")
