# tests/test_canon.py
import json

import pytest

from jsonsigner.core.canon import canonical_json, canonical_json_str, canonicalize


def test_canonical_json_sorting():
    messy = {
        "z": 1,
        "a": "hello",
        "nested": {"b": 2, "a": 1},
    }
    assert canonical_json_str(messy) == '{"a":"hello","nested":{"a":1,"b":2},"z":1}'


def test_canonical_json_key_order_independent():
    one = {"fee": {"gas": "1", "amount": []}, "memo": "", "msgs": [{"b": 1, "a": 2}]}
    two = {"msgs": [{"a": 2, "b": 1}], "memo": "", "fee": {"amount": [], "gas": "1"}}
    assert canonical_json(one) == canonical_json(two)


def test_canonical_json_no_whitespace():
    out = canonical_json_str({"a": [1, 2, {"b": None}], "c": True, "d": False})
    assert out == '{"a":[1,2,{"b":null}],"c":true,"d":false}'


def test_html_characters_escaped():
    out = canonical_json_str({"memo": "<a href='x'>&</a>"})
    assert out == '{"memo":"\\u003ca href=\'x\'\\u003e\\u0026\\u003c/a\\u003e"}'


def test_line_separators_escaped():
    out = canonical_json_str("a\u2028b\u2029c")
    assert out == '"a\\u2028b\\u2029c"'


def test_non_ascii_kept_as_utf8():
    assert canonical_json({"memo": "héllo ✓"}) == '{"memo":"héllo ✓"}'.encode("utf-8")


def test_control_characters_escaped():
    assert canonical_json_str("a\nb\"c\\") == '"a\\nb\\"c\\\\"'


@pytest.mark.parametrize("value, expected", [
    (0, "0"),
    (1, "1"),
    (-42, "-42"),
    (1.0, "1"),
    (1.5, "1.5"),
    (0.1, "0.1"),
    (1e20, "100000000000000000000"),
    (1e21, "1e+21"),
    (1.5e21, "1.5e+21"),
    (1e-7, "1e-7"),
    (0.000001, "0.000001"),
    (12345678901234567890, "12345678901234567000"),
])
def test_numbers_render_as_doubles(value, expected):
    assert canonical_json_str(value) == expected


def test_nan_rejected():
    with pytest.raises(ValueError):
        canonical_json(float("nan"))


def test_non_string_keys_rejected():
    with pytest.raises(TypeError):
        canonical_json({1: "a"})


def test_canonicalize_idempotent():
    raw = b'{ "b" : [1, 2.50, "x"], "a" : {"d": "<", "c": null} }'
    once = canonicalize(raw)
    assert once == b'{"a":{"c":null,"d":"\\u003c"},"b":[1,2.5,"x"]}'
    assert canonicalize(once) == once


def test_canonical_output_parses_back():
    doc = {"msgs": [{"type": "cosmos-sdk/MsgSend", "value": {"amount": [{"amount": "1", "denom": "a&b"}]}}]}
    assert json.loads(canonical_json(doc)) == doc
