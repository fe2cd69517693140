# tests/test_param_encoder.py
from __future__ import annotations

import pytest

from pixiv_client.endpoints.param_encoder import encode_param, encode_value
from pixiv_client.utils.errors import InvalidParameters
from pixiv_schemas.endpoint_schema import Filter, ParamSpec, ParamStyle, Sort


def test_encode_value_rules() -> None:
    assert encode_value(None) is None
    assert encode_value(True) == "true"
    assert encode_value(False) == "false"
    assert encode_value(Sort.POPULAR_DESC) == "popular_desc"
    assert encode_value(Filter.NONE) == ""
    assert encode_value(0) == "0"
    assert encode_value("cat") == "cat"


def test_plain_scalar_and_none() -> None:
    spec = ParamSpec(name="word")

    assert encode_param(spec, "cat") == {"word": "cat"}
    assert encode_param(spec, None) == {}


def test_plain_rejects_lists() -> None:
    with pytest.raises(InvalidParameters):
        encode_param(ParamSpec(name="word"), ["a", "b"])


def test_csv_and_space_join() -> None:
    assert encode_param(ParamSpec(name="ids", style=ParamStyle.CSV), [1, 2, 3]) == {"ids": "1,2,3"}
    assert encode_param(ParamSpec(name="tags", style="space"), ("a", "b")) == {"tags": "a b"}
    assert encode_param(ParamSpec(name="ids", style="csv"), []) == {}


def test_single_value_for_list_style_is_wrapped() -> None:
    assert encode_param(ParamSpec(name="tags", style="space"), "solo") == {"tags": "solo"}


def test_indexed_expands_entries() -> None:
    spec = ParamSpec(name="viewed", style=ParamStyle.INDEXED)

    assert encode_param(spec, [7, 8]) == {"viewed[0]": "7", "viewed[1]": "8"}
