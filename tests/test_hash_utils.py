"""Tests for hash utilities and canonicalization rules."""

import pytest

from fhiravro._internal.canonical_json import canonical_dumps
from fhiravro.kernel.hash_utils import (
    CanonicalizationError,
    canonicalize_json,
    hash_schema,
)


class TestCanonicalizeJson:
    """Tests for canonicalize_json function."""

    def test_simple_dict_sorts_keys(self):
        """Object keys should be sorted."""
        obj = {"type": "record", "name": "Patient", "fields": []}
        assert canonicalize_json(obj) == '{"fields":[],"name":"Patient","type":"record"}'

    def test_array_preserves_order(self):
        """Union branch order is significant and must survive."""
        assert canonicalize_json(["null", "string"]) == '["null","string"]'
        assert canonicalize_json(["string", "null"]) == '["string","null"]'

    def test_string_normalization_nfc(self):
        """Decomposed and composed forms canonicalize identically."""
        decomposed = "Be\u0301ne\u0301dicte"
        composed = "B\u00e9n\u00e9dicte"
        assert canonicalize_json({"doc": decomposed}) == canonicalize_json({"doc": composed})

    def test_null_and_bool_allowed(self):
        assert canonicalize_json({"default": None, "flag": True}) == '{"default":null,"flag":true}'

    def test_float_rejected(self):
        with pytest.raises(CanonicalizationError, match="Floats"):
            canonicalize_json({"precision": 12.0})

    def test_non_json_type_rejected(self):
        with pytest.raises(CanonicalizationError, match="Non-JSON"):
            canonicalize_json({"fields": ("a", "b")})

    def test_non_string_key_rejected(self):
        with pytest.raises(CanonicalizationError):
            canonicalize_json({1: "a"})


class TestHashSchema:

    def test_prefix_and_length(self):
        digest = hash_schema({"type": "record", "name": "X", "fields": []})
        assert digest.startswith("sha256:")
        assert len(digest) == len("sha256:") + 64

    def test_key_order_does_not_matter(self):
        a = {"type": "record", "name": "X", "fields": []}
        b = {"fields": [], "name": "X", "type": "record"}
        assert hash_schema(a) == hash_schema(b)

    def test_field_order_matters(self):
        a = {"fields": [{"name": "a"}, {"name": "b"}]}
        b = {"fields": [{"name": "b"}, {"name": "a"}]}
        assert hash_schema(a) != hash_schema(b)


def test_canonical_dumps_indent():
    text = canonical_dumps({"b": 1, "a": "é"}, indent=2)
    assert text == '{\n  "a": "é",\n  "b": 1\n}'
