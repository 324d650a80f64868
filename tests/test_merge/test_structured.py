"""Unit tests for JSON object merging (architech.merge.structured)."""

from __future__ import annotations

import json

import pytest

from architech.errors import ParseError, UnknownMergeStrategy
from architech.merge.structured import deep_merge, merge_objects, merge_structured, shallow_merge

pytestmark = pytest.mark.unit


class TestDeepMerge:
    def test_nested_objects_merged(self):
        target = {"a": {"x": 1, "y": 2}, "b": 1}
        source = {"a": {"y": 3, "z": 4}}
        assert deep_merge(target, source) == {"a": {"x": 1, "y": 3, "z": 4}, "b": 1}

    def test_arrays_replaced(self):
        assert deep_merge({"files": ["a"]}, {"files": ["b"]}) == {"files": ["b"]}

    def test_object_replaces_scalar(self):
        assert deep_merge({"a": 1}, {"a": {"b": 2}}) == {"a": {"b": 2}}

    def test_inputs_not_mutated(self):
        target = {"a": {"x": 1}}
        source = {"a": {"y": 2}}
        deep_merge(target, source)
        assert target == {"a": {"x": 1}}
        assert source == {"a": {"y": 2}}


class TestShallowMerge:
    def test_top_level_only(self):
        assert shallow_merge({"a": {"x": 1}, "b": 1}, {"a": {"y": 2}}) == {"a": {"y": 2}, "b": 1}


class TestMergeObjects:
    @pytest.mark.parametrize("strategy", ["deep", "deep-merge"])
    def test_deep_aliases(self, strategy: str):
        assert merge_objects({"a": {"x": 1}}, {"a": {"y": 2}}, strategy) == {"a": {"x": 1, "y": 2}}

    @pytest.mark.parametrize("strategy", ["shallow", "shallow-merge"])
    def test_shallow_aliases(self, strategy: str):
        assert merge_objects({"a": {"x": 1}}, {"a": {"y": 2}}, strategy) == {"a": {"y": 2}}

    def test_replace(self):
        assert merge_objects({"a": 1}, {"b": 2}, "replace") == {"b": 2}

    def test_unknown(self):
        with pytest.raises(UnknownMergeStrategy):
            merge_objects({}, {}, "zip")


class TestMergeStructured:
    def test_package_json_scenario(self):
        existing = json.dumps({"name": "acme", "dependencies": {"react": "18"}})
        new = json.dumps({"dependencies": {"stripe": "14"}})
        merged = json.loads(merge_structured(existing, new))
        assert merged == {"name": "acme", "dependencies": {"react": "18", "stripe": "14"}}

    def test_existing_keys_survive(self):
        existing = json.dumps({"scripts": {"dev": "next dev"}, "private": True})
        merged = json.loads(merge_structured(existing, '{"scripts": {"lint": "eslint"}}'))
        assert merged["scripts"]["dev"] == "next dev"
        assert merged["private"] is True

    def test_no_existing_file_serialises_new(self):
        assert merge_structured(None, '{"a":1}') == '{\n  "a": 1\n}\n'

    def test_blank_existing_treated_as_absent(self):
        assert merge_structured("  \n", '{"a":1}') == '{\n  "a": 1\n}\n'

    def test_output_format(self):
        merged = merge_structured('{"a": 1}', '{"b": 2}')
        assert merged == '{\n  "a": 1,\n  "b": 2\n}\n'

    def test_unchanged_keeps_original_text(self):
        existing = '{"a": {"b": 1},   "c": 2}'
        assert merge_structured(existing, '{"a": {"b": 1}}') == existing

    def test_idempotent(self):
        once = merge_structured('{"a": 1}', '{"b": {"c": [1, 2]}}')
        assert merge_structured(once, '{"b": {"c": [1, 2]}}') == once

    def test_invalid_existing(self):
        with pytest.raises(ParseError, match="package.json"):
            merge_structured("{ nope", "{}", path="package.json")

    def test_invalid_new(self):
        with pytest.raises(ParseError, match="generated content"):
            merge_structured("{}", "not json", path="package.json")

    def test_non_object_rejected(self):
        with pytest.raises(ParseError, match="expected a JSON object"):
            merge_structured("[1, 2]", "{}")

    def test_unknown_strategy_checked_first(self):
        with pytest.raises(UnknownMergeStrategy):
            merge_structured(None, "{}", strategy="append")
