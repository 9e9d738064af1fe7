"""
Tests for rule tree serialization.
"""

import json

from condval.engine.builder import build_rule_tree, parse_rule_tree_json
from condval.engine.comparator import trees_equal
from condval.engine.serializer import canonicalize_json, to_json, to_json_pretty, to_raw


class TestToRaw:
    def test_literal_expression_and_nested(self, nested_tree):
        assert to_raw(nested_tree) == [
            {
                "condition": "a > 1 && b < 0",
                "result": [
                    {"condition": "a >= 3", "result": "a * 10"},
                    {"condition": "a >= 2", "result": 4},
                ],
            },
            {"condition": "true", "result": "fallback"},
        ]

    def test_rebuilds_equal_tree(self, demo_tree):
        assert trees_equal(build_rule_tree(to_raw(demo_tree)), demo_tree)

    def test_empty_nested_tree(self):
        tree = build_rule_tree([{"condition": "x", "result": []}])
        assert to_raw(tree) == [{"condition": "x", "result": []}]


class TestCanonicalJson:
    def test_keys_sorted_recursively(self):
        assert list(canonicalize_json({"b": 1, "a": {"d": 2, "c": 3}})) == ["a", "b"]
        assert list(canonicalize_json({"b": 1, "a": {"d": 2, "c": 3}})["a"]) == ["c", "d"]

    def test_list_order_preserved(self):
        assert canonicalize_json([3, 1, 2]) == [3, 1, 2]

    def test_to_json_is_compact_and_sorted(self):
        tree = build_rule_tree([{"result": {"z": 1, "a": 2}, "condition": "true"}])
        assert to_json(tree) == '[{"condition":"true","result":{"a":2,"z":1}}]'

    def test_to_json_stable_across_key_order(self):
        left = build_rule_tree([{"condition": "x", "result": {"a": 1, "b": 2}}])
        right = build_rule_tree([{"result": {"b": 2, "a": 1}, "condition": "x"}])
        assert to_json(left) == to_json(right)

    def test_json_round_trip(self, demo_tree):
        assert trees_equal(parse_rule_tree_json(to_json(demo_tree)), demo_tree)

    def test_pretty_output_parses_to_same_structure(self, nested_tree):
        assert json.loads(to_json_pretty(nested_tree)) == json.loads(to_json(nested_tree))


class TestRoundTrip:
    def test_tuple_inside_literal(self):
        tree = build_rule_tree([{"condition": "true", "result": {"k": (1, 2), "m": [(3,)]}}])
        assert tree[0].result.value == {"k": [1, 2], "m": [[3]]}
        assert trees_equal(build_rule_tree(to_raw(tree)), tree)

    def test_tuple_rule_arrays(self):
        tree = build_rule_tree(
            ({"condition": "x", "result": ({"condition": "y", "result": (1, 2)},)},)
        )
        assert trees_equal(build_rule_tree(to_raw(tree)), tree)
        assert trees_equal(parse_rule_tree_json(to_json(tree)), tree)
