"""Tests for item helpers."""
import pytest

from node_sdk import return_json_array, set_nested_value, split_property_path


class TestReturnJsonArray:
    def test_wraps_single_dict(self):
        assert return_json_array({"a": 1}) == [{"json": {"a": 1}}]

    def test_wraps_each_dict_of_a_list(self):
        assert return_json_array([{"a": 1}, {"b": 2}]) == [{"json": {"a": 1}}, {"json": {"b": 2}}]


class TestSetNestedValue:
    """Dot-notation property paths."""

    def test_nested_objects(self):
        assert set_nested_value({}, "data.person.name", "bob") == {"data": {"person": {"name": "bob"}}}

    def test_literal_key_when_dot_notation_is_off(self):
        assert set_nested_value({}, "data.name", "bob", use_dot_notation=False) == {"data.name": "bob"}

    def test_numeric_segments_create_lists(self):
        assert set_nested_value({}, "rows[1].id", 7) == {"rows": [None, {"id": 7}]}

    def test_keeps_existing_siblings(self):
        target = {"data": {"age": 3}}

        set_nested_value(target, "data.name", "bob")

        assert target == {"data": {"age": 3, "name": "bob"}}

    def test_replaces_scalar_on_the_path(self):
        assert set_nested_value({"data": "x"}, "data.name", "bob") == {"data": {"name": "bob"}}

    @pytest.mark.parametrize(
        "path, expected",
        [
            ("a", ["a"]),
            ("a.b", ["a", "b"]),
            ("a[0].b", ["a", 0, "b"]),
            ("a.0", ["a", 0]),
        ],
    )
    def test_split_property_path(self, path, expected):
        assert split_property_path(path) == expected
