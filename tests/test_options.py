"""Tests for OperationOptions and FindOptions."""

from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from crudkit.options import FindOptions, OperationOptions


class TestOperationOptions:
    def test_defaults(self) -> None:
        opts = OperationOptions()
        assert opts.tag is None
        assert opts.effective_persist_tag is None
        assert opts.effective_validate_tag is None
        assert opts.validation_set == "all"
        assert opts.ignore_tag_for_sub_schema is None

    def test_tag_feeds_both_scopes(self) -> None:
        opts = OperationOptions.coerce({"tag": "a"})
        assert opts.effective_persist_tag == "a"
        assert opts.effective_validate_tag == "a"

    def test_persist_and_validate_override_tag(self) -> None:
        opts = OperationOptions.coerce({"tag": "a", "persist": "b", "validate": "c"})
        assert opts.effective_persist_tag == "b"
        assert opts.effective_validate_tag == "c"

    def test_field_names_are_accepted(self) -> None:
        opts = OperationOptions(persist_tag="b", validation_set="draft")
        assert opts.effective_persist_tag == "b"
        assert opts.validation_set == "draft"

    def test_aliases(self) -> None:
        opts = OperationOptions.coerce({"set": "publish", "ignoreTagForSubSchema": True})
        assert opts.validation_set == "publish"
        assert opts.ignore_tag_for_sub_schema is True

    def test_unknown_keys_travel_along(self) -> None:
        opts = OperationOptions.coerce({"test": "Test", "user": 7})
        assert opts.test == "Test"
        assert opts.model_extra == {"test": "Test", "user": 7}

    def test_coerce_passthrough(self) -> None:
        opts = OperationOptions(tag="a")
        assert OperationOptions.coerce(opts) is opts
        assert OperationOptions.coerce(None) == OperationOptions()

    def test_frozen(self) -> None:
        with pytest.raises(PydanticValidationError):
            OperationOptions().tag = "a"  # type: ignore[misc]


class TestFindOptions:
    def test_defaults(self) -> None:
        opts = FindOptions.coerce(None)
        assert opts.sort == {}
        assert opts.limit is None
        assert opts.skip == 0

    def test_coerce_mapping(self) -> None:
        opts = FindOptions.coerce({"sort": {"name": -1}, "limit": 5})
        assert opts.sort == {"name": -1}
        assert opts.limit == 5

    @pytest.mark.parametrize(
        "raw", [{"sort": {"name": 2}}, {"limit": -1}, {"skip": -3}]
    )
    def test_invalid(self, raw: dict[str, object]) -> None:
        with pytest.raises(PydanticValidationError):
            FindOptions.coerce(raw)
