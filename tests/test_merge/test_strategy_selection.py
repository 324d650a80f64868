"""Unit tests for strategy selection and dispatch (architech.merge)."""

from __future__ import annotations

import pytest

from architech.errors import UnknownMergeStrategy
from architech.merge import KNOWN_STRATEGIES, apply_strategy, merge_content, select_strategy

pytestmark = pytest.mark.unit


class TestSelectStrategy:
    @pytest.mark.parametrize(
        "path, expected",
        [
            ("package.json", "deep"),
            ("tsconfig.json", "deep"),
            ("src/lib/stripe.ts", "source"),
            ("app/layout.tsx", "source"),
            ("next.config.mjs", "source"),
            (".env", "env"),
            (".env.local", "env"),
            ("README.md", "append"),
            (".gitignore", "append"),
        ],
    )
    def test_defaults_by_shape(self, path: str, expected: str):
        assert select_strategy(path) == expected

    @pytest.mark.parametrize(
        "path, requested",
        [
            ("package.json", "shallow"),
            ("package.json", "deep-merge"),
            ("package.json", "replace"),
            ("package.json", "overwrite"),
            ("src/a.ts", "overwrite"),
            (".env", "append"),
            ("README.md", "prepend"),
            ("notes.txt", "env"),
        ],
    )
    def test_compatible_requests(self, path: str, requested: str):
        assert select_strategy(path, requested) == requested

    @pytest.mark.parametrize(
        "path, requested",
        [
            ("package.json", "append"),
            ("package.json", "prepend"),
            ("src/a.ts", "append"),
            ("src/a.ts", "deep"),
            ("README.md", "deep"),
            (".env", "source"),
        ],
    )
    def test_incompatible_requests(self, path: str, requested: str):
        with pytest.raises(UnknownMergeStrategy, match="cannot be applied"):
            select_strategy(path, requested)

    def test_unknown_name(self):
        with pytest.raises(UnknownMergeStrategy, match="Unknown merge strategy: 'smart'"):
            select_strategy("README.md", "smart")

    def test_known_strategies(self):
        assert {"deep", "shallow", "replace", "source", "env", "append", "prepend", "overwrite"} <= KNOWN_STRATEGIES


class TestApplyStrategy:
    @pytest.mark.parametrize("strategy", ["source", "env", "append", "prepend", "overwrite"])
    def test_text_strategies_write_verbatim_without_existing(self, strategy: str):
        assert apply_strategy(strategy, None, "X=1\n") == "X=1\n"

    def test_overwrite_replaces(self):
        assert apply_strategy("overwrite", "old\n", "new\n") == "new\n"

    def test_structured_dispatch(self):
        assert apply_strategy("shallow", '{"a": {"x": 1}}', '{"a": {"y": 2}}') == '{\n  "a": {\n    "y": 2\n  }\n}\n'

    def test_unknown(self):
        with pytest.raises(UnknownMergeStrategy):
            apply_strategy("mystery", None, "")

    def test_merge_content_selects_by_path(self):
        assert merge_content(".env", "A=1\n", "B=2\n") == "A=1\nB=2\n"
        assert merge_content("notes.md", "one\n", "two\n") == "one\ntwo\n"
