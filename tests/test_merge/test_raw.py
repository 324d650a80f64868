"""Unit tests for raw append/prepend (architech.merge.raw)."""

from __future__ import annotations

import pytest

from architech.merge.raw import append_content, prepend_content

pytestmark = pytest.mark.unit


class TestAppend:
    def test_single_separator(self):
        assert append_content("node_modules", ".env\n") == "node_modules\n.env\n"

    def test_existing_trailing_newline_reused(self):
        assert append_content("node_modules\n", ".env\n") == "node_modules\n.env\n"

    def test_no_existing(self):
        assert append_content(None, ".env\n") == ".env\n"
        assert append_content("", ".env\n") == ".env\n"


class TestPrepend:
    def test_single_separator(self):
        assert prepend_content("body\n", "header") == "header\nbody\n"

    def test_new_trailing_newline_reused(self):
        assert prepend_content("body\n", "header\n") == "header\nbody\n"

    def test_no_existing(self):
        assert prepend_content(None, "header\n") == "header\n"
