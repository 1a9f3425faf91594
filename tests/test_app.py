"""
Tests for the Streamlit page, driven headlessly with AppTest.

The store runs on the in-memory backend; no data leaves the process.
"""

import pytest
import streamlit as st
from streamlit.testing.v1 import AppTest

from splitsync.config import get_settings


APP_PATH = "../app/main.py"


@pytest.fixture
def app(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SPLITSYNC_STORAGE_BACKEND", "memory")
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    get_settings.cache_clear()
    st.cache_resource.clear()

    at = AppTest.from_file(APP_PATH, default_timeout=10)
    at.run()
    assert not at.exception
    yield at

    st.cache_resource.clear()
    get_settings.cache_clear()


def name_input(at, person_id):
    return next(
        w for w in at.text_input
        if w.key and w.key.startswith("name_") and w.key.endswith(f"_{person_id}")
    )


def button(at, label):
    return next(b for b in at.button if b.label == label)


class TestPeopleTab:
    """Tests for renaming members."""

    def test_rename(self, app):
        name_input(app, "1").set_value("Alexandra").run()

        assert not app.exception
        assert name_input(app, "1").value == "Alexandra"
        assert any("Alexandra" in m.value for m in app.markdown)

    def test_rejected_name_does_not_rerun_forever(self, app):
        name_input(app, "1").set_value("x" * 101).run()

        assert not app.exception
        assert name_input(app, "1").value == "Alex"
        assert [w.value for w in app.warning] == ["Names must be 1 to 100 characters."]

    def test_names_are_escaped_in_balance_boxes(self, app):
        adder = next(w for w in app.text_input if w.label == "Add someone")
        adder.set_value("<b>Bo</b>")
        button(app, "➕ Add Person").click().run()

        assert not app.exception
        boxes = [m.value for m in app.markdown if "Paid" in m.value and "Share" in m.value]
        assert any("&lt;b&gt;Bo&lt;/b&gt;" in box for box in boxes)
        assert not any("<b>Bo</b>" in box for box in boxes)
