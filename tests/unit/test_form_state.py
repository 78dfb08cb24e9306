"""
Tests for FormDirtyState: CLEAN/DIRTY tracking and guarded exits.
"""

from src.core.services.form_state import ExitDecision, FormDirtyState, FormState


def test_new_form_is_clean():
    state = FormDirtyState({"title": "Old"})
    assert state.state is FormState.CLEAN
    assert not state.is_dirty


def test_edit_makes_dirty_and_reverting_makes_clean():
    state = FormDirtyState({"title": "Old"})
    assert state.update({"title": "New"}) is FormState.DIRTY
    assert state.update({"title": "Old"}) is FormState.CLEAN


def test_nested_values_are_compared_by_value():
    state = FormDirtyState({"tags": ["a"]})
    state.update({"tags": ["a"]})
    assert not state.is_dirty
    state.update({"tags": ["a", "b"]})
    assert state.is_dirty


def test_snapshot_is_isolated_from_caller():
    initial = {"tags": ["a"]}
    state = FormDirtyState(initial)
    initial["tags"].append("b")
    assert state.values == {"tags": ["a"]}
    state.values["tags"].append("c")
    assert not state.is_dirty


def test_clean_exit_runs_action():
    state = FormDirtyState({"title": "Old"})
    exits = []
    assert state.request_exit(lambda: exits.append("closed")) is ExitDecision.EXITED
    assert exits == ["closed"]
    assert not state.has_pending_exit


def test_dirty_exit_needs_confirmation():
    state = FormDirtyState({"title": "Old"})
    state.update({"title": "New"})
    exits = []
    assert state.request_exit(lambda: exits.append("closed")) is ExitDecision.CONFIRM_REQUIRED
    assert exits == []
    assert state.has_pending_exit

    assert state.confirm_exit() is True
    assert exits == ["closed"]
    assert state.confirm_exit() is False


def test_cancel_exit_keeps_edits():
    state = FormDirtyState({"title": "Old"})
    state.update({"title": "New"})
    state.request_exit(lambda: None)
    state.cancel_exit()
    assert not state.has_pending_exit
    assert state.values == {"title": "New"}


def test_mark_saved_resets_baseline():
    state = FormDirtyState({"title": "Old"})
    state.update({"title": "New"})
    state.mark_saved()
    assert state.state is FormState.CLEAN
    state.mark_saved({"title": "Server"})
    assert state.values == {"title": "Server"}
    assert not state.is_dirty


def test_reset_discards_edits():
    state = FormDirtyState({"title": "Old"})
    state.update({"title": "New", "slug": "new"})
    state.reset()
    assert state.values == {"title": "Old"}
    assert not state.is_dirty
