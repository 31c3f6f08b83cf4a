import pytest

from epubflow.core.exceptions import WorkflowStateError
from epubflow.core.workflow.state import ContentUnit, WorkflowState, compute_progress
from epubflow.models.enums import WorkflowStatus


def _unit(**kwargs):
    kwargs.setdefault("id", "u")
    kwargs.setdefault("file_name", "u.xhtml")
    kwargs.setdefault("title", "U")
    kwargs.setdefault("original_text", "original")
    return ContentUnit(**kwargs)


def test_best_text_preference():
    unit = _unit()
    assert unit.best_text == "original"

    unit.translated_text = "translated"
    assert unit.best_text == "translated"

    unit.proofread_text = "proofread"
    assert unit.best_text == "proofread"


def test_texts_are_write_once():
    unit = _unit()
    unit.translated_text = "first"
    unit.proofread_text = "checked"

    with pytest.raises(WorkflowStateError):
        unit.translated_text = "second"
    with pytest.raises(WorkflowStateError):
        unit.proofread_text = "again"

    assert unit.translated_text == "first"
    assert unit.proofread_text == "checked"


def test_write_once_applies_to_constructor_values():
    unit = _unit(translated_text="given")

    with pytest.raises(WorkflowStateError):
        unit.translated_text = "other"


def test_flags_are_mutable():
    unit = _unit()
    unit.is_skippable = True
    unit.is_skippable = False
    assert unit.is_skippable is False


def test_progress_without_units():
    assert compute_progress([], enable_proofreading=True, smart_skip=True) == 0.0


def test_progress_counts_both_passes():
    units = [_unit(id="a"), _unit(id="b")]
    assert compute_progress(units, True, True) == 0.0

    units[0].translated_text = "t"
    assert compute_progress(units, True, True) == 25.0

    units[0].proofread_text = "p"
    units[1].translated_text = "t"
    assert compute_progress(units, True, True) == 75.0

    units[1].proofread_text = "p"
    assert compute_progress(units, True, True) == 100.0


def test_progress_without_proofreading():
    units = [_unit(id="a", translated_text="t"), _unit(id="b")]
    assert compute_progress(units, enable_proofreading=False, smart_skip=True) == 50.0


def test_skippable_units_count_as_done_with_smart_skip():
    units = [_unit(id="a", is_skippable=True), _unit(id="b")]

    assert compute_progress(units, True, smart_skip=True) == 50.0
    assert compute_progress(units, True, smart_skip=False) == 0.0


def test_reset_clears_everything():
    state = WorkflowState(
        status=WorkflowStatus.ERROR,
        units=[_unit()],
        assets={"a.png": b""},
        cover_path="a.png",
        progress=40.0,
        error_message="boom",
        output=b"zip",
    )

    state.reset()

    assert state.status == WorkflowStatus.IDLE
    assert state.units == []
    assert len(state.assets) == 0
    assert state.cover_path is None
    assert state.progress == 0.0
    assert state.error_message is None
    assert state.output is None
    assert state.is_parsed is False
