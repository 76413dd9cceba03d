"""Tests for click selection, ranges and index bookkeeping."""

import pytest

from core.services.selection_service import Modifiers, SelectionModel


def test_plain_click_replaces_selection_and_sets_anchor():
    sel = SelectionModel([1, 2, 3])
    assert sel.click(5) == {5}
    assert sel.anchor == 5
    assert sel.current == 5


def test_ctrl_click_twice_is_identity():
    sel = SelectionModel([1, 4])
    before = sel.indices
    sel.click(7, Modifiers.CTRL)
    assert 7 in sel
    sel.click(7, Modifiers.CTRL)
    assert sel.indices == before


def test_meta_click_toggles_like_ctrl():
    sel = SelectionModel([2])
    sel.click(3, Modifiers.META)
    assert sel.indices == {2, 3}


@pytest.mark.parametrize("anchor,target", [(2, 7), (7, 2)])
def test_shift_click_range_is_order_independent(anchor, target):
    sel = SelectionModel()
    sel.click(anchor)
    sel.click(target, Modifiers.SHIFT)
    assert sel.indices == {2, 3, 4, 5, 6, 7}
    assert sel.anchor == anchor


def test_shift_without_anchor_is_plain_click():
    sel = SelectionModel()
    assert sel.click(4, Modifiers.SHIFT) == {4}
    assert sel.anchor == 4


def test_shift_takes_priority_over_ctrl():
    sel = SelectionModel()
    sel.click(1)
    sel.click(3, Modifiers.SHIFT | Modifiers.CTRL)
    assert sel.indices == {1, 2, 3}


def test_range_respects_visibility():
    sel = SelectionModel()
    sel.select_range(0, 5, is_visible=lambda i: i not in (3, 4))
    assert sel.indices == {0, 1, 2, 5}


def test_current_requires_single_selection():
    sel = SelectionModel([1, 2])
    assert sel.current is None
    assert sel.ordered == [1, 2]


class TestToggleRange:
    def test_selects_when_partially_selected(self):
        sel = SelectionModel([0, 4])
        assert sel.toggle_range([4, 5, 6]) is True
        assert sel.indices == {0, 4, 5, 6}

    def test_deselects_when_fully_selected_and_keeps_others(self):
        sel = SelectionModel([0, 4, 5, 6])
        assert sel.toggle_range([4, 5, 6]) is False
        assert sel.indices == {0}

    def test_empty_range_is_noop(self):
        sel = SelectionModel([1])
        assert sel.toggle_range([]) is False
        assert sel.indices == {1}


class TestRemoveIndex:
    def test_later_indices_shift_down(self):
        sel = SelectionModel([1, 5, 8])
        sel.remove_index(5)
        assert sel.indices == {1, 7}

    def test_anchor_follows_its_photo(self):
        sel = SelectionModel()
        sel.click(6)
        sel.remove_index(2)
        assert sel.anchor == 5
        sel.remove_index(5)
        assert sel.anchor is None


class _Resolver:
    def to_visible(self, index):
        return 3 if 3 <= index < 6 else index


def test_resolve_hidden_collapses_onto_stack():
    sel = SelectionModel([1, 4, 5])
    sel.resolve_hidden(_Resolver())
    assert sel.ordered == [1, 3]
