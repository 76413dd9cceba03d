# tests/test_filter_menu.py
# Filter menu actions drive the page session's filters

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest  # noqa: E402

from app.viewmodels.main_vm import MainVM  # noqa: E402
from app.views.components.filter_menu import FilterMenu, toggled  # noqa: E402
from core.models import FilterOptions, MediaType, ViewMode  # noqa: E402


@pytest.fixture
def source(page_source_factory, photos):
    src = page_source_factory(photos)
    src.options = FilterOptions(years=[2024, 2023], camera_makes=["Canon"])
    return src


@pytest.fixture
def vm(source, runner, notifier, scheduler):
    model = MainVM(source, runner, notifier, scheduler, mode=ViewMode.LIBRARY)
    model.load_page(0)
    return model


@pytest.fixture
def menu(qtbot, vm):
    widget = FilterMenu(vm)
    qtbot.addWidget(widget)
    return widget


def _submenu(menu, title):
    for action in menu.actions():
        if action.text() == title:
            return action.menu()
    raise AssertionError(f"no submenu {title}")


def _action(menu, text):
    return next(a for a in menu.actions() if a.text() == text)


def test_toggled_adds_and_removes():
    assert toggled((), 3) == (3,)
    assert toggled((1, 3), 3) == (1,)


def test_media_type_choice_reloads_with_filter(menu, vm, source):
    _action(_submenu(menu, "Media Type"), "Photos only").trigger()
    assert vm.filters.media_type is MediaType.PHOTOS
    assert source.filters_seen[-1].media_type is MediaType.PHOTOS


def test_year_values_come_from_options_and_toggle(menu, vm):
    years = _submenu(menu, "Year")
    assert [a.text() for a in years.actions()] == ["2024", "2023"]
    _action(years, "2023").trigger()
    assert vm.filters.years == (2023,)
    _action(years, "2023").trigger()
    assert vm.filters.years == ()


def test_title_counts_active_values_and_clear_resets(menu, vm):
    assert not _action(menu, "Clear Filters").isEnabled()
    _action(_submenu(menu, "Camera Make"), "Canon").trigger()
    menu.rebuild()
    assert menu.title() == "Filter (1)"
    _action(menu, "Clear Filters").trigger()
    assert not vm.has_filters
    menu.refresh_title()
    assert menu.title() == "Filter"


def test_empty_option_list_shows_placeholder(menu):
    cities = _submenu(menu, "City")
    (placeholder,) = cities.actions()
    assert placeholder.text() == "(none)"
    assert not placeholder.isEnabled()
