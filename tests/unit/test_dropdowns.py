"""Unit tests for select option choice, expansion strategies and the dropdown interactor."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from serpharvest.browser.dropdowns import (
    DEFAULT_STRATEGIES,
    DropdownInteractor,
    choose_select_values,
    compile_select_all_pattern,
    forced_click,
    keyboard_activate,
    preferred_index,
    script_click,
)
from serpharvest.browser.extraction import LinkFilter
from serpharvest.models.search import LinkSource, SelectOption
from serpharvest.settings.config import EnrichmentSettings


SELECT_ALL = compile_select_all_pattern("all|semua|seluruh")


def options(*labels: str) -> list[SelectOption]:
    return [SelectOption(value=label.lower().replace(" ", "-"), label=label) for label in labels]


def raw(*urls: str) -> list[dict[str, str]]:
    return [{"url": u, "text": u.rsplit("/", 1)[-1] or u} for u in urls]


# ---------------------------------------------------------------------------
# choose_select_values
# ---------------------------------------------------------------------------


class TestChooseSelectValues:
    def test_multi_select_takes_every_option(self):
        opts = options("2023", "2022", "2021")
        assert choose_select_values(opts, multiple=True, select_all=SELECT_ALL) == ["2023", "2022", "2021"]

    def test_single_select_prefers_all_option(self):
        opts = options("2023", "All Years", "2021")
        assert choose_select_values(opts, multiple=False, select_all=SELECT_ALL) == ["all-years"]

    @pytest.mark.parametrize("label", ["Semua Tahun", "SELURUH", "all"])
    def test_indonesian_and_case_insensitive_labels(self, label):
        opts = options("2023", label)
        assert choose_select_values(opts, multiple=False, select_all=SELECT_ALL) == [opts[1].value]

    def test_falls_back_to_last_option(self):
        opts = options("2023", "2022", "2021")
        assert choose_select_values(opts, multiple=False, select_all=SELECT_ALL) == ["2021"]

    def test_word_boundary_avoids_partial_matches(self):
        opts = options("Small cap", "Tallinn", "2021")
        assert choose_select_values(opts, multiple=False, select_all=SELECT_ALL) == ["2021"]

    def test_empty_options(self):
        assert choose_select_values([], multiple=False, select_all=SELECT_ALL) == []

    def test_preferred_index_first_match_wins(self):
        assert preferred_index(["2023", "Semua", "All"], SELECT_ALL) == 1

    def test_preferred_index_defaults_to_last(self):
        assert preferred_index(["2023", "2022"], SELECT_ALL) == 1


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


class TestStrategies:
    def test_default_order(self):
        assert [name for name, _ in DEFAULT_STRATEGIES] == ["script_click", "forced_click", "keyboard"]

    def test_script_click(self, fake_page):
        element = MagicMock()
        assert script_click(fake_page, element) is True
        element.evaluate.assert_called_once_with("(el) => el.click()")

    def test_forced_click_raises_container_then_clicks(self, fake_page):
        element = MagicMock()
        assert forced_click(fake_page, element) is True
        assert "zIndex" in element.evaluate.call_args.args[0]
        element.click.assert_called_once_with(force=True, timeout=2000)

    def test_keyboard_activate(self, fake_page):
        element = MagicMock()
        assert keyboard_activate(fake_page, element) is True
        element.focus.assert_called_once()
        fake_page.keyboard.press.assert_called_once_with("Enter")


# ---------------------------------------------------------------------------
# DropdownInteractor
# ---------------------------------------------------------------------------


def make_trigger(expanded_after: int | None = 1, visible: bool = True) -> MagicMock:
    """A trigger whose ``aria-expanded`` flips to true on the *expanded_after*-th check."""
    trigger = MagicMock(name="trigger")
    trigger.evaluate.return_value = "div"
    trigger.is_visible.return_value = visible
    checks = {"n": 0}

    def get_attribute(name):
        checks["n"] += 1
        if expanded_after is not None and checks["n"] >= expanded_after:
            return "true"
        return "false"

    trigger.get_attribute.side_effect = get_attribute
    return trigger


@pytest.fixture()
def page(fake_page) -> MagicMock:
    fake_page.evaluate.return_value = 0
    fake_page.query_selector_all.return_value = []
    return fake_page


def wire(page: MagicMock, selects=(), triggers=(), checkboxes=(), items=()) -> None:
    defaults = EnrichmentSettings()
    routes = {
        "select": selects,
        defaults.menu_checkbox_selector: checkboxes,
        ", ".join(defaults.menu_item_selectors): items,
    }
    page.query_selector_all.side_effect = lambda sel: list(routes.get(sel, triggers))


def make_item(label: str, visible: bool = True) -> MagicMock:
    item = MagicMock(name=f"item:{label}")
    item.inner_text.return_value = label
    item.is_visible.return_value = visible
    return item


@pytest.fixture()
def link_filter() -> LinkFilter:
    return LinkFilter.from_lists(["google.com"])


class TestDropdownInteractor:
    def test_multi_select_selects_everything_and_tags_links(self, page, make_capability, link_filter):
        select = MagicMock(name="select")
        capability = make_capability(
            batches=[raw("https://a.com/base"), raw("https://a.com/base", "https://a.com/2021.pdf")],
            options={select: options("2023", "2022", "2021")},
            multiple={select: True},
        )
        wire(page, selects=[select])

        harvest = DropdownInteractor(capability, link_filter).harvest(page)

        select.select_option.assert_called_once_with(value=["2023", "2022", "2021"], timeout=2000)
        assert harvest.selects_handled == 1
        assert [(r.url, r.source) for r in harvest.links] == [("https://a.com/2021.pdf", LinkSource.SELECT)]

    def test_single_select_chooses_all_option(self, page, make_capability, link_filter):
        select = MagicMock(name="select")
        capability = make_capability(options={select: options("2023", "All Years")})
        wire(page, selects=[select])

        DropdownInteractor(capability, link_filter).harvest(page)

        select.select_option.assert_called_once_with(value=["all-years"], timeout=2000)

    def test_select_without_options_is_skipped(self, page, make_capability, link_filter):
        select = MagicMock(name="select")
        wire(page, selects=[select])

        harvest = DropdownInteractor(make_capability(), link_filter).harvest(page)

        select.select_option.assert_not_called()
        assert harvest.selects_handled == 0

    def test_select_failure_is_isolated(self, page, make_capability, link_filter):
        broken, good = MagicMock(name="broken"), MagicMock(name="good")
        broken.select_option.side_effect = Exception("detached")
        capability = make_capability(options={broken: options("A"), good: options("B")})
        wire(page, selects=[broken, good])

        harvest = DropdownInteractor(capability, link_filter).harvest(page)

        good.select_option.assert_called_once()
        assert harvest.selects_handled == 1

    def test_expanded_trigger_contributes_dropdown_links(self, page, make_capability, link_filter):
        trigger = make_trigger(expanded_after=1)
        capability = make_capability(batches=[raw("https://a.com/"), raw("https://a.com/", "https://b.com/menu")])
        wire(page, triggers=[trigger])

        harvest = DropdownInteractor(capability, link_filter).harvest(page)

        assert harvest.triggers_expanded == 1
        assert [(r.url, r.source) for r in harvest.links] == [("https://b.com/menu", LinkSource.DROPDOWN)]
        page.keyboard.press.assert_called_with("Escape")

    def test_hidden_and_native_select_triggers_are_skipped(self, page, make_capability, link_filter):
        hidden = make_trigger(visible=False)
        native = make_trigger()
        native.evaluate.return_value = "select"
        wire(page, triggers=[hidden, native])

        harvest = DropdownInteractor(make_capability(), link_filter).harvest(page)

        assert harvest.triggers_expanded == harvest.triggers_failed == 0
        hidden.get_attribute.assert_not_called()
        native.get_attribute.assert_not_called()

    def test_trigger_error_is_isolated(self, page, make_capability, link_filter):
        broken = make_trigger()
        broken.is_visible.side_effect = Exception("element detached")
        good = make_trigger(expanded_after=1)
        wire(page, triggers=[broken, good])

        harvest = DropdownInteractor(make_capability(), link_filter).harvest(page)

        assert harvest.triggers_failed == 1
        assert harvest.triggers_expanded == 1

    def test_trigger_cap(self, page, make_capability, link_filter):
        triggers = [make_trigger() for _ in range(5)]
        wire(page, triggers=triggers)
        settings = EnrichmentSettings(max_triggers=2)

        harvest = DropdownInteractor(make_capability(), link_filter, settings).harvest(page)

        assert harvest.triggers_expanded == 2
        triggers[2].is_visible.assert_not_called()


class TestExpandTrigger:
    def _interactor(self, make_capability, link_filter, strategies):
        return DropdownInteractor(make_capability(), link_filter, strategies=strategies)

    def test_falls_through_until_expanded(self, page, make_capability, link_filter):
        calls = []

        def make(name):
            def strategy(p, el):
                calls.append(name)
                return True
            return name, strategy

        trigger = make_trigger(expanded_after=2)
        interactor = self._interactor(make_capability, link_filter, [make("first"), make("second"), make("third")])

        assert interactor.expand_trigger(page, trigger) == "second"
        assert calls == ["first", "second"]
        assert page.wait_for_timeout.call_count == 2

    def test_raising_strategy_falls_back(self, page, make_capability, link_filter):
        def broken(p, el):
            raise Exception("not clickable")

        trigger = make_trigger(expanded_after=1)
        interactor = self._interactor(
            make_capability, link_filter, [("broken", broken), ("ok", lambda p, el: True)]
        )

        assert interactor.expand_trigger(page, trigger) == "ok"

    def test_menu_count_increase_counts_as_expanded(self, page, make_capability, link_filter):
        trigger = make_trigger(expanded_after=None)
        page.evaluate.side_effect = [0, 1]
        interactor = self._interactor(make_capability, link_filter, [("only", lambda p, el: True)])

        assert interactor.expand_trigger(page, trigger) == "only"

    def test_none_when_no_strategy_expands(self, page, make_capability, link_filter):
        trigger = make_trigger(expanded_after=None)
        interactor = self._interactor(make_capability, link_filter, DEFAULT_STRATEGIES)

        assert interactor.expand_trigger(page, trigger) is None
        assert page.wait_for_timeout.call_count == 3


class TestApplyMenu:
    def test_visible_checkboxes_are_ticked(self, page, make_capability, link_filter):
        trigger = make_trigger(expanded_after=1)
        shown, other, hidden = make_item("2023"), make_item("2022"), make_item("x", visible=False)
        capability = make_capability(
            batches=[raw("https://a.com/"), raw("https://a.com/"), raw("https://a.com/", "https://a.com/2022.pdf")]
        )
        wire(page, triggers=[trigger], checkboxes=[shown, other, hidden])

        harvest = DropdownInteractor(capability, link_filter).harvest(page)

        shown.check.assert_called_once_with(timeout=2000)
        other.check.assert_called_once_with(timeout=2000)
        hidden.check.assert_not_called()
        assert harvest.menus_applied == 1
        assert [(r.url, r.source) for r in harvest.links] == [("https://a.com/2022.pdf", LinkSource.DROPDOWN)]
        page.wait_for_load_state.assert_called_with("networkidle", timeout=5000)

    def test_all_item_preferred(self, page, make_capability, link_filter):
        items = [make_item("2023"), make_item("Semua Tahun"), make_item("2021")]
        wire(page, items=items)

        assert DropdownInteractor(make_capability(), link_filter).apply_menu(page) is True

        items[1].click.assert_called_once_with(timeout=2000)
        items[0].click.assert_not_called()
        items[2].click.assert_not_called()

    def test_last_visible_item_fallback(self, page, make_capability, link_filter):
        items = [make_item("2023"), make_item("2022"), make_item("2021", visible=False)]
        wire(page, items=items)

        assert DropdownInteractor(make_capability(), link_filter).apply_menu(page) is True

        items[1].click.assert_called_once_with(timeout=2000)

    def test_checkboxes_take_precedence_over_items(self, page, make_capability, link_filter):
        checkbox, item = make_item("A"), make_item("All")
        wire(page, checkboxes=[checkbox], items=[item])

        DropdownInteractor(make_capability(), link_filter).apply_menu(page)

        checkbox.check.assert_called_once()
        item.click.assert_not_called()

    def test_nothing_to_apply(self, page, make_capability, link_filter):
        wire(page)

        assert DropdownInteractor(make_capability(), link_filter).apply_menu(page) is False
        page.wait_for_load_state.assert_not_called()

    def test_apply_failure_keeps_expansion_links(self, page, make_capability, link_filter):
        trigger = make_trigger(expanded_after=1)
        item = make_item("2023")
        item.click.side_effect = Exception("intercepted")
        capability = make_capability(batches=[raw("https://a.com/"), raw("https://a.com/", "https://b.com/menu")])
        wire(page, triggers=[trigger], items=[item])

        harvest = DropdownInteractor(capability, link_filter).harvest(page)

        assert harvest.triggers_failed == 1
        assert harvest.menus_applied == 0
        assert [r.url for r in harvest.links] == ["https://b.com/menu"]
