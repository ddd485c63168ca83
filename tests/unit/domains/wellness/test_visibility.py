"""Tests for the stage visibility table."""

from __future__ import annotations

import pytest

from bloom.domains.wellness.pages.catalog import PAGE_IDS
from bloom.domains.wellness.visibility import (
    VISIBILITY,
    Stage,
    UnknownStageError,
    has_journey_panel,
    is_page_visible,
    is_tab_visible,
    visible_pages,
)


class TestTable:
    def test_every_stage_has_a_rule(self):
        assert set(VISIBILITY) == set(Stage)

    def test_trying_to_conceive_pages(self):
        assert visible_pages(Stage.TRYING_TO_CONCEIVE) == (
            "mood-tracker",
            "sleep-tracker",
            "medicine-tracker",
        )

    def test_incubator_sees_everything(self):
        assert visible_pages(Stage.INCUBATOR) == PAGE_IDS
        assert len(visible_pages(Stage.INCUBATOR)) == 7

    def test_veteran_pages(self):
        assert visible_pages(Stage.VETERAN) == (
            "mood-tracker",
            "sleep-tracker",
            "doctor-appointment",
            "medicine-tracker",
            "personal-reminder",
        )

    @pytest.mark.parametrize("stage", list(Stage))
    def test_visible_pages_follow_catalog_order(self, stage):
        pages = visible_pages(stage)
        assert list(pages) == sorted(pages, key=PAGE_IDS.index)

    def test_is_page_visible(self):
        assert is_page_visible(Stage.VETERAN, "doctor-appointment")
        assert not is_page_visible(Stage.VETERAN, "symptoms-tracker")
        assert not is_page_visible(Stage.TRYING_TO_CONCEIVE, "medical-test")


class TestPanelsAndTabs:
    def test_journey_panel_only_for_incubator(self):
        assert has_journey_panel(Stage.INCUBATOR)
        assert not has_journey_panel(Stage.TRYING_TO_CONCEIVE)
        assert not has_journey_panel(Stage.VETERAN)

    def test_overview_tabs(self):
        assert is_tab_visible(Stage.VETERAN, "tasks")
        assert not is_tab_visible(Stage.VETERAN, "journey")


class TestStageParsing:
    def test_parse_known(self):
        assert Stage.parse("Veteran Stage") is Stage.VETERAN

    def test_parse_unknown(self):
        with pytest.raises(UnknownStageError):
            Stage.parse("Toddler Stage")

    def test_unknown_stage_is_value_error(self):
        with pytest.raises(ValueError):
            Stage.parse("")
