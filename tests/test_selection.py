"""Tests for selection state and pricing."""

from decimal import Decimal

import pytest

from conftest import JAZZ_DUO_ADULT, JAZZ_ENSEMBLE_ADULT, JAZZ_SOLO_ADULT
from festival.core.catalog import UnknownEventError
from festival.core.selection import SelectionState


class TestToggleSelection:
    """Tests for PricingEngine.toggle_selection"""

    def test_select_adds_with_default_count(self, pricing, state):
        assert pricing.toggle_selection(state, JAZZ_SOLO_ADULT) is True
        assert state.selected == [JAZZ_SOLO_ADULT]
        assert state.participant_counts == {JAZZ_SOLO_ADULT: 1}

    def test_ensemble_defaults_to_minimum(self, pricing, state):
        pricing.toggle_selection(state, JAZZ_ENSEMBLE_ADULT)
        assert state.participant_counts[JAZZ_ENSEMBLE_ADULT] == 4

    def test_toggle_twice_restores_state(self, pricing, state):
        pricing.toggle_selection(state, JAZZ_SOLO_ADULT)
        before = state.to_dict()

        pricing.toggle_selection(state, JAZZ_DUO_ADULT)
        assert pricing.toggle_selection(state, JAZZ_DUO_ADULT) is False

        assert state.to_dict() == before

    def test_selection_order_is_kept(self, pricing, state):
        for event_id in (JAZZ_DUO_ADULT, JAZZ_SOLO_ADULT, JAZZ_ENSEMBLE_ADULT):
            pricing.toggle_selection(state, event_id)
        assert state.selected == [JAZZ_DUO_ADULT, JAZZ_SOLO_ADULT, JAZZ_ENSEMBLE_ADULT]
        assert set(state.participant_counts) == set(state.selected)

    def test_unknown_id_is_accepted_but_cannot_be_priced(self, pricing, state):
        pricing.toggle_selection(state, "NAO_EXISTE")
        assert state.participant_counts["NAO_EXISTE"] == 1
        with pytest.raises(UnknownEventError):
            pricing.compute_total(state)


class TestSelectOnly:
    """Tests for PricingEngine.select_only"""

    def test_replaces_selection(self, pricing, state):
        pricing.toggle_selection(state, JAZZ_SOLO_ADULT)
        pricing.toggle_selection(state, JAZZ_DUO_ADULT)

        assert pricing.select_only(state, JAZZ_ENSEMBLE_ADULT) is True
        assert state.selected == [JAZZ_ENSEMBLE_ADULT]
        assert state.participant_counts == {JAZZ_ENSEMBLE_ADULT: 4}

    def test_selecting_the_only_event_again_clears(self, pricing, state):
        pricing.toggle_selection(state, JAZZ_SOLO_ADULT)
        assert pricing.select_only(state, JAZZ_SOLO_ADULT) is False
        assert state.is_empty()
        assert state.participant_counts == {}


class TestParticipantCount:
    """Tests for PricingEngine.set_participant_count"""

    def test_clamps_below_minimum(self, pricing, state):
        pricing.toggle_selection(state, JAZZ_ENSEMBLE_ADULT)
        pricing.set_participant_count(state, JAZZ_ENSEMBLE_ADULT, 2)
        assert state.participant_counts[JAZZ_ENSEMBLE_ADULT] == 4
        assert pricing.compute_event_price(state, JAZZ_ENSEMBLE_ADULT) == Decimal("180.00")

    def test_clamps_above_maximum(self, pricing, state):
        pricing.toggle_selection(state, JAZZ_ENSEMBLE_ADULT)
        pricing.set_participant_count(state, JAZZ_ENSEMBLE_ADULT, 50)
        assert state.participant_counts[JAZZ_ENSEMBLE_ADULT] == 20
        assert pricing.compute_event_price(state, JAZZ_ENSEMBLE_ADULT) == Decimal("900.00")

    def test_ignored_for_non_ensemble(self, pricing, state):
        pricing.toggle_selection(state, JAZZ_DUO_ADULT)
        pricing.set_participant_count(state, JAZZ_DUO_ADULT, 7)
        assert state.participant_counts[JAZZ_DUO_ADULT] == 1
        assert pricing.compute_event_price(state, JAZZ_DUO_ADULT) == Decimal("140.00")

    def test_ignored_for_unselected_event(self, pricing, state):
        pricing.set_participant_count(state, JAZZ_ENSEMBLE_ADULT, 8)
        assert state.participant_counts == {}

    def test_required_slots(self, pricing, state):
        pricing.toggle_selection(state, JAZZ_DUO_ADULT)
        pricing.toggle_selection(state, JAZZ_ENSEMBLE_ADULT)
        pricing.set_participant_count(state, JAZZ_ENSEMBLE_ADULT, 6)
        assert pricing.required_participant_slots(state, JAZZ_DUO_ADULT) == 2
        assert pricing.required_participant_slots(state, JAZZ_ENSEMBLE_ADULT) == 6


class TestPricing:
    """Tests for compute_event_price / compute_total"""

    def test_solo_price(self, pricing, state):
        pricing.toggle_selection(state, JAZZ_SOLO_ADULT)
        assert pricing.compute_event_price(state, JAZZ_SOLO_ADULT) == Decimal("80.00")

    def test_ensemble_is_charged_per_participant(self, pricing, state):
        pricing.toggle_selection(state, JAZZ_ENSEMBLE_ADULT)
        pricing.set_participant_count(state, JAZZ_ENSEMBLE_ADULT, 5)
        assert pricing.compute_event_price(state, JAZZ_ENSEMBLE_ADULT) == Decimal("225.00")

    def test_total_is_sum_of_event_prices(self, pricing, state):
        pricing.toggle_selection(state, JAZZ_SOLO_ADULT)
        pricing.toggle_selection(state, JAZZ_DUO_ADULT)
        pricing.toggle_selection(state, JAZZ_ENSEMBLE_ADULT)
        pricing.set_participant_count(state, JAZZ_ENSEMBLE_ADULT, 5)

        total = pricing.compute_total(state)
        assert total == sum(
            (pricing.compute_event_price(state, e) for e in state.selected), Decimal("0")
        )
        assert total == Decimal("445.00")

    def test_empty_total_is_zero(self, pricing, state):
        assert pricing.compute_total(state) == Decimal("0")

    def test_unknown_event_price_raises(self, pricing, state):
        with pytest.raises(UnknownEventError):
            pricing.compute_event_price(state, "NAO_EXISTE")


class TestSummarize:
    """Tests for PricingEngine.summarize"""

    def test_unique_styles_and_modalities(self, pricing, state):
        pricing.toggle_selection(state, JAZZ_SOLO_ADULT)
        pricing.toggle_selection(state, JAZZ_DUO_ADULT)
        pricing.toggle_selection(state, "BALLET_CLASSICO_CONJUNTO_SENIOR_15_19")

        summary = pricing.summarize(state)
        assert summary.count == 3
        assert summary.unique_styles == ["Jazz", "Ballet Clássico de Repertório"]
        assert summary.unique_modalities == ["Solo", "Duo", "Conjunto"]


class TestSelectionStateSerialization:
    """Tests for SelectionState.from_dict"""

    def test_counts_are_restricted_to_selected_ids(self):
        state = SelectionState.from_dict(
            {"selected": [JAZZ_SOLO_ADULT], "participant_counts": {JAZZ_SOLO_ADULT: 1, "SOBRA": 3}}
        )
        assert state.participant_counts == {JAZZ_SOLO_ADULT: 1}

    def test_repeated_ids_are_kept_once_in_order(self, pricing):
        state = SelectionState.from_dict(
            {
                "selected": [JAZZ_SOLO_ADULT, JAZZ_DUO_ADULT, JAZZ_SOLO_ADULT],
                "participant_counts": {JAZZ_SOLO_ADULT: 1, JAZZ_DUO_ADULT: 1},
            }
        )

        assert state.selected == [JAZZ_SOLO_ADULT, JAZZ_DUO_ADULT]
        assert pricing.compute_total(state) == Decimal("220.00")
