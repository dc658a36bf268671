"""Pure reducer tests for the cascading selector.

No event loop and no provider: every test feeds events into `reduce`
and inspects the resulting state.
"""

import pytest

from vehicle_fitment.core.enums import Level, LevelStatus
from vehicle_fitment.core.errors import InvalidOptionError
from vehicle_fitment.models.vehicle import Option
from vehicle_fitment.services.selector.state import (
    Clear,
    Failed,
    Idle,
    Loaded,
    LoadRoot,
    Loading,
    OptionsFailed,
    OptionsLoaded,
    Retry,
    Select,
    Selected,
    SelectorState,
    reduce,
)

BRANDS = (
    Option(id="bmw", label="BMW"),
    Option(id="audi", label="Audi"),
)
BMW_MODELS = (
    Option(id="bmw/3", label="3 Series", parent_id="bmw"),
    Option(id="bmw/5", label="5 Series", parent_id="bmw"),
)
AUDI_MODELS = (Option(id="audi/a4", label="A4", parent_id="audi"),)
SERIES_3_YEARS = (
    Option(id="bmw/3/2015", label="2015", parent_id="bmw/3", year=2015),
    Option(id="bmw/3/2014", label="2014", parent_id="bmw/3", year=2014),
)
SERIES_3_2015_ENGINES = (
    Option(id="bmw/3/2015/320d", label="320d", parent_id="bmw/3/2015", code="B47D20"),
)


def loaded(state: SelectorState, level: Level, options) -> SelectorState:
    """Resolve the pending fetch for `level` with `options`."""
    request = state.pending_request(level)
    assert request is not None
    return reduce(state, OptionsLoaded(level=level, token=request.token, options=options))


def with_brands() -> SelectorState:
    return loaded(reduce(SelectorState.initial(), LoadRoot()), Level.BRAND, BRANDS)


def with_bmw_3_series() -> SelectorState:
    state = reduce(with_brands(), Select(Level.BRAND, "bmw"))
    state = loaded(state, Level.MODEL, BMW_MODELS)
    return reduce(state, Select(Level.MODEL, "bmw/3"))


# =============================================================================
# Initial state and loading
# =============================================================================


class TestInitial:
    def test_everything_idle(self):
        state = SelectorState.initial()
        assert all(isinstance(s, Idle) for s in state.levels)
        assert state.selection.is_empty
        assert state.is_step_enabled(Level.BRAND)
        assert not state.is_step_enabled(Level.MODEL)

    def test_load_root_starts_brand_fetch(self):
        state = reduce(SelectorState.initial(), LoadRoot())
        assert state.status_for(Level.BRAND) is LevelStatus.LOADING
        request = state.pending_request(Level.BRAND)
        assert request.parent_id is None
        assert request.token == 1

    def test_brand_options_loaded(self):
        state = with_brands()
        assert state.status_for(Level.BRAND) is LevelStatus.LOADED
        assert state.options_for(Level.BRAND) == BRANDS
        assert state.pending_request(Level.BRAND) is None


# =============================================================================
# Selection cascade
# =============================================================================


class TestSelect:
    def test_select_brand_loads_models(self):
        state = reduce(with_brands(), Select(Level.BRAND, "bmw"))
        assert isinstance(state.level_state(Level.BRAND), Selected)
        assert state.selection.brand.label == "BMW"
        assert state.pending_request(Level.MODEL).parent_id == "bmw"
        assert state.status_for(Level.YEAR) is LevelStatus.IDLE

    def test_full_cascade(self):
        state = with_bmw_3_series()
        state = loaded(state, Level.YEAR, SERIES_3_YEARS)
        state = reduce(state, Select(Level.YEAR, "bmw/3/2015"))
        state = loaded(state, Level.ENGINE, SERIES_3_2015_ENGINES)
        state = reduce(state, Select(Level.ENGINE, "bmw/3/2015/320d"))
        assert state.is_complete
        assert state.selection.path() == "BMW > 3 Series > 2015 > 320d"
        # Nothing below ENGINE to load
        assert all(state.pending_request(lvl) is None for lvl in Level)

    def test_reselecting_upper_level_resets_deeper_levels(self):
        state = loaded(with_bmw_3_series(), Level.YEAR, SERIES_3_YEARS)
        state = reduce(state, Select(Level.YEAR, "bmw/3/2015"))

        state = reduce(state, Select(Level.BRAND, "audi"))
        assert state.selection.brand.id == "audi"
        assert state.selection.model is None
        assert state.status_for(Level.MODEL) is LevelStatus.LOADING
        assert isinstance(state.level_state(Level.YEAR), Idle)
        assert isinstance(state.level_state(Level.ENGINE), Idle)

    def test_reselect_same_option_refetches_children(self):
        state = with_bmw_3_series()
        before = state.pending_request(Level.YEAR).token
        state = reduce(state, Select(Level.MODEL, "bmw/3"))
        assert state.pending_request(Level.YEAR).token == before + 1

    def test_select_keeps_level_options(self):
        state = reduce(with_brands(), Select(Level.BRAND, "audi"))
        assert state.options_for(Level.BRAND) == BRANDS

    def test_numeric_ids_are_accepted(self):
        state = loaded(
            reduce(SelectorState.initial(), LoadRoot()),
            Level.BRAND,
            (Option(id=7, label="Skoda"),),
        )
        state = reduce(state, Select(Level.BRAND, 7))  # type: ignore[arg-type]
        assert state.selection.brand.id == "7"


class TestInvalidSelect:
    def test_unknown_option(self):
        with pytest.raises(InvalidOptionError) as exc:
            reduce(with_brands(), Select(Level.BRAND, "lada"))
        assert exc.value.level is Level.BRAND
        assert exc.value.option_id == "lada"

    def test_level_without_selected_parent(self):
        with pytest.raises(InvalidOptionError, match="brand is not selected"):
            reduce(with_brands(), Select(Level.MODEL, "bmw/3"))

    def test_level_still_loading(self):
        state = reduce(with_brands(), Select(Level.BRAND, "bmw"))
        with pytest.raises(InvalidOptionError, match="not loaded"):
            reduce(state, Select(Level.MODEL, "bmw/3"))

    def test_year_option_without_a_year(self):
        state = loaded(with_bmw_3_series(), Level.YEAR, (
            Option(id="bmw/3/facelift", label="2015/2016", parent_id="bmw/3"),
        ))
        with pytest.raises(InvalidOptionError, match="no model year"):
            reduce(state, Select(Level.YEAR, "bmw/3/facelift"))
        assert state.selection.year is None

    def test_option_from_another_parent(self):
        state = reduce(with_brands(), Select(Level.BRAND, "bmw"))
        state = loaded(state, Level.MODEL, BMW_MODELS + AUDI_MODELS)
        with pytest.raises(InvalidOptionError, match="different parent"):
            reduce(state, Select(Level.MODEL, "audi/a4"))

    def test_failed_select_leaves_state_untouched(self):
        state = with_brands()
        with pytest.raises(InvalidOptionError):
            reduce(state, Select(Level.BRAND, "lada"))
        assert state.options_for(Level.BRAND) == BRANDS
        assert state.selection.is_empty

    def test_invalid_option_is_a_value_error(self):
        with pytest.raises(ValueError):
            reduce(with_brands(), Select(Level.BRAND, "lada"))


# =============================================================================
# Stale responses
# =============================================================================


class TestStaleResponses:
    def test_superseded_response_is_dropped(self):
        state = reduce(with_brands(), Select(Level.BRAND, "bmw"))
        bmw_request = state.pending_request(Level.MODEL)
        state = reduce(state, Select(Level.BRAND, "audi"))
        audi_request = state.pending_request(Level.MODEL)

        # Audi answers first, then the slow BMW answer arrives
        state = reduce(
            state, OptionsLoaded(Level.MODEL, audi_request.token, AUDI_MODELS)
        )
        after = reduce(state, OptionsLoaded(Level.MODEL, bmw_request.token, BMW_MODELS))
        assert after is state
        assert after.options_for(Level.MODEL) == AUDI_MODELS

    def test_stale_failure_is_dropped(self):
        state = reduce(with_brands(), Select(Level.BRAND, "bmw"))
        old = state.pending_request(Level.MODEL).token
        state = reduce(state, Select(Level.BRAND, "audi"))
        assert reduce(state, OptionsFailed(Level.MODEL, old, "timeout")) is state

    def test_response_after_clear_is_dropped(self):
        state = reduce(SelectorState.initial(), LoadRoot())
        token = state.pending_request(Level.BRAND).token
        state = reduce(state, Clear())
        assert reduce(state, OptionsLoaded(Level.BRAND, token, BRANDS)) is state

    def test_duplicate_response_is_dropped(self):
        state = reduce(SelectorState.initial(), LoadRoot())
        token = state.pending_request(Level.BRAND).token
        state = reduce(state, OptionsLoaded(Level.BRAND, token, BRANDS))
        assert reduce(state, OptionsLoaded(Level.BRAND, token, ())) is state

    def test_deeper_tokens_bumped_on_select(self):
        state = with_bmw_3_series()
        tokens = state.tokens
        state = reduce(state, Select(Level.BRAND, "bmw"))
        assert all(new > old for new, old in zip(state.tokens[1:], tokens[1:]))
        assert state.tokens[0] == tokens[0]


# =============================================================================
# Errors, retry and clear
# =============================================================================


class TestFailureAndRetry:
    def test_failure_marks_level_error(self):
        state = reduce(with_brands(), Select(Level.BRAND, "bmw"))
        token = state.pending_request(Level.MODEL).token
        state = reduce(state, OptionsFailed(Level.MODEL, token, "vehicle data is unavailable"))
        assert state.status_for(Level.MODEL) is LevelStatus.ERROR
        assert state.error_for(Level.MODEL) == "vehicle data is unavailable"
        assert isinstance(state.level_state(Level.MODEL), Failed)
        # Upper selection survives the failure
        assert state.selection.brand.id == "bmw"

    def test_retry_reissues_with_fresh_token(self):
        state = reduce(with_brands(), Select(Level.BRAND, "bmw"))
        token = state.pending_request(Level.MODEL).token
        state = reduce(state, OptionsFailed(Level.MODEL, token, "boom"))
        state = reduce(state, Retry(Level.MODEL))
        request = state.pending_request(Level.MODEL)
        assert request.token == token + 1
        assert request.parent_id == "bmw"
        assert state.error_for(Level.MODEL) is None

    def test_retry_brand(self):
        state = reduce(SelectorState.initial(), LoadRoot())
        token = state.pending_request(Level.BRAND).token
        state = reduce(state, OptionsFailed(Level.BRAND, token, "boom"))
        state = reduce(state, Retry(Level.BRAND))
        assert state.status_for(Level.BRAND) is LevelStatus.LOADING

    def test_retry_without_selected_parent_does_nothing(self):
        state = with_brands()
        assert reduce(state, Retry(Level.YEAR)) is state


class TestClear:
    def test_clear_resets_every_level(self):
        state = loaded(with_bmw_3_series(), Level.YEAR, SERIES_3_YEARS)
        cleared = reduce(state, Clear())
        assert all(isinstance(s, Idle) for s in cleared.levels)
        assert cleared.selection.is_empty
        assert all(new > old for new, old in zip(cleared.tokens, state.tokens))


# =============================================================================
# Illegal states
# =============================================================================


class TestIllegalStates:
    def test_loaded_child_under_unselected_parent(self):
        with pytest.raises(ValueError, match="model is loaded while brand is not selected"):
            SelectorState(
                levels=(Loaded(BRANDS), Loaded(BMW_MODELS), Idle(), Idle()),
                tokens=(1, 1, 0, 0),
            )

    def test_selected_option_must_be_listed(self):
        with pytest.raises(ValueError, match="not among its options"):
            SelectorState(
                levels=(Selected(BRANDS[0], BRANDS[1:]), Idle(), Idle(), Idle()),
                tokens=(1, 0, 0, 0),
            )

    def test_wrong_number_of_levels(self):
        with pytest.raises(ValueError):
            SelectorState(levels=(Idle(),), tokens=(0,))

    def test_loading_child_under_selected_parent_is_fine(self):
        state = SelectorState(
            levels=(Selected(BRANDS[0], BRANDS), Loading(1, "bmw"), Idle(), Idle()),
            tokens=(1, 1, 0, 0),
        )
        assert state.selection.brand == BRANDS[0]
