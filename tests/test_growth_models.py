"""
Tests for the diameter growth, height growth and crown recession equations.
"""
import math

import pytest

from pyacd import crown_recession, diameter_growth, height_growth
from pyacd.crown_width import largest_crown_width, max_crown_width
from pyacd.exceptions import InvalidParameterError
from pyacd.growth_parameters import StandConditions, ThinningEvent
from pyacd.tree import Tree


def conditions(**overrides):
    values = dict(region='ME', region_indicator=0, year=2020, csi=16.0, cdef=-1.0, ba=20.0,
                  ccf=150.0, topht=15.0, average_dbh_10_sw=18.0, average_height_sw=12.0)
    values.update(overrides)
    return StandConditions(**values)


def thinning(year=2015, pct=0.3):
    return ThinningEvent(year=year, percent_ba_removed=pct, ba_pre_thin=30.0, qmd_ratio=1.1)


@pytest.fixture
def host_tree(resolver):
    tree = Tree(1, 1, 12, 18.0, height=14.0, tph=50.0, crown_ratio=0.5, resolver=resolver)
    tree.bal = 8.0
    tree.bal_sw = 5.0
    tree.bal_hw = 3.0
    return tree


# =============================================================================
# Thinning events
# =============================================================================

class TestThinningEvent:

    @pytest.mark.parametrize("pct", [
        pytest.param(0.0, id="zero"),
        pytest.param(-0.1, id="negative"),
        pytest.param(1.5, id="above_one"),
    ])
    def test_removed_fraction_validated(self, pct):
        with pytest.raises(InvalidParameterError):
            thinning(pct=pct)

    def test_timing(self):
        event = thinning(year=2015)
        assert not event.occurred_by(2014)
        assert event.occurred_by(2015)
        assert event.years_since(2020) == 5

    def test_conditions_gate_thinning(self):
        event = thinning()
        assert conditions(thinning=event).active_thinning() is None
        assert conditions(thinning=event, use_thin_mod=True).active_thinning() is event

    def test_sbw_gate(self):
        assert not conditions(use_sbw_mod=True).sbw_active
        assert conditions(use_sbw_mod=True, cdef=20.0).sbw_active
        assert not conditions(cdef=20.0).sbw_active


# =============================================================================
# Diameter growth
# =============================================================================

class TestDiameterGrowth:

    def test_base_increment(self, balsam_fir_tree):
        p = balsam_fir_tree.params.ddbh
        log_dbh = math.log(11.0)
        expected = math.exp(p[0] + p[1] * log_dbh + p[2] * 10.0 + p[3] * math.log(0.6)
                            + p[5] * math.log(16.0))
        assert diameter_growth.base_increment(balsam_fir_tree, 16.0) == pytest.approx(expected)

    def test_competition_reduces_growth(self, balsam_fir_tree):
        free = diameter_growth.base_increment(balsam_fir_tree, 16.0)
        balsam_fir_tree.bal = 20.0
        assert diameter_growth.base_increment(balsam_fir_tree, 16.0) < free

    def test_zero_crown_ratio_is_floored(self, resolver):
        tree = Tree(1, 1, 12, 10.0, height=8.0, tph=10.0, crown_ratio=0.0, resolver=resolver)
        assert diameter_growth.base_increment(tree, 16.0) > 0.0

    @pytest.mark.parametrize("year,low,high", [
        pytest.param(2015, 1.0, 1.0, id="thinning_year"),
        pytest.param(2020, 1.25, 1.25, id="capped"),
        pytest.param(2035, 1.0, 1.25, id="fading"),
        pytest.param(2010, 1.0, 1.0, id="before_thinning"),
    ])
    def test_thinning_modifier(self, year, low, high):
        modifier = diameter_growth.thinning_modifier(12, thinning(), year)
        assert low <= modifier <= high

    def test_thinning_modifier_other_species(self):
        assert diameter_growth.thinning_modifier(316, thinning(), 2020) == 1.0

    def test_sbw_modifier_ratio(self, host_tree):
        modifier = diameter_growth.sbw_modifier(host_tree, 'ME', 18.0, 15.0, 50.0)
        assert modifier == pytest.approx(math.exp(-0.0016 * 50.0))

    @pytest.mark.parametrize("cdef,avg_dbh", [
        pytest.param(-1.0, 18.0, id="no_defoliation"),
        pytest.param(50.0, 0.0, id="no_large_softwoods"),
    ])
    def test_sbw_modifier_neutral(self, host_tree, cdef, avg_dbh):
        assert diameter_growth.sbw_modifier(host_tree, 'ME', avg_dbh, 15.0, cdef) == 1.0

    def test_sbw_modifier_non_host(self, red_maple_tree):
        assert diameter_growth.sbw_modifier(red_maple_tree, 'ME', 18.0, 15.0, 50.0) == 1.0

    def test_form_risk_modifier(self, red_maple_tree):
        # form 2 is class B, risk 3 is high risk
        expected = math.exp(-0.0250 - 0.2176)
        assert diameter_growth.form_risk_modifier(red_maple_tree) == pytest.approx(expected)

    def test_form_risk_modifier_invalid_codes(self, resolver):
        tree = Tree(1, 1, 316, 20.0, height=15.0, tph=25.0, form=9, risk=1, resolver=resolver)
        assert diameter_growth.form_risk_modifier(tree) == 1.0

    def test_increment_applies_enabled_modifiers(self, red_maple_tree):
        base = diameter_growth.diameter_increment(red_maple_tree, conditions())
        with_hw = diameter_growth.diameter_increment(red_maple_tree, conditions(use_hw_mod=True))
        assert with_hw == pytest.approx(base * diameter_growth.form_risk_modifier(red_maple_tree))

    def test_thinning_only_when_enabled(self, host_tree):
        cond_off = conditions(thinning=thinning())
        cond_on = conditions(thinning=thinning(), use_thin_mod=True)
        off = diameter_growth.diameter_increment(host_tree, cond_off)
        on = diameter_growth.diameter_increment(host_tree, cond_on)
        assert off == pytest.approx(diameter_growth.base_increment(host_tree, 16.0))
        assert on == pytest.approx(off * 1.25)


# =============================================================================
# Height growth
# =============================================================================

class TestHeightGrowth:

    def test_balsam_fir_grows(self, balsam_fir_tree):
        dht = height_growth.base_increment(balsam_fir_tree, 16.0)
        assert 0.1 < dht < 1.0

    def test_crown_competition_reduces_growth(self, balsam_fir_tree):
        free = height_growth.base_increment(balsam_fir_tree, 16.0)
        balsam_fir_tree.ccfl = 200.0
        assert height_growth.base_increment(balsam_fir_tree, 16.0) < free

    def test_thinning_modifier_early_years(self):
        modifier = height_growth.thinning_modifier(12, thinning(year=2020), 2020)
        expected = 1.0 - math.exp(-1.8443 + 5.2969 / 30.01)
        assert modifier == pytest.approx(expected)

    def test_thinning_modifier_expires(self):
        assert height_growth.thinning_modifier(12, thinning(year=2015), 2020) == 1.0

    def test_sbw_modifier_ratio(self, host_tree):
        modifier = height_growth.sbw_modifier(host_tree, 18.0, 15.0, 40.0)
        assert modifier == pytest.approx(math.exp(-0.0017 * 40.0))

    def test_increment_with_sbw(self, host_tree):
        cond = conditions(use_sbw_mod=True, cdef=40.0)
        base = height_growth.height_increment(host_tree, conditions())
        assert height_growth.height_increment(host_tree, cond) == pytest.approx(
            base * math.exp(-0.0017 * 40.0))

    def test_defoliation_ignored_without_flag(self, host_tree):
        base = height_growth.height_increment(host_tree, conditions())
        assert height_growth.height_increment(host_tree, conditions(cdef=40.0)) == pytest.approx(base)
        assert diameter_growth.diameter_increment(host_tree, conditions(cdef=40.0)) == pytest.approx(
            diameter_growth.base_increment(host_tree, 16.0))


# =============================================================================
# Crown recession and crown width
# =============================================================================

class TestCrownRecession:

    def test_recession_positive(self, balsam_fir_tree):
        assert crown_recession.base_recession(balsam_fir_tree, 0.4, 150.0) > 0.0

    def test_no_crown_base_no_recession(self, unmeasured_tree):
        unmeasured_tree.height = 10.0
        assert crown_recession.base_recession(unmeasured_tree, 0.4, 150.0) == 0.0

    def test_thinning_slows_recession(self):
        modifier = crown_recession.thinning_modifier(12, thinning(), 2020)
        assert 0.0 <= modifier <= 1.0

    def test_other_species_unaffected(self):
        assert crown_recession.thinning_modifier(316, thinning(), 2020) == 1.0


class TestCrownWidth:

    def test_crown_width_increases_with_dbh(self, resolver):
        params = resolver.resolve(12)
        assert max_crown_width(params, 20.0) > max_crown_width(params, 10.0)

    def test_largest_crown_width(self, resolver):
        params = resolver.resolve(12)
        mcw = max_crown_width(params, 10.0)
        a1, a2 = params.lcw
        assert largest_crown_width(params, 10.0, mcw) == pytest.approx(mcw / (a1 * 10.0 ** a2))
