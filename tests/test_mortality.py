"""
Tests for survival probability and density loss.
"""
import math

import pytest

from pyacd.growth_parameters import StandConditions, ThinningEvent
from pyacd.mortality import (StandMortalityMultipliers, base_survival, density_loss,
                             hardwood_survival_modifier, sbw_survival_modifier,
                             stand_sbw_multiplier, stand_thinning_multiplier,
                             survival_probability, thinning_survival_modifier)
from pyacd.tree import Tree


def thinning(year=2015):
    return ThinningEvent(year=year, percent_ba_removed=0.3, ba_pre_thin=30.0, qmd_ratio=1.1)


def conditions(**overrides):
    values = dict(region='ME', region_indicator=0, year=2020, csi=16.0, cdef=-1.0, ba=20.0,
                  ccf=150.0, topht=15.0, average_dbh_10_sw=18.0, average_height_sw=12.0)
    values.update(overrides)
    return StandConditions(**values)


class TestBaseSurvival:

    def test_balsam_fir(self, balsam_fir_tree):
        expected = 1.0 - math.exp(-math.exp(1.10 + 0.20 * math.sqrt(10.0)))
        assert base_survival(balsam_fir_tree) == pytest.approx(expected)

    def test_competition_lowers_survival(self, balsam_fir_tree):
        free = base_survival(balsam_fir_tree)
        balsam_fir_tree.bal = 25.0
        assert base_survival(balsam_fir_tree) < free

    @pytest.mark.parametrize("dbh", [
        pytest.param(2.0, id="sapling"),
        pytest.param(15.0, id="pole"),
        pytest.param(45.0, id="sawlog"),
    ])
    def test_probability_bounds(self, resolver, dbh):
        tree = Tree(1, 1, 316, dbh, height=12.0, tph=20.0, crown_ratio=0.5, resolver=resolver)
        assert 0.0 < base_survival(tree) <= 1.0


class TestTreeModifiers:

    def test_budworm_lowers_host_survival(self, resolver):
        tree = Tree(1, 1, 12, 15.0, height=12.0, tph=20.0, crown_ratio=0.5, resolver=resolver)
        modifier = sbw_survival_modifier(tree, 'ME', 12.0, 60.0)
        assert 0.0 < modifier < 1.0

    def test_budworm_ignores_non_hosts(self, red_maple_tree):
        assert sbw_survival_modifier(red_maple_tree, 'ME', 12.0, 60.0) == 1.0

    def test_budworm_needs_defoliation(self, balsam_fir_tree):
        assert sbw_survival_modifier(balsam_fir_tree, 'ME', 12.0, -1.0) == 1.0

    @pytest.mark.parametrize("form", [
        pytest.param(1, id="straight_stem"),
        pytest.param(2, id="sweep"),
        pytest.param(5, id="multiple_stems"),
    ])
    def test_hardwood_modifier_at_most_one(self, resolver, form):
        tree = Tree(1, 1, 316, 20.0, height=15.0, tph=25.0, crown_ratio=0.5,
                    form=form, risk=1, resolver=resolver)
        assert 0.0 < hardwood_survival_modifier(tree, 20.0) <= 1.0

    def test_hardwood_modifier_needs_form(self, resolver):
        tree = Tree(1, 1, 316, 20.0, height=15.0, tph=25.0, resolver=resolver)
        assert hardwood_survival_modifier(tree, 20.0) == 1.0

    def test_thinning_lowers_fir_survival(self):
        assert thinning_survival_modifier(12, thinning(), 2018) < 1.0

    def test_thinning_year_is_neutral(self):
        assert thinning_survival_modifier(12, thinning(), 2015) == 1.0

    def test_thinning_other_species(self):
        assert thinning_survival_modifier(316, thinning(), 2018) == 1.0

    def test_thinning_gated_by_flag(self, balsam_fir_tree):
        without = survival_probability(balsam_fir_tree, conditions(thinning=thinning()))
        with_mod = survival_probability(balsam_fir_tree,
                                        conditions(thinning=thinning(), use_thin_mod=True, year=2018))
        assert without == pytest.approx(base_survival(balsam_fir_tree))
        assert with_mod < without


class TestStandMultipliers:

    def test_budworm_multiplier_increases_loss(self):
        assert stand_sbw_multiplier('ME', 15.0, 25.0, 10.0, 60.0) > 1.0

    def test_budworm_multiplier_without_defoliation(self):
        assert stand_sbw_multiplier('ME', 15.0, 25.0, 10.0, -1.0) == 1.0

    def test_thinning_multiplier(self):
        assert stand_thinning_multiplier(thinning(), 2017) > 1.0
        assert stand_thinning_multiplier(None, 2017) == 1.0
        assert stand_thinning_multiplier(thinning(), 2010) == 1.0

    def test_combined(self):
        assert StandMortalityMultipliers(sbw=1.2, thin=1.5).combined == pytest.approx(1.8)

    def test_density_loss(self):
        multipliers = StandMortalityMultipliers(sbw=1.5)
        assert density_loss(40.0, 0.9, multipliers) == pytest.approx(40.0 * 0.1 * 1.5)

    def test_full_survival_no_loss(self):
        assert density_loss(40.0, 1.0, StandMortalityMultipliers(2.0, 2.0)) == 0.0
