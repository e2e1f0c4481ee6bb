"""
Unit tests for tree records.
"""
import math

import pytest

from pyacd.exceptions import InvalidParameterError, SpeciesResolutionError
from pyacd.growth_parameters import StandConditions
from pyacd.height_imputation import BREAST_HEIGHT
from pyacd.mortality import StandMortalityMultipliers
from pyacd.tree import Tree


def conditions(**overrides):
    values = dict(region='ME', region_indicator=0, year=2020, csi=16.0, cdef=-1.0, ba=20.0,
                  ccf=150.0, topht=15.0, average_dbh_10_sw=18.0, average_height_sw=12.0)
    values.update(overrides)
    return StandConditions(**values)


class TestConstruction:

    def test_crown_base_from_crown_ratio(self, balsam_fir_tree):
        assert balsam_fir_tree.hcb == pytest.approx(3.2)

    def test_no_crown_base_without_crown_ratio(self, unmeasured_tree):
        assert unmeasured_tree.hcb == 0.0
        assert unmeasured_tree.height == 0.0

    def test_derived_attributes(self, balsam_fir_tree):
        assert balsam_fir_tree.ba == pytest.approx(10.0 ** 2 * 0.00007854 * 40.0)
        assert balsam_fir_tree.mcw > 0.0
        assert balsam_fir_tree.mca == pytest.approx(
            100.0 * (math.pi * balsam_fir_tree.mcw ** 2 / 4.0) / 10000.0 * 40.0)

    def test_species_attributes(self, balsam_fir_tree, red_maple_tree):
        assert balsam_fir_tree.softwood is True
        assert red_maple_tree.softwood is False
        assert balsam_fir_tree.sg == pytest.approx(0.33)

    @pytest.mark.parametrize("kwargs", [
        pytest.param({'dbh': 0.0}, id="zero_dbh"),
        pytest.param({'dbh': -3.0}, id="negative_dbh"),
        pytest.param({'tph': -1.0}, id="negative_tph"),
        pytest.param({'crown_ratio': 1.5}, id="crown_ratio_above_one"),
    ])
    def test_invalid_measurements(self, resolver, kwargs):
        values = dict(dbh=10.0, tph=10.0, crown_ratio=0.5)
        values.update(kwargs)
        with pytest.raises(InvalidParameterError):
            Tree(1, 1, 12, values['dbh'], height=8.0, tph=values['tph'],
                 crown_ratio=values['crown_ratio'], resolver=resolver)

    def test_unknown_species(self, resolver):
        with pytest.raises(SpeciesResolutionError):
            Tree(1, 1, 99999, 10.0, resolver=resolver)

    def test_parameters_shared(self, resolver):
        a = Tree(1, 1, 12, 10.0, resolver=resolver)
        b = Tree(1, 2, 12, 20.0, resolver=resolver)
        assert a.params is b.params


class TestImputation:

    def test_height_imputed_when_missing(self, unmeasured_tree):
        unmeasured_tree.impute_height(ccf=150.0, region_indicator=0)
        assert unmeasured_tree.height > BREAST_HEIGHT

    def test_measured_height_kept(self, balsam_fir_tree):
        balsam_fir_tree.impute_height(ccf=150.0, region_indicator=0)
        assert balsam_fir_tree.height == 8.0

    def test_override(self, balsam_fir_tree):
        balsam_fir_tree.impute_height(ccf=150.0, region_indicator=0, override=True)
        assert balsam_fir_tree.height != 8.0

    def test_region_raises_height(self, resolver):
        me = Tree(1, 1, 97, 15.0, resolver=resolver)
        nb = Tree(1, 1, 97, 15.0, resolver=resolver)
        me.impute_height(150.0, 0)
        nb.impute_height(150.0, 1)
        assert nb.height > me.height

    def test_crown_base_predicted(self, unmeasured_tree):
        unmeasured_tree.impute_height(ccf=150.0, region_indicator=0)
        unmeasured_tree.predict_crown_base(ccf=150.0)
        assert 0.0 < unmeasured_tree.hcb < unmeasured_tree.height
        assert 0.0 < unmeasured_tree.crown_ratio < 1.0

    def test_crown_base_kept_when_known(self, balsam_fir_tree):
        balsam_fir_tree.predict_crown_base(ccf=150.0)
        assert balsam_fir_tree.hcb == pytest.approx(3.2)


class TestGrowthCycle:

    def test_increments_positive(self, balsam_fir_tree):
        cond = conditions()
        balsam_fir_tree.grow_diameter(cond)
        balsam_fir_tree.grow_height(cond)
        balsam_fir_tree.recede_crown(cond)
        balsam_fir_tree.compute_survival(cond, StandMortalityMultipliers())
        assert balsam_fir_tree.ddbh > 0.0
        assert balsam_fir_tree.dht > 0.0
        assert balsam_fir_tree.dhcb >= 0.0
        assert 0.0 < balsam_fir_tree.p_survival <= 1.0
        assert 0.0 <= balsam_fir_tree.dtph <= balsam_fir_tree.tph

    def test_apply_resets_deltas(self, balsam_fir_tree):
        balsam_fir_tree.ddbh = 0.5
        balsam_fir_tree.dht = 0.4
        balsam_fir_tree.dhcb = 0.1
        balsam_fir_tree.dtph = 2.0
        balsam_fir_tree.apply_growth_mortality()

        assert balsam_fir_tree.dbh == pytest.approx(10.5)
        assert balsam_fir_tree.height == pytest.approx(8.4)
        assert balsam_fir_tree.hcb == pytest.approx(3.3)
        assert balsam_fir_tree.crown_ratio == pytest.approx((8.4 - 3.3) / 8.4)
        assert balsam_fir_tree.tph == pytest.approx(38.0)
        assert balsam_fir_tree.ddbh == 0.0
        assert balsam_fir_tree.p_survival == 1.0

    def test_crown_base_capped_at_height(self, balsam_fir_tree):
        balsam_fir_tree.dhcb = 50.0
        balsam_fir_tree.apply_growth_mortality()
        assert balsam_fir_tree.hcb == balsam_fir_tree.height
        assert balsam_fir_tree.crown_ratio == 0.0

    def test_density_never_negative(self, balsam_fir_tree):
        balsam_fir_tree.dtph = 100.0
        balsam_fir_tree.apply_growth_mortality()
        assert balsam_fir_tree.tph == 0.0

    def test_check_finite(self, balsam_fir_tree):
        assert balsam_fir_tree.check_finite()
        balsam_fir_tree.height = math.nan
        assert not balsam_fir_tree.check_finite()


def test_to_record(balsam_fir_tree):
    assert balsam_fir_tree.to_record() == {
        'plot_id': 1, 'tree_id': 1, 'species': 12, 'dbh': 10.0,
        'height': 8.0, 'tph': 40.0, 'crown_ratio': 0.6,
    }
