"""
Tests for species parameter resolution.
"""
import pytest

from pyacd.exceptions import SpeciesResolutionError, SpeciesNotFoundError
from pyacd.species import SpeciesParameterResolver, SpeciesTables, get_species_resolver


class TestDirectResolution:
    """Codes present in the species table."""

    def test_balsam_fir_identity(self, resolver):
        params = resolver.resolve(12)
        assert params.species_code == 12
        assert params.alpha_code == 'BF'
        assert params.common_name == 'balsam fir'
        assert params.softwood is True
        assert params.fit_code == 12

    def test_own_coefficients(self, resolver):
        params = resolver.resolve(12)
        assert params.ddbh == pytest.approx((-4.05, 0.82, -0.034, 0.55, -0.012, 0.60))
        assert params.dht == pytest.approx((24.0, 0.045, 1.35, 0.0, 0.30, 0.45))
        assert len(params.mortality) == 5
        assert len(params.mcw) == 2

    @pytest.mark.parametrize("code,softwood", [
        pytest.param(97, True, id="red_spruce"),
        pytest.param(129, True, id="white_pine"),
        pytest.param(316, False, id="red_maple"),
        pytest.param(833, False, id="red_oak"),
    ])
    def test_softwood_flag(self, resolver, code, softwood):
        assert resolver.resolve(code).softwood is softwood

    def test_missing_coefficients_fall_back_to_generic(self, resolver):
        tamarack = resolver.resolve(71)
        generic = resolver.resolve(9991)
        assert tamarack.ddbh == generic.ddbh
        assert tamarack.sg == pytest.approx(0.49)


class TestSharedFit:
    """Species that borrow the fitted equations of a donor."""

    def test_black_spruce_uses_red_spruce_fit(self, resolver):
        black = resolver.resolve(95)
        red = resolver.resolve(97)
        assert black.alpha_code == 'BS'
        assert black.fit_code == 97
        assert black.ddbh == red.ddbh
        assert black.dht == red.dht

    def test_attributes_borrowed_from_donor(self, resolver):
        assert resolver.resolve(95).sg == resolver.resolve(97).sg


class TestCrosswalk:

    def test_crosswalk_code_takes_substitute_identity(self, resolver):
        params = resolver.resolve(10)
        assert params.species_code == 10
        assert params.alpha_code == 'BF'
        assert params.ddbh == resolver.resolve(12).ddbh

    def test_unknown_code_raises(self, resolver):
        with pytest.raises(SpeciesResolutionError) as exc_info:
            resolver.resolve(99999)
        assert exc_info.value.species_code == 99999

    def test_non_integer_code_raises(self, resolver):
        with pytest.raises(SpeciesResolutionError):
            resolver.resolve('fir')

    def test_alias(self):
        assert SpeciesNotFoundError is SpeciesResolutionError

    def test_is_known(self, resolver):
        assert resolver.is_known(12)
        assert not resolver.is_known(99999)


class TestSharing:

    def test_parameters_are_cached(self, resolver):
        assert resolver.resolve(316) is resolver.resolve(316)

    def test_parameters_are_immutable(self, resolver):
        params = resolver.resolve(12)
        with pytest.raises(AttributeError):
            params.sg = 1.0

    def test_tables_are_read_only(self):
        tables = SpeciesTables.default()
        with pytest.raises(TypeError):
            tables.crosswalk[1] = 12

    def test_injected_tables(self):
        resolver = SpeciesParameterResolver(SpeciesTables.default())
        assert resolver.resolve(12).common_name == 'balsam fir'

    def test_global_resolver_is_singleton(self):
        assert get_species_resolver() is get_species_resolver()
