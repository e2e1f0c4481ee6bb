"""
Shared pytest fixtures for PyACD tests.

Provides tree records and stands at various development stages, reducing
code duplication across test files.
"""
import pandas as pd
import pytest

from pyacd.species import get_species_resolver
from pyacd.stand import Stand
from pyacd.tree import Tree


# =============================================================================
# Species
# =============================================================================

@pytest.fixture(scope="session")
def resolver():
    """Resolver over the bundled species tables."""
    return get_species_resolver()


# =============================================================================
# Tree Fixtures
# =============================================================================

@pytest.fixture
def balsam_fir_tree(resolver):
    """Balsam fir: dbh 10 cm, height 8 m, 40 trees/ha, crown ratio 0.6."""
    return Tree(1, 1, 12, 10.0, height=8.0, tph=40.0, crown_ratio=0.6, resolver=resolver)


@pytest.fixture
def red_maple_tree(resolver):
    """Red maple with NHRI form 2 and risk 3."""
    return Tree(1, 2, 316, 20.0, height=15.0, tph=25.0, crown_ratio=0.5,
                form=2, risk=3, resolver=resolver)


@pytest.fixture
def unmeasured_tree(resolver):
    """Red spruce without height or crown ratio."""
    return Tree(1, 3, 97, 15.0, tph=30.0, resolver=resolver)


# =============================================================================
# Tree Lists
# =============================================================================

@pytest.fixture
def mixed_trees(resolver):
    """Mixed softwood and hardwood list over two plots, including a dbh tie."""
    records = [
        # plot, tree, species, dbh, height, tph, cr
        (1, 1, 12, 25.0, 17.0, 20.0, 0.5),
        (1, 2, 97, 25.0, 18.0, 15.0, 0.45),
        (1, 3, 316, 30.0, 19.0, 10.0, 0.4),
        (1, 4, 375, 18.0, 15.0, 30.0, 0.5),
        (2, 1, 12, 12.0, 10.0, 60.0, 0.6),
        (2, 2, 318, 22.0, 16.0, 20.0, 0.5),
        (2, 3, 94, 8.0, 6.5, 80.0, 0.7),
    ]
    return [Tree(p, t, sp, dbh, height=ht, tph=tph, crown_ratio=cr, resolver=resolver)
            for p, t, sp, dbh, ht, tph, cr in records]


# =============================================================================
# Stand Fixtures
# =============================================================================

@pytest.fixture
def balsam_fir_stand(balsam_fir_tree):
    """Single balsam fir record, Maine, csi 16."""
    return Stand([balsam_fir_tree], region='ME', csi=16.0, random_state=42)


@pytest.fixture
def mixed_stand(mixed_trees):
    """Mixedwood stand of two plots, Maine, csi 14."""
    return Stand(mixed_trees, region='ME', csi=14.0, elevation=150.0, random_state=7)


@pytest.fixture
def tree_frame():
    """Metric tree list as a DataFrame."""
    return pd.DataFrame({
        'plot_id': [1, 1, 2],
        'tree_id': [1, 2, 1],
        'species': [12, 316, 97],
        'dbh': [10.0, 20.0, 15.0],
        'height': [8.0, 15.0, 0.0],
        'tph': [40.0, 25.0, 30.0],
        'crown_ratio': [0.6, 0.5, 0.0],
        'form': [0, 2, 0],
        'risk': [0, 3, 0],
    })
