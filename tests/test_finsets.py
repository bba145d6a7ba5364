"""
TESTS FOR THE FINITE-SET SOLVER

Validates:
1. Finite functions and diagram validation
2. Limits (generalized joins) and their universal maps
3. Colimits (unions with identification) and their universal maps
"""

import unittest
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))

from catmigrate.errors import SolverError
from catmigrate.finsets import (
    Cocone, Cone, FinDiagram, FinFunction, Limit, TabularLimit, colimit, limit,
)


def pullback_diagram():
    """A → C ← B with f = (0, 1) and g = (1, 1)"""
    f = FinFunction((0, 1), 2)
    g = FinFunction((1, 1), 2)
    return FinDiagram(obs=[2, 2, 2], homs=[(f, 0, 2), (g, 1, 2)])


def pushout_diagram():
    """B ← A → C with A a single point"""
    f = FinFunction((0,), 2)
    g = FinFunction((1,), 2)
    return FinDiagram(obs=[1, 2, 2], homs=[(f, 0, 1), (g, 0, 2)])


class TestFinFunction(unittest.TestCase):
    """Test total functions between finite sets"""

    def test_compose_is_diagrammatic(self):
        """Test f.compose(g) applies f first"""
        f = FinFunction((1, 0, 1), 2)
        g = FinFunction((2, 0), 3)
        self.assertEqual(f.compose(g), FinFunction((0, 2, 0), 3))

    def test_identity(self):
        """Test identity functions are neutral"""
        f = FinFunction((1, 0, 1), 2)
        self.assertEqual(FinFunction.identity(3).compose(f), f)
        self.assertEqual(f.compose(FinFunction.identity(2)), f)

    def test_value_outside_codomain(self):
        """Test values must lie in the codomain"""
        with self.assertRaises(SolverError):
            FinFunction((3,), 3)

    def test_compose_mismatch(self):
        """Test composition checks sizes"""
        with self.assertRaises(SolverError):
            FinFunction((0,), 2).compose(FinFunction((0,), 1))

    def test_diagram_edge_types_checked(self):
        """Test edges must match the sizes of their endpoints"""
        with self.assertRaises(SolverError):
            FinDiagram(obs=[2, 2], homs=[(FinFunction((0,), 2), 0, 1)])
        with self.assertRaises(SolverError):
            FinDiagram(obs=[2], homs=[(FinFunction((0, 1), 2), 0, 1)])


class TestLimit(unittest.TestCase):
    """Test limits of finite diagrams"""

    def test_empty_diagram_is_a_point(self):
        """Test the limit of the empty diagram has one row"""
        lim = limit(FinDiagram())
        self.assertEqual(lim.apex, 1)
        self.assertEqual(lim.rows, [()])

    def test_product(self):
        """Test a discrete diagram gives the cartesian product, sorted"""
        lim = limit(FinDiagram(obs=[2, 3]))
        self.assertEqual(lim.apex, 6)
        self.assertEqual(lim.rows[:3], [(0, 0), (0, 1), (0, 2)])
        self.assertEqual(lim.legs[0].values, (0, 0, 0, 1, 1, 1))
        self.assertEqual(lim.legs[1].values, (0, 1, 2, 0, 1, 2))

    def test_empty_vertex(self):
        """Test an empty vertex makes the whole limit empty"""
        lim = limit(FinDiagram(obs=[0, 3]))
        self.assertEqual(lim.apex, 0)
        self.assertEqual(lim.legs[1], FinFunction((), 3))

    def test_pullback(self):
        """Test a pullback keeps matching pairs only"""
        lim = limit(pullback_diagram())
        self.assertEqual(lim.rows, [(1, 0, 1), (1, 1, 1)])

    def test_self_loop_gives_fixed_points(self):
        """Test a loop on one vertex selects its fixed points"""
        loop = FinFunction((0, 2, 2), 3)
        lim = limit(FinDiagram(obs=[3], homs=[(loop, 0, 0)]))
        self.assertEqual(lim.rows, [(0,), (2,)])

    def test_universal(self):
        """Test a compatible cone factors uniquely"""
        lim = limit(pullback_diagram())
        cone = Cone(apex=3, legs=(
            FinFunction((1, 1, 1), 2),
            FinFunction((1, 0, 1), 2),
            FinFunction((1, 1, 1), 2),
        ))
        self.assertEqual(lim.universal(cone), FinFunction((1, 0, 1), 2))

    def test_universal_rejects_incompatible_cone(self):
        """Test a cone that does not commute fails to factor"""
        lim = limit(pullback_diagram())
        cone = Cone(apex=1, legs=(
            FinFunction((0,), 2),
            FinFunction((0,), 2),
            FinFunction((0,), 2),
        ))
        with self.assertRaises(SolverError):
            lim.universal(cone)

    def test_universal_rejects_wrong_arity(self):
        """Test cones need one leg per vertex"""
        lim = limit(pullback_diagram())
        with self.assertRaises(SolverError):
            lim.universal(Cone(apex=0, legs=()))

    def test_built_from_rows(self):
        """Test a limit assembled from its rows indexes them for universals"""
        diagram = FinDiagram(obs=[2])
        lim = Limit(diagram, [(0,), (1,)], [FinFunction((0, 1), 2)])
        cone = Cone(apex=2, legs=(FinFunction((1, 0), 2),))
        self.assertEqual(lim.universal(cone), FinFunction((1, 0), 2))

    def test_tabular_records(self):
        """Test limits read as named records"""
        table = TabularLimit(limit(pullback_diagram()), ("a", "b", "c"))
        self.assertEqual(table.apex, 2)
        self.assertEqual(table.records(), [
            {"a": 1, "b": 0, "c": 1},
            {"a": 1, "b": 1, "c": 1},
        ])
        self.assertEqual(table.columns()["b"], [0, 1])

    def test_tabular_needs_all_names(self):
        """Test a name is required per vertex"""
        with self.assertRaises(SolverError):
            TabularLimit(limit(pullback_diagram()), ("a", "b"))


class TestColimit(unittest.TestCase):
    """Test colimits of finite diagrams"""

    def test_empty_diagram_is_empty(self):
        """Test the colimit of the empty diagram has no rows"""
        self.assertEqual(colimit(FinDiagram()).apex, 0)

    def test_coproduct_keeps_order(self):
        """Test a discrete diagram numbers classes vertex by vertex"""
        colim = colimit(FinDiagram(obs=[2, 1]))
        self.assertEqual(colim.apex, 3)
        self.assertEqual(colim.legs[0].values, (0, 1))
        self.assertEqual(colim.legs[1].values, (2,))

    def test_pushout(self):
        """Test a pushout identifies along both maps"""
        colim = colimit(pushout_diagram())
        self.assertEqual(colim.apex, 3)
        self.assertEqual(colim.legs[0].values, (0,))
        self.assertEqual(colim.legs[1].values, (0, 1))
        self.assertEqual(colim.legs[2].values, (2, 0))

    def test_parallel_maps_collapse(self):
        """Test a coequalizer-like diagram merges everything it links"""
        f = FinFunction((0, 1), 3)
        g = FinFunction((1, 2), 3)
        colim = colimit(FinDiagram(obs=[2, 3], homs=[(f, 0, 1), (g, 0, 1)]))
        self.assertEqual(colim.apex, 1)

    def test_universal(self):
        """Test a compatible cocone factors uniquely"""
        colim = colimit(pushout_diagram())
        cocone = Cocone(apex=2, legs=(
            FinFunction((0,), 2),
            FinFunction((0, 1), 2),
            FinFunction((1, 0), 2),
        ))
        self.assertEqual(colim.universal(cocone), FinFunction((0, 1, 1), 2))

    def test_universal_rejects_incompatible_cocone(self):
        """Test a cocone separating identified elements fails"""
        colim = colimit(pushout_diagram())
        cocone = Cocone(apex=2, legs=(
            FinFunction((0,), 2),
            FinFunction((1, 1), 2),
            FinFunction((1, 0), 2),
        ))
        with self.assertRaises(SolverError):
            colim.universal(cocone)


if __name__ == "__main__":
    unittest.main()
