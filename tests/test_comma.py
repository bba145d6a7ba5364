"""
TESTS FOR COMMA CATEGORIES

Validates:
1. (F ↓ d) objects and morphisms for identity, collapsing and path functors
2. Inclusions along target morphisms
3. Rejection of cyclic targets
"""

import unittest
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))

from catmigrate.comma import CommaInclusion, comma_categories
from catmigrate.errors import CycleError
from catmigrate.functors import FinFunctor
from catmigrate.schema import Path, Schema


GRAPH = Schema(obs=["V", "E"], homs=[("src", "E", "V"), ("tgt", "E", "V")])
POINT = Schema(obs=["P"])


class TestCommaCategories(unittest.TestCase):
    """Test comma categories over acyclic targets"""

    def test_identity_functor(self):
        """Test (id ↓ V) holds V and both ends of every edge"""
        comma = comma_categories(FinFunctor.identity(GRAPH))
        over_v, over_e = comma.obs

        self.assertEqual(over_e.obs, [(1, Path.identity(1))])
        self.assertEqual(over_e.homs, [])

        self.assertEqual(over_v.obs, [
            (0, Path.identity(0)),
            (1, Path(1, 0, (0,))),
            (1, Path(1, 0, (1,))),
        ])
        self.assertEqual(over_v.homs, [(1, 0, 0), (2, 0, 1)])

    def test_identity_inclusions(self):
        """Test inclusions are recorded per target morphism"""
        comma = comma_categories(FinFunctor.identity(GRAPH))
        self.assertEqual(comma.homs[0], CommaInclusion(src=1, tgt=0, vertex_map=(1,), edge_map=()))
        self.assertEqual(comma.homs[1], CommaInclusion(src=1, tgt=0, vertex_map=(2,), edge_map=()))

    def test_collapsing_functor(self):
        """Test collapsing a graph to a point seeds every object"""
        F = FinFunctor(GRAPH, POINT, {"V": "P", "E": "P"}, {"src": (), "tgt": ()})
        (over_p,) = comma_categories(F).obs
        self.assertEqual(over_p.obs, [(0, Path.identity(0)), (1, Path.identity(0))])
        self.assertEqual(over_p.homs, [(1, 0, 0), (1, 0, 1)])

    def test_morphism_sent_to_a_path(self):
        """Test a morphism mapped to a composite is found after copying"""
        C = Schema(obs=["A", "B"], homs=[("f", "A", "B")])
        D = Schema(obs=["X", "Y", "Z"], homs=[("p", "X", "Y"), ("q", "Y", "Z")])
        F = FinFunctor(C, D, {"A": "X", "B": "Z"}, {"f": ["p", "q"]})
        over_x, over_y, over_z = comma_categories(F).obs

        self.assertEqual(over_x.obs, [(0, Path.identity(0))])
        self.assertEqual(over_y.obs, [(0, Path(0, 1, (0,)))])
        self.assertEqual(over_z.obs, [(1, Path.identity(2)), (0, Path(0, 2, (0, 1)))])
        self.assertEqual(over_z.homs, [(1, 0, 0)])

    def test_unmapped_target_is_empty(self):
        """Test a target object with nothing over it has an empty comma category"""
        F = FinFunctor(POINT, GRAPH, {"P": "E"})
        over_v, over_e = comma_categories(F).obs
        self.assertEqual(len(over_e.obs), 1)
        self.assertEqual(len(over_v.obs), 2)
        self.assertEqual(over_v.homs, [])

    def test_cycle_rejected(self):
        """Test a cyclic target raises CycleError"""
        cyclic = Schema(obs=["A", "B"], homs=[("f", "A", "B"), ("g", "B", "A")])
        with self.assertRaises(CycleError):
            comma_categories(FinFunctor.identity(cyclic))

    def test_self_loop_rejected(self):
        """Test a self loop counts as a cycle"""
        looped = Schema(obs=["A"], homs=[("next", "A", "A")])
        with self.assertRaises(CycleError):
            comma_categories(FinFunctor.identity(looped))


if __name__ == "__main__":
    unittest.main()
