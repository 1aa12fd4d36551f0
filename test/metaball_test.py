import unittest
import numpy as np
import taichi as ti
from metaball_surface.metaball import Metaballs
from metaball_surface.mc_math import FIELD_SENTINEL

ti.init(arch=ti.cpu, offline_cache=False, debug=False)


class MetaballTest(unittest.TestCase):

    def test_falloff_is_inverse_square(self):
        balls = Metaballs(1, 10.0)
        balls.add_metaball([5, 5, 5], [0, 0, 0], 2.0)
        self.assertAlmostEqual(balls.evaluate((5, 5, 7)), 1.0, places=6)
        self.assertAlmostEqual(balls.evaluate((5, 9, 5)), 0.25, places=6)

    def test_contributions_are_summed(self):
        balls = Metaballs(2, 10.0)
        balls.add_metaball([2, 5, 5], [0, 0, 0], 1.0)
        balls.add_metaball([8, 5, 5], [0, 0, 0], 2.0)
        self.assertAlmostEqual(balls.evaluate((5, 5, 5)), 1.0 / 9 + 4.0 / 9, places=6)

    def test_zero_distance_returns_sentinel(self):
        balls = Metaballs(1, 10.0)
        balls.add_metaball([3, 4, 5], [0, 0, 0], 1.0)
        value = balls.evaluate((3, 4, 5))
        self.assertTrue(np.isfinite(value))
        self.assertEqual(value, float(np.float32(FIELD_SENTINEL)))

    def test_near_zero_distance_is_capped(self):
        balls = Metaballs(1, 10.0)
        balls.add_metaball([1.1e-19, 0, 0], [0, 0, 0], 3.0)
        value = balls.evaluate((0, 0, 0))
        self.assertTrue(np.isfinite(value))
        self.assertEqual(value, float(np.float32(FIELD_SENTINEL)))

    def test_no_metaballs_yields_zero_field(self):
        balls = Metaballs(0, 10.0)
        self.assertEqual(balls.evaluate((1, 2, 3)), 0.0)
        self.assertEqual(balls.evaluate((0, 0, 0)), 0.0)

    def test_clear_removes_all_metaballs(self):
        balls = Metaballs(2, 10.0)
        balls.randomize(0.5, 1.0, 0.2, seed=9)
        balls.clear()
        self.assertEqual(balls.to_numpy()[0].shape, (0, 3))
        self.assertEqual(balls.evaluate((5, 5, 5)), 0.0)

        self.assertEqual(balls.add_metaball([5, 5, 7], [0, 0, 0], 2.0), 0)
        self.assertAlmostEqual(balls.evaluate((5, 5, 5)), 1.0, places=6)

    def test_update_moves_by_velocity(self):
        balls = Metaballs(1, 10.0)
        balls.add_metaball([5, 5, 5], [0.5, -0.25, 0.125], 1.0)
        balls.update()
        pos, vel, _ = balls.to_numpy()
        np.testing.assert_allclose(pos[0], [5.5, 4.75, 5.125])
        np.testing.assert_allclose(vel[0], [0.5, -0.25, 0.125])

    def test_bounce_reflects_only_violated_axes(self):
        balls = Metaballs(1, 10.0)
        balls.add_metaball([9.9, 5.0, 0.05], [0.5, 0.1, -0.1], 1.0)
        balls.update()
        pos, vel, _ = balls.to_numpy()
        np.testing.assert_allclose(pos[0], [10.0, 5.1, 0.0], rtol=1e-6, atol=1e-6)
        np.testing.assert_allclose(vel[0], [-0.5, 0.1, 0.1], rtol=1e-6)

    def test_bounce_preserves_speed(self):
        balls = Metaballs(1, 10.0)
        v0 = np.array([0.7, -0.3, 0.2], dtype=np.float32)
        balls.add_metaball([9.8, 0.1, 5.0], v0, 1.0)
        for _ in range(3):
            balls.update()
        _, vel, _ = balls.to_numpy()
        self.assertAlmostEqual(float(np.linalg.norm(vel[0])), float(np.linalg.norm(v0)), places=6)
        np.testing.assert_array_equal(np.abs(vel[0]), np.abs(v0))

    def test_stays_in_domain(self):
        balls = Metaballs(20, 4.0)
        balls.randomize(0.5, 1.0, 0.9, seed=11)
        for _ in range(200):
            balls.update()
        pos, _, _ = balls.to_numpy()
        self.assertTrue(np.all(pos >= 0.0))
        self.assertTrue(np.all(pos <= 4.0))

    def test_randomize_respects_ranges(self):
        balls = Metaballs(50, 10.0)
        balls.randomize(0.5, 1.0, 0.2, seed=3)
        pos, vel, radius = balls.to_numpy()
        self.assertEqual(pos.shape, (50, 3))
        self.assertTrue(np.all((pos >= 0.0) & (pos <= 10.0)))
        self.assertTrue(np.all(np.abs(vel) <= 0.2))
        self.assertTrue(np.all((radius >= 0.5) & (radius <= 1.0)))

    def test_randomize_is_reproducible(self):
        a = Metaballs(5, 10.0)
        b = Metaballs(5, 10.0)
        a.randomize(0.5, 1.0, 0.2, seed=42)
        b.randomize(0.5, 1.0, 0.2, seed=42)
        for x, y in zip(a.to_numpy(), b.to_numpy()):
            np.testing.assert_array_equal(x, y)

    def test_capacity_is_enforced(self):
        balls = Metaballs(1, 10.0)
        balls.add_metaball([1, 1, 1], [0, 0, 0], 1.0)
        with self.assertRaises(AssertionError):
            balls.add_metaball([2, 2, 2], [0, 0, 0], 1.0)
        with self.assertRaises(AssertionError):
            balls.set_metaball(0, [2, 2, 2], [0, 0, 0], 0.0)


if __name__ == '__main__':
    unittest.main()
