import unittest
import numpy as np
import taichi as ti
from metaball_surface.config import MetaballConfig
from metaball_surface.surface_builder import SurfaceBuilder

ti.init(arch=ti.cpu, offline_cache=False, debug=False)


def centered_builder(renderer=None):
    config = MetaballConfig(grid_res=2, grid_cell_width=5.0, grid_width=10.0, isolevel=0.5, num_metaballs=1,
                            min_radius=1.0, max_radius=1.0, max_speed=0.0, seed=0)
    builder = SurfaceBuilder(config, renderer)
    builder.metaballs.set_metaball(0, [5, 5, 5], [0, 0, 0], 1.0)
    return builder


## @return Number of triangle edges of \a mesh that no other triangle shares
def count_unmatched_edges(mesh, tol=1e-4):
    vertices = mesh.reshape(-1, 3).astype(np.float64)
    dist = np.abs(vertices[:, None, :] - vertices[None, :, :]).max(axis=2)
    # Vertices computed by neighbouring cells on a shared edge map to the same id
    ids = np.argmax(dist < tol, axis=1).reshape(-1, 3)

    counts = {}
    for a, b, c in ids:
        for u, v in ((a, b), (b, c), (c, a)):
            if u != v:
                key = (min(u, v), max(u, v))
                counts[key] = counts.get(key, 0) + 1
    return sum(1 for n in counts.values() if n == 1)


class MetaballConfigTest(unittest.TestCase):

    def test_defaults(self):
        config = MetaballConfig(grid_res=4, grid_cell_width=0.5)
        self.assertEqual(config.grid_width, 2.0)
        self.assertFalse(config.visual_debug)

    def test_invalid_values(self):
        with self.assertRaises(AssertionError):
            MetaballConfig(grid_res=0)
        with self.assertRaises(AssertionError):
            MetaballConfig(grid_cell_width=-1.0)
        with self.assertRaises(AssertionError):
            MetaballConfig(num_metaballs=-1)
        with self.assertRaises(AssertionError):
            MetaballConfig(min_radius=2.0, max_radius=1.0)
        with self.assertRaises(AssertionError):
            MetaballConfig(max_speed=-0.1)


class SurfaceBuilderTest(unittest.TestCase):

    def test_initial_mesh_is_empty(self):
        builder = centered_builder()
        self.assertEqual(builder.surface_mesh.shape, (0, 3, 3))
        self.assertEqual(builder.frame, 0)

    def test_centered_metaball(self):
        builder = centered_builder()
        mesh = builder.tick()

        self.assertEqual(mesh.shape, (8, 3, 3))
        self.assertTrue(np.all(np.isfinite(mesh)))
        for c in range(builder.grid.res3):
            polygons = builder.marching_cubes.cell_polygons(c)
            self.assertIsNotNone(polygons)
            # Exactly one corner of every cell sits on the metaball
            self.assertEqual(bin(polygons.cube_index).count("1"), 7)
            self.assertEqual(polygons.triangles.shape, (1, 3, 3))

            cell = builder.grid.get_cell(c)
            np.testing.assert_array_equal(polygons.triangles[0], mesh[c])
            self.assertTrue(np.all(np.abs(polygons.triangles - cell.center) <= cell.width / 2 + 1e-5))

    def test_ball_inside_grid_is_closed(self):
        config = MetaballConfig(grid_res=8, grid_cell_width=1.0, isolevel=1.0, num_metaballs=1,
                                min_radius=2.0, max_radius=2.0, max_speed=0.0)
        builder = SurfaceBuilder(config)
        builder.metaballs.set_metaball(0, [4.1, 3.9, 4.05], [0, 0, 0], 2.0)
        mesh = builder.tick()

        self.assertGreater(mesh.shape[0], 0)
        self.assertTrue(np.all(np.isfinite(mesh)))
        self.assertEqual(count_unmatched_edges(mesh), 0)
        # Every vertex lies on a lattice edge
        on_lattice = np.abs(mesh - np.round(mesh)) < 1e-5
        self.assertTrue(np.all(np.sum(on_lattice, axis=2) >= 2))

    def test_source_next_to_grid_corner_gives_finite_mesh(self):
        config = MetaballConfig(grid_res=2, grid_cell_width=1.0, isolevel=20.0, num_metaballs=1,
                                min_radius=3.0, max_radius=3.0, max_speed=0.0)
        builder = SurfaceBuilder(config)
        builder.metaballs.set_metaball(0, [1.1e-19, 0, 0], [0, 0, 0], 3.0)
        mesh = builder.tick()

        self.assertEqual(mesh.shape, (1, 3, 3))
        self.assertTrue(np.all(np.isfinite(mesh)))

    def test_mesh_follows_cell_order(self):
        config = MetaballConfig(grid_res=4, grid_cell_width=1.0, isolevel=1.0, num_metaballs=3,
                                min_radius=0.6, max_radius=1.2, max_speed=0.1, seed=5)
        builder = SurfaceBuilder(config)
        mesh = builder.tick()

        cells = [builder.marching_cubes.cell_polygons(c) for c in range(builder.grid.res3)]
        parts = [p.triangles for p in cells if p is not None]
        expected = np.concatenate(parts) if parts else np.zeros((0, 3, 3), dtype=np.float32)
        np.testing.assert_array_equal(mesh, expected)

    def test_no_metaballs(self):
        config = MetaballConfig(grid_res=3, num_metaballs=0)
        builder = SurfaceBuilder(config)
        for _ in range(5):
            mesh = builder.tick()
            self.assertEqual(mesh.shape, (0, 3, 3))
        self.assertEqual(builder.frame, 5)

    def test_metaball_on_lattice_corner(self):
        config = MetaballConfig(grid_res=3, grid_cell_width=1.0, isolevel=1.0, num_metaballs=1,
                                min_radius=0.8, max_radius=0.8, max_speed=0.0)
        builder = SurfaceBuilder(config)
        builder.metaballs.set_metaball(0, [1, 1, 1], [0, 0, 0], 0.8)
        mesh = builder.tick()
        self.assertGreater(mesh.shape[0], 0)
        self.assertTrue(np.all(np.isfinite(mesh)))

    def test_pause_keeps_the_mesh(self):
        config = MetaballConfig(grid_res=5, grid_cell_width=1.0, isolevel=1.0, num_metaballs=4,
                                min_radius=0.8, max_radius=1.5, max_speed=0.4, seed=1)
        builder = SurfaceBuilder(config)
        builder.tick()
        builder.tick()
        builder.pause()
        paused_mesh = builder.surface_mesh
        snapshot = paused_mesh.copy()
        positions = builder.metaballs.to_numpy()[0]

        for _ in range(4):
            mesh = builder.tick()
            self.assertIs(mesh, paused_mesh)
            np.testing.assert_array_equal(mesh, snapshot)
        self.assertEqual(builder.frame, 2)
        np.testing.assert_array_equal(builder.metaballs.to_numpy()[0], positions)

        builder.play()
        builder.tick()
        self.assertEqual(builder.frame, 3)
        self.assertFalse(np.array_equal(builder.metaballs.to_numpy()[0], positions))

    def test_mesh_is_read_only(self):
        builder = centered_builder()
        mesh = builder.tick()
        with self.assertRaises(ValueError):
            mesh[0, 0, 0] = 1.0

    def test_renderer_receives_computed_frames(self):
        frames = []
        builder = centered_builder(renderer=frames.append)
        builder.tick()
        builder.update()
        builder.pause()
        builder.tick()
        self.assertEqual(len(frames), 2)
        self.assertIs(frames[-1], builder.surface_mesh)


if __name__ == '__main__':
    unittest.main()
