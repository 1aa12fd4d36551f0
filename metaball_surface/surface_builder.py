## @package SurfaceBuilder
# Drives one frame of the metaball surface: move metaballs, resample the grid, polygonize every cell
import numpy as np
from metaball_surface.utils import mc_log
from metaball_surface.config import MetaballConfig
from metaball_surface.metaball import Metaballs
from metaball_surface.voxel_grid import VoxelGrid
from metaball_surface.tools.marching_cubes import MarchingCubes


class SurfaceBuilder:

    ## @param config MetaballConfig of the run
    #  @param renderer Optional callable receiving the surface mesh of every computed frame
    def __init__(self, config: MetaballConfig, renderer=None):
        self.config = config
        self.isolevel = config.isolevel
        self.renderer = renderer
        self.is_paused = False
        self.frame = 0

        self.metaballs = Metaballs(config.num_metaballs, config.grid_width)
        self.grid = VoxelGrid(config.grid_res, config.grid_cell_width)
        self.marching_cubes = MarchingCubes(self.grid.res3)

        self.metaballs.randomize(config.min_radius, config.max_radius, config.max_speed, seed=config.seed)
        self.surface_mesh = SurfaceBuilder.make_mesh(np.zeros((0, 3, 3), dtype=np.float32))

        mc_log("Created {} cells and {} metaballs.".format(self.grid.res3, config.num_metaballs))

    @staticmethod
    def make_mesh(triangles):
        triangles.flags.writeable = False
        return triangles

    ## @return The surface mesh of the current frame with shape (num_triangles, 3, 3)
    def tick(self):
        if self.is_paused:
            return self.surface_mesh

        self.metaballs.update()
        self.grid.resample(self.metaballs)
        self.marching_cubes.polygonize(self.grid.corner_pos, self.grid.corner_value, self.isolevel)
        self.surface_mesh = SurfaceBuilder.make_mesh(self.marching_cubes.collect_triangles())
        self.frame += 1

        if self.renderer is not None:
            self.renderer(self.surface_mesh)

        return self.surface_mesh

    def update(self):
        return self.tick()

    def pause(self):
        self.is_paused = True

    def play(self):
        self.is_paused = False
