## @package MetaballConfig
# Construction-time parameters shared by the metaballs, the voxel grid and the surface builder
from metaball_surface.utils import mc_assert


class MetaballConfig:
    ## @param grid_res Number of cells along each axis of the sampling grid
    #  @param grid_cell_width Edge length of one cell
    #  @param grid_width Edge length of the cubic domain the metaballs bounce in,
    #                    defaults to grid_res * grid_cell_width
    #  @param isolevel Field value that defines the surface
    #  @param num_metaballs Number of metaballs created at setup
    #  @param min_radius, max_radius Range of the randomized metaball radius
    #  @param max_speed Maximum absolute velocity of a metaball along each axis
    #  @param visual_debug Whether the host should build the debug viewer
    #  @param seed Seed of the randomized setup, None for a fresh seed
    def __init__(self, grid_res=10, grid_cell_width=1.0, grid_width=None, isolevel=1.0, num_metaballs=10,
                 min_radius=0.5, max_radius=1.0, max_speed=0.01, visual_debug=False, seed=None):
        mc_assert(int(grid_res) == grid_res and grid_res >= 1, "grid_res needs to be a positive integer.")
        mc_assert(grid_cell_width > 0, "grid_cell_width needs to be positive.")
        if grid_width is None:
            grid_width = grid_res * grid_cell_width
        mc_assert(grid_width > 0, "grid_width needs to be positive.")
        mc_assert(int(num_metaballs) == num_metaballs and num_metaballs >= 0,
                  "num_metaballs needs to be a non-negative integer.")
        mc_assert(0 < min_radius <= max_radius,
                  "Metaball radius range [{}, {}] is invalid.".format(min_radius, max_radius))
        mc_assert(max_speed >= 0, "max_speed needs to be non-negative.")

        self.grid_res = int(grid_res)
        self.grid_cell_width = float(grid_cell_width)
        self.grid_width = float(grid_width)
        self.isolevel = float(isolevel)
        self.num_metaballs = int(num_metaballs)
        self.min_radius = float(min_radius)
        self.max_radius = float(max_radius)
        self.max_speed = float(max_speed)
        self.visual_debug = visual_debug
        self.seed = seed

    def __repr__(self):
        return "MetaballConfig(grid_res={}, grid_cell_width={}, grid_width={}, isolevel={}, num_metaballs={})".format(
            self.grid_res, self.grid_cell_width, self.grid_width, self.isolevel, self.num_metaballs)
