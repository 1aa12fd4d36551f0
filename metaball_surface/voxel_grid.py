## @package VoxelGrid
# Fixed uniform lattice of cells, each holding 8 corner samples and 1 center sample of the scalar field
import taichi as ti
import numpy as np
from collections import namedtuple
from metaball_surface.utils import mc_assert


## Python-scope snapshot of one cell
Cell = namedtuple("Cell", ["index", "center", "width", "corner_positions", "corner_values", "center_value"])


@ti.data_oriented
class VoxelGrid:
    ## @detail Corners of a cell are enumerated around its center c with half width h as:
    #
    #       7 ---------- 4
    #       / |        /|
    #      /  |       / |
    #     3----------0  |          front face (+z): 0 -> 1 -> 2 -> 3
    #     |   |      |  |          back face  (-z): 4 -> 5 -> 6 -> 7, corner k + 4 behind corner k
    #     |   6------|--5
    #     |  /       | /           0: c + (+h, +h, +h)    4: c + (+h, +h, -h)
    #     | /        |/            1: c + (+h, -h, +h)    5: c + (+h, -h, -h)
    #     2----------1             2: c + (-h, -h, +h)    6: c + (-h, -h, -h)
    #                              3: c + (-h, +h, +h)    7: c + (-h, +h, -h)
    #
    # The marching cubes edge and triangle tables are indexed with this enumeration.
    corner_signs = np.array(
        [
            [1, 1, 1],
            [1, -1, 1],
            [-1, -1, 1],
            [-1, 1, 1],
            [1, 1, -1],
            [1, -1, -1],
            [-1, -1, -1],
            [-1, 1, -1],
        ], dtype=np.float32
    )

    ## @param res Number of cells along each axis
    #  @param cell_width Edge length of a cell
    #  @param origin World position of the lower corner of the grid
    def __init__(self, res: int, cell_width: float, origin=(0.0, 0.0, 0.0)):
        mc_assert(res >= 1, "Grid resolution needs to be at least 1.")
        mc_assert(cell_width > 0, "Cell width needs to be positive.")

        self.res = res
        self.res2 = res * res
        self.res3 = res * res * res
        self.cell_width = cell_width
        self.half_cell_width = cell_width / 2.0
        self.origin = np.array(origin, dtype=np.float32)

        self.cell_center = ti.Vector.field(n=3, dtype=ti.f32, shape=self.res3)
        self.corner_pos = ti.Vector.field(n=3, dtype=ti.f32, shape=(self.res3, 8))
        self.corner_value = ti.field(dtype=ti.f32, shape=(self.res3, 8))
        self.center_value = ti.field(dtype=ti.f32, shape=self.res3)

        self.setup_cells()

    ## @param i1 Linear cell index in [0, res^3)
    #  @return 3D cell index (x, y, z)
    def i1_to_i3(self, i1):
        return i1 % self.res, (i1 % self.res2) // self.res, i1 // self.res2

    ## @param x, y, z 3D cell index
    #  @return Linear cell index
    def i3_to_i1(self, x, y, z):
        return x + y * self.res + z * self.res2

    ## @param i3 3D cell index
    #  @return World position of the cell center
    def i3_to_pos(self, i3):
        return self.origin + np.asarray(i3, dtype=np.float32) * self.cell_width + self.half_cell_width

    def setup_cells(self):
        i1 = np.arange(self.res3)
        i3 = np.stack(self.i1_to_i3(i1), axis=1)
        centers = self.i3_to_pos(i3).astype(np.float32)
        corners = centers[:, None, :] + VoxelGrid.corner_signs[None, :, :] * self.half_cell_width

        self.cell_center.from_numpy(centers)
        self.corner_pos.from_numpy(corners.astype(np.float32))
        self.corner_value.fill(0)
        self.center_value.fill(0)

    ## @param metaballs The metaballs whose field is sampled
    #  @detail: Recomputes every corner and center sample of every cell
    @ti.kernel
    def resample(self, metaballs: ti.template()):
        for c, w in self.corner_value:
            self.corner_value[c, w] = metaballs.sample(self.corner_pos[c, w])

        for c in self.center_value:
            self.center_value[c] = metaballs.sample(self.cell_center[c])

    def get_cell(self, i1) -> Cell:
        mc_assert(0 <= i1 < self.res3, "Cell index {} is out of range [0, {}).".format(i1, self.res3))
        return Cell(
            index=i1,
            center=self.cell_center[i1].to_numpy(),
            width=self.cell_width,
            corner_positions=np.array([self.corner_pos[i1, w].to_numpy() for w in range(8)]),
            corner_values=np.array([self.corner_value[i1, w] for w in range(8)], dtype=np.float32),
            center_value=self.center_value[i1],
        )
