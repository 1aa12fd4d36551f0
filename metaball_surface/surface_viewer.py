import taichi as ti
import numpy as np
from metaball_surface.utils import mc_assert
from metaball_surface.voxel_grid import VoxelGrid


@ti.data_oriented
class SurfaceViewer:
    edge_per_cube = 12

    ## @param grid The voxel grid whose cells may be drawn as wireframes
    #  @param max_num_triangles Capacity of the surface mesh buffers
    def __init__(self, grid: VoxelGrid, max_num_triangles=None, show_grid=True, window_res=(1600, 900)):
        self.num_cubes = grid.res3
        self.max_num_grid_vertices = 8 * self.num_cubes
        self.max_num_grid_indices = SurfaceViewer.edge_per_cube * 2 * self.num_cubes
        self.grid_vertices = ti.Vector.field(n=3, dtype=ti.f32, shape=self.max_num_grid_vertices)
        self.grid_indices = ti.field(dtype=ti.i32, shape=self.max_num_grid_indices)
        self.grid_color = ti.Vector.field(n=3, dtype=ti.f32, shape=self.max_num_grid_vertices)
        self.num_visible_cubes = ti.field(dtype=ti.i32, shape=())

        if max_num_triangles is None:
            max_num_triangles = grid.res3 * 5
        self.max_num_triangles = max_num_triangles
        self.mesh_vertices = ti.Vector.field(n=3, dtype=ti.f32, shape=3 * max_num_triangles)
        self.num_mesh_vertices = 0

        self.show_grid = show_grid
        self.window_res = window_res
        self.window = None

    def show(self):
        self.show_grid = True

    def hide(self):
        self.show_grid = False

    def open_window(self):
        self.window = ti.ui.Window("Metaball Viewer", self.window_res)
        self.canvas = self.window.get_canvas()
        self.scene = ti.ui.Scene()
        self.camera = ti.ui.Camera()
        self.gui = self.window.get_gui()

    ## @param vertex_offset The offset in the vertex field to start filling the 8 box vertices
    #  @param index_offset The offset in the index field to start filling the 24 line indices
    #  @param center, half_width The box of the cell
    @ti.func
    def fill_cube_wireframe(self, vertex_offset, index_offset, center, half_width):
        dx = ti.Vector([1.0, 0.0, 0.0]) * half_width
        dy = ti.Vector([0.0, 1.0, 0.0]) * half_width
        dz = ti.Vector([0.0, 0.0, 1.0]) * half_width
        base = center - dx - dy - dz

        self.grid_vertices[vertex_offset] = base
        self.grid_vertices[vertex_offset + 1] = base + 2 * dx
        self.grid_vertices[vertex_offset + 2] = base + 2 * (dx + dy)
        self.grid_vertices[vertex_offset + 3] = base + 2 * dy
        self.grid_vertices[vertex_offset + 4] = base + 2 * dz
        self.grid_vertices[vertex_offset + 5] = base + 2 * (dx + dz)
        self.grid_vertices[vertex_offset + 6] = base + 2 * (dx + dy + dz)
        self.grid_vertices[vertex_offset + 7] = base + 2 * (dy + dz)

        for e in ti.static(range(4)):
            # bottom, top and vertical edges of the box
            self.grid_indices[index_offset + 2 * e] = vertex_offset + e
            self.grid_indices[index_offset + 2 * e + 1] = vertex_offset + (e + 1) % 4
            self.grid_indices[index_offset + 8 + 2 * e] = vertex_offset + 4 + e
            self.grid_indices[index_offset + 8 + 2 * e + 1] = vertex_offset + 4 + (e + 1) % 4
            self.grid_indices[index_offset + 16 + 2 * e] = vertex_offset + e
            self.grid_indices[index_offset + 16 + 2 * e + 1] = vertex_offset + 4 + e

    ## @param grid The voxel grid after resampling
    #  @param isolevel Cells whose center sample is above it are drawn
    @ti.kernel
    def generate_grid_wireframe_impl(self, grid: ti.template(), isolevel: ti.f32):
        self.num_visible_cubes[None] = 0
        for c in grid.center_value:
            if grid.center_value[c] > isolevel:
                cube = ti.atomic_add(self.num_visible_cubes[None], 1)
                self.fill_cube_wireframe(8 * cube, 24 * cube, grid.cell_center[c], grid.half_cell_width)
                for w in ti.static(range(8)):
                    self.grid_color[8 * cube + w] = (0.16, 0.5, 0.73)

    ## @return Number of cells drawn
    def generate_grid_wireframe(self, grid: VoxelGrid, isolevel):
        self.grid_vertices.fill(0)
        self.grid_indices.fill(0)
        self.generate_grid_wireframe_impl(grid, isolevel)
        return self.num_visible_cubes[None]

    def upload_mesh(self, mesh):
        mc_assert(mesh.shape[0] <= self.max_num_triangles,
                  "Mesh of {} triangles exceeds the viewer capacity {}.".format(mesh.shape[0], self.max_num_triangles))
        buffer = np.zeros((3 * self.max_num_triangles, 3), dtype=np.float32)
        buffer[:3 * mesh.shape[0]] = mesh.reshape(-1, 3)
        self.mesh_vertices.from_numpy(buffer)
        self.num_mesh_vertices = 3 * mesh.shape[0]

    ## @param builder The SurfaceBuilder whose current frame is drawn
    def run_viewer_frame(self, builder, particle_radius=0.1):
        if self.window is None:
            self.open_window()
            center = builder.config.grid_width / 2
            self.camera.position(center, center, 3 * builder.config.grid_width)
            self.camera.lookat(center, center, center)

        self.upload_mesh(builder.surface_mesh)

        self.camera.track_user_inputs(self.window, movement_speed=0.03, hold_key=ti.ui.LMB)
        self.scene.set_camera(self.camera)
        self.scene.ambient_light((0.8, 0.8, 0.8))
        self.scene.point_light(pos=(0.5, 1.5, 1.5), color=(1, 1, 1))
        if self.num_mesh_vertices > 0:
            self.scene.mesh(self.mesh_vertices, vertex_count=self.num_mesh_vertices, color=(1.0, 0.416, 0.114),
                            two_sided=True)
        self.scene.particles(builder.metaballs.pos, radius=particle_radius, color=(0.93, 0.93, 0.93))

        if self.show_grid:
            num_cubes = self.generate_grid_wireframe(builder.grid, builder.isolevel)
            if num_cubes > 0:
                self.scene.lines(self.grid_vertices, width=1.0, indices=self.grid_indices,
                                 per_vertex_color=self.grid_color, index_count=24 * num_cubes)

        self.canvas.scene(self.scene)
        self.window.show()
