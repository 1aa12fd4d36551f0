## @package Metaballs
# Moving point sources whose summed inverse-square falloff defines the scalar field
import taichi as ti
import numpy as np
from metaball_surface.utils import mc_assert
from metaball_surface.mc_math import inverse_square_falloff


@ti.data_oriented
class Metaballs:

    ## @param max_num_metaballs Capacity of the metaball fields
    #  @param grid_width Edge length of the cubic domain [0, grid_width]^3 the metaballs move in
    def __init__(self, max_num_metaballs: int, grid_width: float):
        mc_assert(max_num_metaballs >= 0, "Number of metaballs needs to be non-negative.")
        mc_assert(grid_width > 0, "Grid width needs to be positive.")

        # Fields are never empty, a zero capacity only keeps the live count at 0
        self.capacity = max(max_num_metaballs, 1)
        self.max_num_metaballs = max_num_metaballs
        self.grid_width = grid_width

        self.num_metaballs = ti.field(dtype=ti.i32, shape=())
        self.pos = ti.Vector.field(n=3, dtype=ti.f32, shape=self.capacity)
        self.vel = ti.Vector.field(n=3, dtype=ti.f32, shape=self.capacity)
        self.radius = ti.field(dtype=ti.f32, shape=self.capacity)
        self.query_value = ti.field(dtype=ti.f32, shape=())

    ## @param num Number of metaballs to generate, defaults to the capacity
    #  @detail: Positions are uniform in the domain, each velocity component is uniform in
    #           [-max_speed, max_speed] and radii are uniform in [min_radius, max_radius]
    def randomize(self, min_radius, max_radius, max_speed, seed=None, num=None):
        num = self.max_num_metaballs if num is None else num
        mc_assert(num <= self.max_num_metaballs, "Cannot generate more than {} metaballs.".format(self.max_num_metaballs))

        rng = np.random.default_rng(seed)
        pos = np.zeros((self.capacity, 3), dtype=np.float32)
        vel = np.zeros((self.capacity, 3), dtype=np.float32)
        radius = np.zeros(self.capacity, dtype=np.float32)

        pos[:num] = rng.random((num, 3)) * self.grid_width
        vel[:num] = (rng.random((num, 3)) * 2 - 1) * max_speed
        radius[:num] = rng.random(num) * (max_radius - min_radius) + min_radius

        self.pos.from_numpy(pos)
        self.vel.from_numpy(vel)
        self.radius.from_numpy(radius)
        self.num_metaballs[None] = num

    def set_metaball(self, i, pos, vel, radius):
        mc_assert(0 <= i < self.num_metaballs[None], "Metaball {} does not exist.".format(i))
        mc_assert(radius > 0, "Metaball radius needs to be positive.")
        self.pos[i] = [float(x) for x in pos]
        self.vel[i] = [float(x) for x in vel]
        self.radius[i] = radius

    def add_metaball(self, pos, vel, radius):
        count = self.num_metaballs[None]
        mc_assert(count < self.max_num_metaballs, "Cannot add more metaballs than {}".format(self.max_num_metaballs))
        self.num_metaballs[None] = count + 1
        self.set_metaball(count, pos, vel, radius)
        return count

    def clear(self):
        self.num_metaballs[None] = 0

    ## Advances every metaball by one step, reflecting it off the faces of the domain
    @ti.kernel
    def update(self):
        for i in range(self.num_metaballs[None]):
            p = self.pos[i] + self.vel[i]
            v = self.vel[i]
            for d in ti.static(range(3)):
                if p[d] < 0:
                    p[d] = 0.0
                    v[d] = -v[d]
                elif p[d] > self.grid_width:
                    p[d] = self.grid_width
                    v[d] = -v[d]
            self.pos[i] = p
            self.vel[i] = v

    ## @param p The query point
    #  @return Summed contribution of all metaballs at \a p
    @ti.func
    def sample(self, p):
        value = 0.0
        for i in range(self.num_metaballs[None]):
            value += inverse_square_falloff(self.radius[i], (p - self.pos[i]).norm_sqr())
        return value

    @ti.kernel
    def evaluate_impl(self, x: ti.f32, y: ti.f32, z: ti.f32):
        # Single outer iteration so the summation inside sample stays serial
        for _ in range(1):
            self.query_value[None] = self.sample(ti.Vector([x, y, z]))

    ## @param point The query point (x, y, z)
    #  @return The field value at \a point
    def evaluate(self, point):
        self.evaluate_impl(float(point[0]), float(point[1]), float(point[2]))
        return self.query_value[None]

    ## @return (positions, velocities, radii) of the live metaballs
    def to_numpy(self):
        count = self.num_metaballs[None]
        return self.pos.to_numpy()[:count], self.vel.to_numpy()[:count], self.radius.to_numpy()[:count]
