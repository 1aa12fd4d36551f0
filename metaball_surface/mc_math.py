import taichi as ti

## Field value reported for a query point that coincides with a metaball center
FIELD_SENTINEL = 1e30


## @param radius The radius of the metaball
#  @param dist2 The squared distance between the query point and the metaball center
#  @detail: Returns radius^2 / dist2 capped at FIELD_SENTINEL, or FIELD_SENTINEL when dist2 is zero
@ti.func
def inverse_square_falloff(radius, dist2):
    res = FIELD_SENTINEL
    if dist2 > 0:
        res = ti.min(radius * radius / dist2, FIELD_SENTINEL)
    return res


## @param isolevel The iso value of the surface
#  @param p1, p2 The positions of the two edge end points
#  @param val1, val2 The sampled values at \a p1 and \a p2
#  @detail: Returns the point on the edge where the linear interpolant equals \a isolevel.
#           Equal end values fall back to the edge midpoint.
@ti.func
def vertex_interpolate(isolevel, p1, p2, val1, val2):
    mu = 0.5
    delta = val2 - val1
    if delta != 0:
        mu = (isolevel - val1) / delta
    return p1 + mu * (p2 - p1)
