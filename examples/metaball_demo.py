import taichi as ti

ti.init(arch=ti.cpu, offline_cache=True, debug=False)

from metaball_surface.config import MetaballConfig
from metaball_surface.surface_builder import SurfaceBuilder
from metaball_surface.surface_viewer import SurfaceViewer
from metaball_surface.utils import mc_log

config = MetaballConfig(grid_res=20, grid_cell_width=0.5, isolevel=1.0, num_metaballs=10,
                        min_radius=0.5, max_radius=1.0, max_speed=0.05, visual_debug=True, seed=7)
headless_frames = 100


if __name__ == "__main__":
    builder = SurfaceBuilder(config)

    if not config.visual_debug:
        for i in range(headless_frames):
            mesh = builder.tick()
            mc_log("Frame {}: {} triangles".format(builder.frame, mesh.shape[0]))
    else:
        viewer = SurfaceViewer(builder.grid, show_grid=False)
        viewer.open_window()
        center = config.grid_width / 2
        viewer.camera.position(center, center, 3 * config.grid_width)
        viewer.camera.lookat(center, center, center)

        while viewer.window.running:
            builder.tick()
            with viewer.gui.sub_window("Debug Panel", x=0, y=0, width=0.15, height=0.15):
                if viewer.gui.button("Pause" if not builder.is_paused else "Play"):
                    if builder.is_paused:
                        builder.play()
                    else:
                        builder.pause()
                if viewer.gui.button("Hide grid" if viewer.show_grid else "Show grid"):
                    if viewer.show_grid:
                        viewer.hide()
                    else:
                        viewer.show()
                viewer.gui.text("{} triangles".format(builder.surface_mesh.shape[0]))

            viewer.run_viewer_frame(builder, particle_radius=config.min_radius / 4)
