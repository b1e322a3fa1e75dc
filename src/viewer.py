"""
Point-cloud viewer for the sampled 2p_z orbital.

The cloud is drawn once as a single scatter collection; dragging with the left
mouse button orbits the camera (horizontal drag -> yaw, vertical -> pitch).
Nothing here feeds back into the sampler.
"""
import sys
from dataclasses import dataclass
from math import atan, degrees, radians, sqrt, tan

import matplotlib
import matplotlib.pyplot as plt
import numpy as np

from schrodinger import NUM_POINTS, make_rng, print_report, sample_points_batched

NON_INTERACTIVE_BACKENDS = {"agg", "cairo", "pdf", "pgf", "ps", "svg", "template"}

# Camera of the original scene: eye at (3, 3, 3), looking at the origin, 45 deg fovy
BASE_ELEV = degrees(atan(3.0 / sqrt(3.0**2 + 3.0**2)))
BASE_AZIM = 45.0
FOVY = 45.0


class ViewerInitError(RuntimeError):
    """The viewer cannot open an interactive window."""


# ---------------- Interaction state ---------------- #
@dataclass
class OrbitState:
    yaw: float = 0.0
    pitch: float = 0.0
    dragging: bool = False
    last_x: float = 0.0
    last_y: float = 0.0
    sensitivity: float = 0.1   # degrees per pixel


def begin_drag(state, x, y):
    state.dragging = True
    state.last_x = x
    state.last_y = y


def drag_to(state, x, y):
    """Accumulate rotation from pointer motion. Returns True if the view changed."""
    if not state.dragging:
        return False
    state.yaw += (x - state.last_x) * state.sensitivity
    # pointer y grows upward here; pitch follows screen-down drag
    state.pitch += (state.last_y - y) * state.sensitivity
    state.last_x = x
    state.last_y = y
    return True


def end_drag(state):
    state.dragging = False


# ---------------- Rendering ---------------- #
class PointCloudViewer:
    def __init__(self, points, isosurface=None, point_size=2.0, title="Hydrogen 2p_z orbital"):
        self.points = np.asarray(points, dtype=float).reshape(-1, 3)
        self.state = OrbitState()

        self.fig = plt.figure(figsize=(8, 6))
        if self.fig.canvas.manager is not None:
            self.fig.canvas.manager.set_window_title(title)
        self.ax = self.fig.add_subplot(projection="3d")
        self.ax.set_proj_type("persp", focal_length=1.0 / tan(radians(FOVY / 2.0)))

        # one upload for the whole cloud
        self.scatter = self.ax.scatter(
            self.points[:, 0], self.points[:, 1], self.points[:, 2],
            s=point_size, c="tab:blue", alpha=0.4, linewidths=0,
        )

        if isosurface is not None:
            verts, faces = isosurface
            self.ax.plot_trisurf(verts[:, 0], verts[:, 1], faces, verts[:, 2],
                                 color="tab:orange", alpha=0.15, linewidth=0)

        lim = self._extent()
        self.ax.set_xlim(-lim, lim)
        self.ax.set_ylim(-lim, lim)
        self.ax.set_zlim(-lim, lim)
        self.ax.set_box_aspect((1, 1, 1))
        self.ax.set_xlabel("x / a0")
        self.ax.set_ylabel("y / a0")
        self.ax.set_zlabel("z / a0")
        self.ax.set_title(f"{title}, {len(self.points)} points")

        # our handlers own the rotation
        self.ax.disable_mouse_rotation()
        canvas = self.fig.canvas
        self._cids = [
            canvas.mpl_connect("button_press_event", self._on_press),
            canvas.mpl_connect("motion_notify_event", self._on_motion),
            canvas.mpl_connect("button_release_event", self._on_release),
        ]
        self.apply_view()

    def _extent(self):
        if not len(self.points):
            return 1.0
        return float(np.percentile(np.abs(self.points), 99.5)) or 1.0

    def apply_view(self):
        self.ax.view_init(elev=BASE_ELEV + self.state.pitch, azim=BASE_AZIM + self.state.yaw)
        self.fig.canvas.draw_idle()

    def _on_press(self, event):
        if event.button == 1:
            begin_drag(self.state, event.x, event.y)

    def _on_motion(self, event):
        if drag_to(self.state, event.x, event.y):
            self.apply_view()

    def _on_release(self, event):
        if event.button == 1:
            end_drag(self.state)

    def show(self):
        backend = matplotlib.get_backend().lower()
        if backend in NON_INTERACTIVE_BACKENDS:
            raise ViewerInitError(f"matplotlib backend '{backend}' cannot open a window")
        plt.show()

    def close(self):
        for cid in self._cids:
            self.fig.canvas.mpl_disconnect(cid)
        plt.close(self.fig)


# ---------------- Main ---------------- #
def main():
    print("\n=== Schrodinger's Wave Function Visualization ===\n")
    N = int(input(f"How many candidates? (ex: {NUM_POINTS}): ") or NUM_POINTS)
    seed = input("Seed (blank for random): ").strip()
    overlay = input("Overlay isosurface? [y/N]: ").strip().lower() == "y"

    print("\nGenerating samples... please wait...")
    pts, stats = sample_points_batched(N, rng=make_rng(int(seed) if seed else None),
                                       return_stats=True)
    print_report(pts, stats)

    isosurface = None
    if overlay:
        from iso_schrodinger import orbital_isosurface
        isosurface = orbital_isosurface()
        print(f"Isosurface: {len(isosurface[0])} vertices, {len(isosurface[1])} faces")

    viewer = PointCloudViewer(pts, isosurface=isosurface)
    try:
        viewer.show()
    except ViewerInitError as e:
        print(f"Failed to open viewer: {e}")
        viewer.close()
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
