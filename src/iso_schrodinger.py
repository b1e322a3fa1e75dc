import numpy as np
from skimage import measure

from schrodinger import A0, density, density_bound


# ---------------- Grid ---------------- #
def generate_grid(grid_size=80, extent=12.0):
    """Create 3D Cartesian grid from -extent to +extent"""
    lin = np.linspace(-extent, extent, grid_size)
    X, Y, Z = np.meshgrid(lin, lin, lin, indexing='ij')
    return X, Y, Z


def density_on_grid(X, Y, Z, a0=A0):
    """2p_z probability density at Cartesian points"""
    r = np.sqrt(X**2 + Y**2 + Z**2)
    theta = np.arccos(np.divide(Z, r, out=np.zeros_like(Z), where=r != 0))
    return density(r, theta, a0)


# ---------------- Isosurface ---------------- #
def extract_isosurface(P, level, spacing=(1.0, 1.0, 1.0), origin=(0.0, 0.0, 0.0)):
    """
    Extract mesh from 3D probability array using marching cubes.
    Vertices come back in the coordinates described by spacing/origin.
    """
    verts, faces, _, _ = measure.marching_cubes(P, level=level, spacing=spacing)
    return verts + np.asarray(origin), faces


def orbital_isosurface(level=0.1, grid_size=80, extent=12.0, a0=A0):
    """Surface where the 2p_z density equals `level` times the rejection envelope."""
    if not 0.0 < level < 1.0:
        raise ValueError(f"level must lie strictly between 0 and 1, got {level}")

    X, Y, Z = generate_grid(grid_size=grid_size, extent=extent)
    P = density_on_grid(X, Y, Z, a0) / density_bound(a0)

    step = 2.0 * extent / (grid_size - 1)
    return extract_isosurface(P, level, spacing=(step,) * 3, origin=(-extent,) * 3)
