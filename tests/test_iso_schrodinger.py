"""
Unit tests for the gridded density and its marching-cubes isosurface.
"""

import numpy as np
import pytest

from iso_schrodinger import density_on_grid, extract_isosurface, generate_grid, orbital_isosurface
from schrodinger import density, density_bound


class TestGrid:
    """Test the Cartesian evaluation of the density."""

    def test_grid_shape_and_extent(self):
        X, Y, Z = generate_grid(grid_size=11, extent=5.0)
        assert X.shape == Y.shape == Z.shape == (11, 11, 11)
        assert X.min() == -5.0 and Z.max() == 5.0

    def test_matches_spherical_density(self):
        """A point on the grid agrees with density(r, theta)."""
        X, Y, Z = (np.array([1.0]), np.array([2.0]), np.array([2.0]))
        r = 3.0
        assert density_on_grid(X, Y, Z)[0] == pytest.approx(density(r, np.arccos(2.0 / 3.0)))

    def test_origin_is_finite(self):
        """The origin evaluates to zero rather than NaN."""
        X, Y, Z = generate_grid(grid_size=5, extent=1.0)
        P = density_on_grid(X, Y, Z)
        assert np.isfinite(P).all()
        assert P[2, 2, 2] == 0.0


class TestIsosurface:
    """Test the extracted surface."""

    def test_vertices_lie_on_level(self):
        """Vertices sit where density / bound is close to the level."""
        a0 = 1.0
        verts, faces = orbital_isosurface(level=0.1, grid_size=60, extent=10.0, a0=a0)
        assert len(verts) > 0 and faces.shape[1] == 3

        r = np.linalg.norm(verts, axis=1)
        theta = np.arccos(np.clip(verts[:, 2] / r, -1, 1))
        ratio = density(r, theta, a0) / density_bound(a0)
        assert np.median(ratio) == pytest.approx(0.1, abs=0.02)

    def test_two_lobes_along_z(self):
        """The surface has vertices above and below the nodal plane, none on it."""
        verts, _ = orbital_isosurface(level=0.2, grid_size=50, extent=8.0)
        assert (verts[:, 2] > 0).any() and (verts[:, 2] < 0).any()
        assert np.abs(verts[:, 2]).min() > 0.1

    def test_vertices_inside_grid(self):
        verts, _ = orbital_isosurface(level=0.1, grid_size=40, extent=9.0)
        assert np.abs(verts).max() <= 9.0 + 1e-9

    def test_origin_offset(self):
        """extract_isosurface shifts vertices by the origin."""
        P = np.zeros((5, 5, 5))
        P[2, 2, 2] = 1.0
        verts, _ = extract_isosurface(P, 0.5, origin=(-2.0, -2.0, -2.0))
        np.testing.assert_allclose(verts.mean(axis=0), [0.0, 0.0, 0.0], atol=1e-9)

    @pytest.mark.parametrize("level", [0.0, 1.0, -0.5, 2.0])
    def test_level_out_of_range(self, level):
        with pytest.raises(ValueError):
            orbital_isosurface(level=level, grid_size=10)
