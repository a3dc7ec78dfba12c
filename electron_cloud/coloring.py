"""
Color mapping for electron cloud points.

``color_for`` is the single source of truth for orbital point colors; the
engine calls the vectorized ``colors_for``. ``gradient_colors`` maps
probabilities through a perceptual colormap for the viewer's alternative
color modes.
"""
import numpy as np


# -- Orbital base colors (RGB 0-255), keyed by l --
ORBITAL_BASE_COLORS = {
    0: (100, 150, 255),  # s: blue
    1: (100, 255, 150),  # p: green
    2: (200, 100, 255),  # d: violet
}
DEFAULT_BASE_COLOR = (100, 230, 255)  # cyan

DEPTH_MODULATION = 0.08
DEPTH_SCALE = 5.0


def base_color(l):
    return ORBITAL_BASE_COLORS.get(l, DEFAULT_BASE_COLOR)


def colors_for(l, probabilities, positions):
    """
    Vectorized orbital coloring

    :param l: angular momentum quantum number selecting the hue family
    :param probabilities: (N,) normalized probabilities in [0, 1]
    :param positions: (N, 3) Cartesian positions
    :return: (N, 3) uint8 array of RGB colors
    """
    p = np.clip(np.nan_to_num(np.asarray(probabilities, dtype=float), nan=0.0), 0.0, 1.0)
    pos = np.asarray(positions, dtype=float).reshape(-1, 3)

    brightness = 0.5 + 0.5 * p
    # Points toward +z render slightly brighter than points toward -z
    depth = 1.0 + DEPTH_MODULATION * np.tanh(np.nan_to_num(pos[:, 2]) / DEPTH_SCALE)

    rgb = np.asarray(base_color(l), dtype=float)[None, :] * (brightness * depth)[:, None]
    return np.clip(np.floor(rgb), 0, 255).astype(np.uint8)


def color_for(l, probability, position):
    """Color of a single point as an ``(r, g, b)`` tuple of ints in [0, 255]."""
    rgb = colors_for(l, [probability], [position])[0]
    return (int(rgb[0]), int(rgb[1]), int(rgb[2]))


# -- Gradient colormaps (color stops from low to high) --
GRADIENTS = {
    'viridis': [(0.267004, 0.004874, 0.329415), (0.253935, 0.265254, 0.529983),
                (0.163625, 0.471133, 0.558148), (0.134692, 0.658636, 0.517649),
                (0.477504, 0.821444, 0.318195), (0.993248, 0.906157, 0.143936)],
    'plasma': [(0.050383, 0.029803, 0.527975), (0.476205, 0.011783, 0.619659),
               (0.786283, 0.207078, 0.489221), (0.957854, 0.447483, 0.326634),
               (0.982894, 0.755750, 0.302830), (0.940015, 0.975158, 0.131326)],
    'inferno': [(0.001462, 0.000466, 0.013866), (0.258234, 0.038571, 0.406485),
                (0.578304, 0.148039, 0.404411), (0.865006, 0.316822, 0.226055),
                (0.987622, 0.645320, 0.039886), (0.988362, 0.998364, 0.644924)],
    'magma': [(0.001462, 0.000466, 0.013866), (0.235739, 0.057873, 0.417331),
              (0.520908, 0.166606, 0.513531), (0.800215, 0.334051, 0.402597),
              (0.967983, 0.611140, 0.427397), (0.987053, 0.991438, 0.749504)],
    'turbo': [(0.18995, 0.07176, 0.23217), (0.13211, 0.46452, 0.75466),
              (0.53779, 0.79978, 0.58085), (0.96696, 0.82256, 0.13046),
              (0.88836, 0.45096, 0.13974), (0.49602, 0.01960, 0.01893)],
}

# "orbital" keeps the engine's per-point colors
COLORMAPS = ('orbital',) + tuple(GRADIENTS)


def gradient_colors(probabilities, colormap='viridis', color_scale=1.0):
    """
    Map probabilities through a gradient colormap

    :param probabilities: (N,) values in [0, 1]
    :param colormap: name in GRADIENTS; unknown names use viridis
    :param color_scale: power scaling, higher pushes values toward the high end
    :return: (N, 3) float array of RGB in [0, 1]
    """
    gradient = np.asarray(GRADIENTS.get(colormap, GRADIENTS['viridis']))
    p = np.clip(np.asarray(probabilities, dtype=float), 0.0, 1.0)
    p = np.power(p, 1.0 / max(color_scale, 1e-6))

    stops = np.linspace(0.0, 1.0, len(gradient))
    return np.column_stack([np.interp(p, stops, gradient[:, c]) for c in range(3)])
