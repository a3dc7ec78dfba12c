"""Hydrogen electron cloud sampling and state catalog."""
from .coloring import COLORMAPS, color_for, colors_for, gradient_colors
from .sampling import (
    CloudRequest,
    SamplePoint,
    SamplingCancelled,
    apply_cutoff,
    cloud_extent,
    generate_cloud,
    generate_electron_cloud_data,
    points_to_arrays,
)
from .states import (
    QuantumState,
    get_all_states,
    get_magnetic_description,
    get_orbital_name,
    get_shape_description,
    get_state,
    group_states_by_n,
)

__version__ = "0.1.0"
