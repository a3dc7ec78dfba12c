"""
Quantum state catalog for the hydrogen orbitals the visualizer supports.

The catalog is a fixed, read-only table built at import time. Lookups return
``None`` for unsupported combinations instead of raising.
"""
from dataclasses import dataclass
from numbers import Integral
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class QuantumState:
    n: int
    l: int
    m: int
    label: str
    name: str
    description: str

    @property
    def key(self) -> Tuple[int, int, int]:
        return (self.n, self.l, self.m)

    @property
    def option_label(self) -> str:
        """Text shown in the state picker, e.g. ``2pz (n=2, l=1, m=0)``"""
        return f"{self.label} (n={self.n}, l={self.l}, m={self.m})"


# -- Catalog --
QUANTUM_STATES: Tuple[QuantumState, ...] = (
    QuantumState(1, 0, 0, "1s", "1s orbital", "Ground state, spherically symmetric"),
    QuantumState(2, 0, 0, "2s", "2s orbital", "First excited state, spherically symmetric"),
    QuantumState(2, 1, 0, "2pz", "2pz orbital", "Dumbbell along the z axis"),
    QuantumState(2, 1, 1, "2px", "2px orbital", "Dumbbell along the x axis"),
    QuantumState(2, 1, -1, "2py", "2py orbital", "Dumbbell along the y axis"),
    QuantumState(3, 0, 0, "3s", "3s orbital", "Spherically symmetric with radial nodes"),
    QuantumState(3, 1, 0, "3pz", "3pz orbital", "Dumbbell with a radial node"),
    QuantumState(3, 2, 0, "3dz²", "3dz² orbital", "Lobes along the z axis with an equatorial ring"),
    QuantumState(3, 2, 1, "3dxz", "3dxz orbital", "Four lobes in the xz plane"),
    QuantumState(3, 2, -1, "3dyz", "3dyz orbital", "Four lobes in the yz plane"),
    QuantumState(3, 2, 2, "3dx²-y²", "3dx²-y² orbital", "Four lobes in the xy plane along x and y"),
    QuantumState(3, 2, -2, "3dxy", "3dxy orbital", "Four lobes in the xy plane along the diagonals"),
)

_STATES_BY_KEY: Dict[Tuple[int, int, int], QuantumState] = {s.key: s for s in QUANTUM_STATES}

ORBITAL_NAMES = ('s', 'p', 'd', 'f', 'g')

SHAPE_DESCRIPTIONS = {
    0: "Spherically symmetric (s orbital)",
    1: "Dumbbell (p orbital)",
    2: "Cloverleaf (d orbital)",
    3: "Complex lobes (f orbital)",
}

MAGNETIC_DESCRIPTIONS = {
    (1, 0): "Oriented along the z axis",
    (1, 1): "Oriented along the x axis",
    (1, -1): "Oriented along the y axis",
    (2, 0): "Oriented along the z axis",
    (2, 1): "In the xz plane",
    (2, -1): "In the yz plane",
    (2, 2): "In the xy plane along the x and y axes",
    (2, -2): "In the xy plane along the diagonals",
}


# -- Lookups --
def get_all_states():
    """Return every catalog state in declaration order."""
    return QUANTUM_STATES


def get_state(n, l, m) -> Optional[QuantumState]:
    """
    Exact (n, l, m) lookup

    :param n: principal quantum number
    :param l: angular momentum quantum number
    :param m: magnetic quantum number
    :return: the catalog state, or None when the combination is not supported
    """
    return _STATES_BY_KEY.get((n, l, m))


def get_state_by_label(label) -> Optional[QuantumState]:
    for state in QUANTUM_STATES:
        if state.label == label:
            return state
    return None


def get_states_by_n(n):
    return tuple(s for s in QUANTUM_STATES if s.n == n)


def get_states_by_l(l):
    return tuple(s for s in QUANTUM_STATES if s.l == l)


def group_states_by_n() -> Dict[int, Tuple[QuantumState, ...]]:
    """Catalog grouped by n, both levels in declaration order."""
    groups: Dict[int, Tuple[QuantumState, ...]] = {}
    for state in QUANTUM_STATES:
        groups[state.n] = groups.get(state.n, ()) + (state,)
    return groups


# -- Descriptions --
def get_orbital_name(l) -> str:
    if isinstance(l, Integral) and not isinstance(l, bool) and 0 <= l < len(ORBITAL_NAMES):
        return ORBITAL_NAMES[l]
    return f"l={l}"


def get_shape_description(l) -> str:
    return SHAPE_DESCRIPTIONS.get(l, f"Angular momentum quantum number l={l}")


def get_magnetic_description(l, m) -> str:
    if l == 0:
        return "Spherically symmetric"
    return MAGNETIC_DESCRIPTIONS.get((l, m), f"Magnetic quantum number m={m}")
