"""
Export of generated clouds as JSON or CSV text.

Only plain data leaves this module: the caller decides where the text goes
(a Streamlit download button, a file, ...).
"""
import io
import json
import logging
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Optional, Sequence

import numpy as np

from .sampling import SamplePoint, points_to_arrays
from .states import QuantumState

logger = logging.getLogger(__name__)

CSV_HEADER = "x,y,z,probability,r,g,b"


def _timestamp(timestamp: Optional[datetime]) -> str:
    if timestamp is None:
        timestamp = datetime.now(timezone.utc)
    return timestamp.isoformat()


def build_export_payload(points: Sequence[SamplePoint], state: QuantumState,
                         timestamp: Optional[datetime] = None) -> dict:
    """
    Assemble the export document

    :param points: the cloud as returned by the engine (after cutoff, if any)
    :param state: the quantum state the cloud was generated for
    :param timestamp: generation time, defaults to now (UTC)
    :return: dict with quantumState, parameters and data keys
    """
    return {
        'quantumState': asdict(state),
        'parameters': {
            'n': state.n,
            'l': state.l,
            'm': state.m,
            'points': len(points),
            'timestamp': _timestamp(timestamp),
        },
        'data': [p.to_dict() for p in points],
    }


def export_json(points, state, timestamp=None, indent=2) -> str:
    payload = build_export_payload(points, state, timestamp)
    logger.info("Exporting %d points for %s as JSON", len(points), state.label)
    return json.dumps(payload, indent=indent, ensure_ascii=False)


def export_csv(points) -> str:
    """One row per point: position, probability and RGB color."""
    positions, probabilities, colors = points_to_arrays(points)
    table = np.column_stack([positions, probabilities, colors.astype(float)])
    buffer = io.StringIO()
    np.savetxt(buffer, table, delimiter=',', header=CSV_HEADER, comments='',
               fmt=['%.6f', '%.6f', '%.6f', '%.6f', '%d', '%d', '%d'])
    logger.info("Exporting %d points as CSV", len(points))
    return buffer.getvalue()


def export_filename(state: QuantumState, extension='json', timestamp: Optional[datetime] = None) -> str:
    """e.g. ``hydrogen-data-2pz-2024-01-01T12-00-00-000000+00-00.json``"""
    stamp = _timestamp(timestamp).replace(':', '-').replace('.', '-')
    return f"hydrogen-data-{state.label}-{stamp}.{extension}"
