# -- Imports --
import json
import logging

import numpy as np
import streamlit as st
import streamlit.components.v1 as components

from electron_cloud import config
from electron_cloud.coloring import COLORMAPS, gradient_colors
from electron_cloud.export import export_csv, export_filename, export_json
from electron_cloud.logging_config import setup_logging
from electron_cloud.sampling import (
    CloudRequest,
    apply_cutoff,
    cloud_extent,
    generate_electron_cloud_data,
    points_to_arrays,
)
from electron_cloud.states import (
    get_magnetic_description,
    get_orbital_name,
    get_shape_description,
    get_state,
    group_states_by_n,
)

logger = logging.getLogger("electron_cloud.app")


# -- Cached generation --
@st.cache_data(show_spinner=False)
def sample_cloud(n, l, m, num_points, seed):
    """
    Generate (and cache) the full cloud for one request

    The cutoff is applied afterwards so moving the cutoff slider does not
    resample.

    :param n: principal energy level integer (quantum number)
    :param l: azimuthal/angular momentum integer (quantum number)
    :param m: magnetic quantum number (quantum number)
    :param num_points: target number of points
    :param seed: seed for the sampling generator
    :return: list of SamplePoints
    """
    rng = np.random.default_rng(seed)
    return generate_electron_cloud_data(n, l, m, num_points, rng=rng)


def create_threejs_viewer(points, state, particle_size=1.5, opacity=0.85, colormap='orbital',
                          color_scale=1.0, auto_rotate=False, rotation_speed=1.0):
    """
    Create the Three.js HTML viewer for a cloud

    :param points: SamplePoints to render
    :param state: QuantumState shown in the overlay
    :param particle_size: Size of rendered spheres
    :param opacity: Transparency of spheres (0-1)
    :param colormap: 'orbital' for the engine colors, or a gradient colormap name
    :param color_scale: Power scaling for gradient colormaps
    :param auto_rotate: Start with the cloud spinning
    :param rotation_speed: Auto-rotation speed multiplier
    :return: HTML string for Three.js viewer
    """
    positions, probabilities, colors = points_to_arrays(points)

    if colormap == 'orbital':
        rgb = colors.astype(float) / 255.0
    else:
        rgb = gradient_colors(probabilities, colormap, color_scale)

    box_size = max(cloud_extent(points), 1.0) * 1.1
    camera_distance = box_size * 2.2

    overlay = f"{state.label} | (n,l,m) = ({state.n},{state.l},{state.m}) | {len(points):,} points"

    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <style>
            body {{ margin: 0; overflow: hidden; background: #0a0a0a; }}
            canvas {{ display: block; }}
            #info {{
                position: absolute;
                top: 10px;
                left: 10px;
                color: white;
                font-family: monospace;
                background: rgba(0,0,0,0.5);
                padding: 10px;
                border-radius: 5px;
                font-size: 12px;
            }}
            #controls {{
                position: absolute;
                top: 10px;
                right: 10px;
                display: flex;
                gap: 6px;
            }}
            #controls button {{
                background: rgba(0,0,0,0.5);
                color: white;
                border: 1px solid rgba(255,255,255,0.3);
                border-radius: 5px;
                font-family: monospace;
                padding: 4px 10px;
                cursor: pointer;
            }}
        </style>
    </head>
    <body>
        <div id="info">{overlay}</div>
        <div id="controls">
            <button id="zoomInBtn" title="Zoom in (+)">+</button>
            <button id="zoomOutBtn" title="Zoom out (-)">&minus;</button>
            <button id="resetViewBtn" title="Reset view (R)">Reset</button>
        </div>
        <script src="https://cdnjs.cloudflare.com/ajax/libs/three.js/r128/three.min.js"></script>
        <script>
            const scene = new THREE.Scene();
            scene.background = new THREE.Color(0x0a0a0a);

            const camera = new THREE.PerspectiveCamera(
                60, window.innerWidth / window.innerHeight, 0.1, 5000
            );
            camera.position.set(0, 0, {camera_distance});

            const renderer = new THREE.WebGLRenderer({{ antialias: true, preserveDrawingBuffer: true }});
            renderer.setSize(window.innerWidth, window.innerHeight);
            document.body.appendChild(renderer.domElement);

            // Everything that rotates together
            const cloud = new THREE.Group();
            scene.add(cloud);

            // ===== ELECTRON CLOUD (instanced spheres) =====
            const positions = new Float32Array({json.dumps(positions.ravel().tolist())});
            const colors = new Float32Array({json.dumps(rgb.ravel().tolist())});
            const numPoints = positions.length / 3;

            if (numPoints > 0) {{
                const geometry = new THREE.SphereGeometry(1, 8, 6);
                const material = new THREE.MeshBasicMaterial({{ transparent: true, opacity: {opacity} }});
                const mesh = new THREE.InstancedMesh(geometry, material, numPoints);
                const dummy = new THREE.Object3D();
                const color = new THREE.Color();
                const scale = {particle_size * 0.05 * box_size / 10};

                for (let i = 0; i < numPoints; i++) {{
                    const i3 = i * 3;
                    dummy.position.set(positions[i3], positions[i3 + 1], positions[i3 + 2]);
                    dummy.scale.set(scale, scale, scale);
                    dummy.updateMatrix();
                    mesh.setMatrixAt(i, dummy.matrix);
                    color.setRGB(colors[i3], colors[i3 + 1], colors[i3 + 2]);
                    mesh.setColorAt(i, color);
                }}
                cloud.add(mesh);
            }}

            // ===== NUCLEUS =====
            const nucleus = new THREE.Mesh(
                new THREE.SphereGeometry({box_size * 0.02}, 16, 16),
                new THREE.MeshBasicMaterial({{ color: 0xef4444 }})
            );
            cloud.add(nucleus);

            // ===== AXES AND REFERENCE BOX =====
            cloud.add(new THREE.AxesHelper({box_size * 0.8}));
            const box = new THREE.LineSegments(
                new THREE.EdgesGeometry(new THREE.BoxGeometry({box_size * 2}, {box_size * 2}, {box_size * 2})),
                new THREE.LineBasicMaterial({{ color: 0x555555, transparent: true, opacity: 0.25 }})
            );
            cloud.add(box);

            // ===== MOUSE CONTROLS WITH DAMPING =====
            let isDragging = false;
            let previous = {{ x: 0, y: 0 }};
            let velocity = {{ x: 0, y: 0 }};
            const damping = 0.92;
            let autoRotate = {json.dumps(bool(auto_rotate))};
            const autoSpeed = 0.005 * {rotation_speed};

            renderer.domElement.addEventListener('mousedown', (e) => {{
                isDragging = true;
                previous = {{ x: e.offsetX, y: e.offsetY }};
                velocity = {{ x: 0, y: 0 }};
            }});
            renderer.domElement.addEventListener('mouseup', () => {{ isDragging = false; }});
            renderer.domElement.addEventListener('mouseleave', () => {{ isDragging = false; }});
            renderer.domElement.addEventListener('mousemove', (e) => {{
                if (isDragging) {{
                    velocity.x += ((e.offsetY - previous.y) * 0.01 - velocity.x) * 0.3;
                    velocity.y += ((e.offsetX - previous.x) * 0.01 - velocity.y) * 0.3;
                }}
                previous = {{ x: e.offsetX, y: e.offsetY }};
            }});
            renderer.domElement.addEventListener('dblclick', () => {{ autoRotate = !autoRotate; }});

            // ===== VIEW BUTTONS AND KEYS =====
            const initialDistance = camera.position.z;
            function zoomBy(factor) {{
                camera.position.z = Math.max(0.5, camera.position.z * factor);
            }}
            function resetView() {{
                velocity = {{ x: 0, y: 0 }};
                cloud.rotation.set(0, 0, 0);
                camera.position.set(0, 0, initialDistance);
            }}
            document.getElementById('zoomInBtn').addEventListener('click', () => zoomBy(0.8));
            document.getElementById('zoomOutBtn').addEventListener('click', () => zoomBy(1.25));
            document.getElementById('resetViewBtn').addEventListener('click', resetView);
            document.addEventListener('keydown', (e) => {{
                switch (e.key.toLowerCase()) {{
                    case 'r': resetView(); break;
                    case '+': case '=': zoomBy(0.8); break;
                    case '-': case '_': zoomBy(1.25); break;
                    case ' ': e.preventDefault(); autoRotate = !autoRotate; break;
                }}
            }});
            renderer.domElement.addEventListener('wheel', (e) => {{
                e.preventDefault();
                const factor = Math.log10(Math.abs(camera.position.z) + 1) + 0.5;
                camera.position.z = Math.max(0.5, camera.position.z + e.deltaY * 0.01 * factor);
            }});

            window.addEventListener('resize', () => {{
                camera.aspect = window.innerWidth / window.innerHeight;
                camera.updateProjectionMatrix();
                renderer.setSize(window.innerWidth, window.innerHeight);
            }});

            function animate() {{
                requestAnimationFrame(animate);
                cloud.rotation.x += velocity.x;
                cloud.rotation.y += velocity.y;
                velocity.x *= damping;
                velocity.y *= damping;
                if (autoRotate && !isDragging) {{
                    cloud.rotation.y += autoSpeed;
                }}
                renderer.render(scene, camera);
            }}

            animate();
        </script>
    </body>
    </html>
    """


def main():
    st.set_page_config(layout='wide')
    st.title("Hydrogen Electron Cloud")
    setup_logging(config.LOG_LEVEL)

    # Current selection lives in the session, not in the engine
    if 'state_key' not in st.session_state:
        st.session_state.state_key = config.DEFAULT_STATE_KEY

    # Sidebar Controls
    st.sidebar.header("Quantum State")
    groups = group_states_by_n()
    shells = list(groups)
    n_choice = st.sidebar.radio(
        'Shell (n)', shells, index=shells.index(st.session_state.state_key[0]), horizontal=True
    )
    options = groups[n_choice]
    keys = [s.key for s in options]
    index = keys.index(st.session_state.state_key) if st.session_state.state_key in keys else 0
    selected = st.sidebar.selectbox('Orbital', options, index=index, format_func=lambda s: s.option_label)
    st.session_state.state_key = selected.key

    st.sidebar.divider()
    st.sidebar.subheader("Sampling")
    num_points = st.sidebar.slider(
        'Points', config.MIN_NUM_POINTS, config.MAX_NUM_POINTS, config.DEFAULT_NUM_POINTS,
        step=config.NUM_POINTS_STEP, key='num_points'
    )
    cutoff = st.sidebar.slider(
        'Probability cutoff', config.MIN_CUTOFF, config.MAX_CUTOFF, config.DEFAULT_CUTOFF,
        step=0.01, key='cutoff'
    )
    seed = int(st.sidebar.number_input('Seed', min_value=0, value=config.DEFAULT_SEED, step=1, key='seed'))

    st.sidebar.divider()
    st.sidebar.subheader("Visuals")
    particle_size = st.sidebar.slider("Size", 0.1, 10.0, config.DEFAULT_PARTICLE_SIZE, step=0.1, key='particle_size')
    opacity = st.sidebar.slider("Opacity", 0.1, 1.0, config.DEFAULT_OPACITY, step=0.05, key='opacity')
    colormap = st.sidebar.selectbox("Colormap", COLORMAPS, key='colormap')
    color_scale = st.sidebar.slider("Color Scale", 0.1, 5.0, 1.0, step=0.1, key='color_scale',
                                    disabled=colormap == 'orbital')
    auto_rotate = st.sidebar.toggle("Auto-rotate", value=False, key='auto_rotate')
    rotation_speed = st.sidebar.slider("Rotation speed", 0.1, 5.0, config.DEFAULT_ROTATION_SPEED,
                                       step=0.1, key='rotation_speed')

    n, l, m = selected.key
    state = get_state(n, l, m)
    if state is None:
        st.error("Invalid quantum state")
        return

    request = CloudRequest(n, l, m, num_points, cutoff)
    with st.spinner("Generating electron cloud..."):
        cloud = sample_cloud(request.n, request.l, request.m, request.num_points, seed)
    points = apply_cutoff(cloud, request.probability_cutoff)
    logger.info("%s: %d points generated, %d above cutoff %.2f", state.label, len(cloud), len(points), cutoff)

    if not points:
        st.warning("No points to display for this state and cutoff.")

    st.info(
        f"**{state.name}** | {state.description} | "
        f"{get_shape_description(l)}, {get_magnetic_description(l, m).lower()} | "
        f"l = {l} ({get_orbital_name(l)}) | {len(points):,} of {len(cloud):,} points | "
        f"Extent: ~{cloud_extent(points):.2f} Bohr radii"
    )

    html_content = create_threejs_viewer(
        points, state, particle_size, opacity, colormap,
        color_scale=color_scale, auto_rotate=auto_rotate, rotation_speed=rotation_speed
    )
    components.html(html_content, height=config.VIEWER_HEIGHT, scrolling=False)

    col_json, col_csv = st.columns(2)
    col_json.download_button(
        "Export JSON", export_json(points, state), file_name=export_filename(state, 'json'),
        mime='application/json', disabled=not points
    )
    col_csv.download_button(
        "Export CSV", export_csv(points), file_name=export_filename(state, 'csv'),
        mime='text/csv', disabled=not points
    )


if __name__ == "__main__":
    main()
