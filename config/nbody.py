"""Configuration for the brute-force N-body simulation."""

# =============================================================================
# PERFORMANCE PRESETS - Choose one by uncommenting
# =============================================================================

# PRESET: HEAVY (20K bodies) - needs a CUDA card
# BODY_COUNT = 20_000

# PRESET: MEDIUM (5K bodies) - GPU or a many-core CPU
BODY_COUNT = 5_000

# PRESET: LIGHT (1K bodies) - any machine
# BODY_COUNT = 1_000

# =============================================================================

WINDOW = {
    "width": 1280,
    "height": 720,
    "title": "N-Body Disc Simulation"
}

# The viewer works in projected space: positions are divided by the scene
# scale, so the initial disc has unit radius.
CAMERA = {
    "fov": 60.0,
    "near_clip": 0.01,
    "far_clip": 50.0,
    "initial_radius": 2.5,
    "initial_theta": 45.0,
    "initial_phi": 30.0,
    "min_radius": 0.2,
    "max_radius": 20.0,
    "min_phi": -89.0,
    "max_phi": 89.0,
    "keyboard_rotate_speed": 60.0,
    "keyboard_zoom_speed": 1.5,
    "mouse_sensitivity": 0.3
}

GRID = {
    "rings": (0.25, 0.5, 0.75, 1.0),
    "segments": 96,
    "color": (0.08, 0.08, 0.12)
}

# N-body simulation parameters
NBODY = {
    "count": BODY_COUNT,           # Number of bodies
    "seed": 1,                     # Integer tag keying the position hash
    "scene_scale": 100.0,          # Radius of the initial disc

    # Physics parameters
    "G": 6.67e-11,                 # Gravitational constant (SI)
    "epsilon": 1e-4,               # Squared-distance cutoff for pairwise forces
    "star_mass": 5e10,             # Central mass at the origin
    "planet_mass": 3e8,            # Mass of each simulated body
    "dt": 0.5,                     # Seconds per tick

    # Dispatch: "auto", "cuda", "torch", "cpu"
    "backend": "auto",
    "threads_per_block": 128,      # CUDA block size
    "tile_size": 2048,             # Torch interaction tile edge
    "torch_device": None,          # None picks mps, then cuda, then cpu
}

POINTS = {
    "size": 2.0,
    "color": (0.55, 0.75, 1.0, 0.85),
}

COLORS = {
    "background": (0.0, 0.0, 0.02, 1.0),  # Deep space black
    "text": (0.7, 0.8, 0.9)
}
