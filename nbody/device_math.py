"""
Per-Body Device Math
====================

Scalar routines shared by every compute backend. They are written once as
plain Python and compiled per target by ``build_device_functions``:

    build_device_functions(njit)                   # CPU kernels (Numba)
    build_device_functions(cuda.jit(device=True))  # CUDA device functions
    HOST                                           # pure Python, for checks

Only scalar math and array indexing are used so the same source is valid
under nopython mode, CUDA and the plain interpreter.
"""

import math


MASK32 = 0xFFFFFFFF
GOLDEN_GAMMA = 0x9E3779B9

# Maps the top 24 bits of a hash onto [-1, 1)
UNIT_SCALE = 2.0 / 16777216.0

# Disc shape: vertical half-thickness relative to the planar radius, and the
# rim shrink that keeps the flared edge inside the scene scale.
DISC_THICKNESS = 0.1
DISC_RIM = 1.0 / math.sqrt(1.0 + DISC_THICKNESS * DISC_THICKNESS)


def build_device_functions(jit):
    """Compile the per-body routines with the given decorator.

    Returns a dict of callables, keyed by name.
    """

    @jit
    def hash32(a):
        # Robert Jenkins' 32-bit integer mix
        a = a & MASK32
        a = ((a + 0x7ED55D16) + (a << 12)) & MASK32
        a = ((a ^ 0xC761C23C) ^ (a >> 19)) & MASK32
        a = ((a + 0x165667B1) + (a << 5)) & MASK32
        a = ((a + 0xD3A2646C) ^ (a << 9)) & MASK32
        a = ((a + 0xFD7046C5) + (a << 3)) & MASK32
        a = ((a ^ 0xB55A4F09) ^ (a >> 16)) & MASK32
        return a

    @jit
    def unit_float(h):
        return (h >> 8) * UNIT_SCALE - 1.0

    @jit
    def random_vec3(index, seed):
        """Uniform components in [-1, 1), keyed only by (index, seed)."""
        key = hash32(index) ^ hash32(seed + GOLDEN_GAMMA)
        return (
            unit_float(hash32(key + 1)),
            unit_float(hash32(key + 2)),
            unit_float(hash32(key + 3)),
        )

    @jit
    def disc_position(index, seed, scale):
        rx, ry, rz = random_vec3(index, seed)
        theta = math.pi * rx
        rho = scale * DISC_RIM * math.sqrt(0.5 * (ry + 1.0))
        return (
            rho * math.cos(theta),
            rho * math.sin(theta),
            DISC_THICKNESS * rho * rz,
        )

    @jit
    def orbital_velocity(px, py, G, central_mass, epsilon):
        """Circular-orbit velocity around the z axis for a body at (px, py)."""
        planar = math.sqrt(px * px + py * py)
        if planar == 0.0:
            return 0.0, 0.0, 0.0
        speed = math.sqrt(G * central_mass / (planar + epsilon))
        # cross(R / |R|, z) normalized is (y, -x, 0) / planar
        return speed * py / planar, -speed * px / planar, 0.0

    @jit
    def pair_acceleration(mass, px, py, pz, ox, oy, oz, G, epsilon):
        """G * mass * normalize(other - self) / r^2, zero inside the cutoff."""
        dx = ox - px
        dy = oy - py
        dz = oz - pz
        r2 = dx * dx + dy * dy + dz * dz
        if r2 <= epsilon:
            return 0.0, 0.0, 0.0
        r = math.sqrt(r2)
        f = G * mass / (r2 * r)
        return dx * f, dy * f, dz * f

    @jit
    def body_acceleration(i, positions, n, G, central_mass, body_mass, epsilon):
        px = positions[i, 0]
        py = positions[i, 1]
        pz = positions[i, 2]

        ax, ay, az = pair_acceleration(
            central_mass, px, py, pz, 0.0, 0.0, 0.0, G, epsilon
        )

        # All bodies, self included; the cutoff zeroes the self term
        for j in range(n):
            cx, cy, cz = pair_acceleration(
                body_mass, px, py, pz,
                positions[j, 0], positions[j, 1], positions[j, 2],
                G, epsilon
            )
            ax += cx
            ay += cy
            az += cz

        return ax, ay, az

    @jit
    def integrate_body(i, positions, velocities, accelerations, dt):
        # Velocity first, then position from the updated velocity
        velocities[i, 0] += accelerations[i, 0] * dt
        velocities[i, 1] += accelerations[i, 1] * dt
        velocities[i, 2] += accelerations[i, 2] * dt

        positions[i, 0] += velocities[i, 0] * dt
        positions[i, 1] += velocities[i, 1] * dt
        positions[i, 2] += velocities[i, 2] * dt

    @jit
    def project_body(i, positions, dest, c_scale):
        dest[4 * i + 0] = positions[i, 0] * c_scale
        dest[4 * i + 1] = positions[i, 1] * c_scale
        dest[4 * i + 2] = positions[i, 2] * c_scale
        dest[4 * i + 3] = 1.0

    return {
        'hash32': hash32,
        'unit_float': unit_float,
        'random_vec3': random_vec3,
        'disc_position': disc_position,
        'orbital_velocity': orbital_velocity,
        'pair_acceleration': pair_acceleration,
        'body_acceleration': body_acceleration,
        'integrate_body': integrate_body,
        'project_body': project_body,
    }


def _interpreted(fn):
    return fn


# Plain-Python build, used for host-side reference values
HOST = build_device_functions(_interpreted)
