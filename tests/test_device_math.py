import math

import numpy as np
import pytest

from nbody import cpu_backend
from nbody.device_math import DISC_THICKNESS, HOST, MASK32


hash32 = HOST['hash32']
unit_float = HOST['unit_float']
random_vec3 = HOST['random_vec3']
disc_position = HOST['disc_position']
orbital_velocity = HOST['orbital_velocity']
pair_acceleration = HOST['pair_acceleration']


def test_hash32_stays_in_32_bits():
    for a in [0, 1, 2, 12345, MASK32, MASK32 + 7, 2**40 + 3]:
        h = hash32(a)
        assert 0 <= h <= MASK32


def test_hash32_only_sees_low_32_bits():
    assert hash32(5) == hash32(5 + (1 << 32))


def test_hash32_spreads_neighbouring_inputs():
    values = {hash32(i) for i in range(1000)}
    assert len(values) == 1000


def test_unit_float_range():
    assert unit_float(0) == -1.0
    top = unit_float(MASK32)
    assert top < 1.0
    assert top == pytest.approx(1.0, abs=1e-6)


def test_random_vec3_is_keyed_by_index_and_seed():
    assert random_vec3(3, 1) == random_vec3(3, 1)
    assert random_vec3(3, 1) != random_vec3(4, 1)
    assert random_vec3(3, 1) != random_vec3(3, 2)
    for component in random_vec3(17, 9):
        assert -1.0 <= component < 1.0


def test_disc_position_stays_inside_scale():
    scale = 50.0
    for i in range(2000):
        x, y, z = disc_position(i, 1, scale)
        planar = math.hypot(x, y)
        assert math.sqrt(x * x + y * y + z * z) <= scale * (1 + 1e-12)
        assert abs(z) <= DISC_THICKNESS * planar + 1e-12


def test_disc_position_covers_the_disc():
    scale = 1.0
    radii = [math.hypot(*disc_position(i, 1, scale)[:2]) for i in range(4000)]
    # Area-uniform disc: about a quarter of bodies inside half the radius
    inner = sum(r < 0.5 for r in radii) / len(radii)
    assert 0.18 < inner < 0.32
    assert max(radii) > 0.95 * scale / math.sqrt(1 + DISC_THICKNESS ** 2)


def test_orbital_velocity_is_tangent_with_circular_speed():
    G, M, eps = 2.0, 3.0, 1e-4
    px, py = 3.0, 4.0
    vx, vy, vz = orbital_velocity(px, py, G, M, eps)

    assert vz == 0.0
    assert vx * px + vy * py == pytest.approx(0.0, abs=1e-12)
    assert math.hypot(vx, vy) == pytest.approx(math.sqrt(G * M / (5.0 + eps)))
    # cross(r_hat, z) = (y, -x, 0)
    assert vx > 0 and vy < 0


def test_orbital_velocity_at_origin_is_zero():
    assert orbital_velocity(0.0, 0.0, 1.0, 1.0, 1e-4) == (0.0, 0.0, 0.0)


def test_pair_acceleration_inverse_square():
    ax, ay, az = pair_acceleration(4.0, 0.0, 0.0, 0.0, 2.0, 0.0, 0.0, 1.5, 1e-4)
    assert ax == pytest.approx(1.5 * 4.0 / 4.0)
    assert ay == 0.0 and az == 0.0


def test_pair_acceleration_cutoff_is_inclusive():
    eps = 1e-2
    # r^2 == eps exactly
    assert pair_acceleration(1.0, 0.0, 0.0, 0.0, 0.1, 0.0, 0.0, 1.0, 0.1 * 0.1) == (0.0, 0.0, 0.0)
    assert pair_acceleration(1.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 1.0, eps) == (0.0, 0.0, 0.0)
    assert pair_acceleration(1.0, 0.0, 0.0, 0.0, 0.2, 0.0, 0.0, 1.0, eps)[0] > 0.0


def test_compiled_functions_match_interpreted():
    compiled = cpu_backend._dev
    for i in [0, 1, 99, 123456]:
        assert compiled['hash32'](i) == hash32(i)
        assert compiled['random_vec3'](i, 7) == random_vec3(i, 7)
        np.testing.assert_allclose(compiled['disc_position'](i, 7, 10.0),
                                   disc_position(i, 7, 10.0), rtol=1e-14, atol=1e-12)
