"""Orbital camera around the origin, z axis up."""

import math
import numpy as np
from OpenGL.GL import *
from OpenGL.GLU import *
from config import nbody as config


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class Camera:
    """Orbits the central mass; theta is azimuth, phi is elevation above the disc."""

    def __init__(self):
        cam = config.CAMERA
        self.radius = cam["initial_radius"]
        self.target_radius = self.radius
        self.theta = cam["initial_theta"]
        self.phi = cam["initial_phi"]
        self.zoom_smoothing = 8.0

    def get_direction(self) -> np.ndarray:
        """Unit vector from the origin toward the camera."""
        theta_rad = math.radians(self.theta)
        phi_rad = math.radians(self.phi)
        return np.array([
            math.cos(phi_rad) * math.cos(theta_rad),
            math.cos(phi_rad) * math.sin(theta_rad),
            math.sin(phi_rad),
        ])

    def get_position(self) -> np.ndarray:
        return self.radius * self.get_direction()

    def rotate(self, d_theta: float, d_phi: float):
        """Rotate the camera by the given angles in degrees."""
        self.theta = (self.theta + d_theta) % 360
        self.phi = _clamp(self.phi + d_phi, config.CAMERA["min_phi"], config.CAMERA["max_phi"])

    def zoom(self, delta: float):
        """Immediately zoom by the given amount."""
        self.radius = _clamp(self.radius + delta,
                             config.CAMERA["min_radius"], config.CAMERA["max_radius"])
        self.target_radius = self.radius

    def zoom_smooth(self, delta: float):
        self.target_radius = _clamp(self.target_radius + delta,
                                    config.CAMERA["min_radius"], config.CAMERA["max_radius"])

    def update(self, dt: float):
        self.radius += (self.target_radius - self.radius) * min(1.0, self.zoom_smoothing * dt)

    def apply(self):
        """Load the view transform into the modelview matrix."""
        pos = self.get_position()
        glLoadIdentity()
        gluLookAt(
            pos[0], pos[1], pos[2],
            0.0, 0.0, 0.0,
            0, 0, 1
        )
