"""Keyboard and mouse controls for the N-body viewer."""

import pygame
from pygame.locals import *
from config import nbody as config

from .camera import Camera


# One-shot keys: pressing sets the named flag, the application clears it
TOGGLE_KEYS = {
    K_SPACE: "toggle_pause",
    K_r: "reset_requested",
    K_h: "toggle_help",
}

# Held keys: (azimuth sign, elevation sign) applied per frame
ROTATE_KEYS = {
    K_a: (-1, 0),
    K_d: (1, 0),
    K_w: (0, 1),
    K_s: (0, -1),
}

ZOOM_KEYS = {
    K_q: -1,
    K_e: 1,
}


class InputHandler:
    """Drives the camera and raises the viewer's pause/reset/help flags."""

    def __init__(self, camera: Camera):
        self.camera = camera
        self.dragging = False
        self.drag_origin = (0, 0)

        self.toggle_pause = False
        self.reset_requested = False
        self.toggle_help = False

    def handle_event(self, event: pygame.event.Event) -> bool:
        """Process one event; False means the viewer should close."""
        if event.type == QUIT:
            return False

        if event.type == KEYDOWN:
            if event.key == K_ESCAPE:
                return False
            flag = TOGGLE_KEYS.get(event.key)
            if flag is not None:
                setattr(self, flag, True)

        elif event.type == MOUSEBUTTONDOWN and event.button == 1:
            self.dragging = True
            self.drag_origin = pygame.mouse.get_pos()
        elif event.type == MOUSEBUTTONUP and event.button == 1:
            self.dragging = False
        elif event.type == MOUSEWHEEL:
            self.camera.zoom_smooth(-0.2 * event.y * config.CAMERA["keyboard_zoom_speed"])

        return True

    def handle_continuous_input(self, dt: float):
        cam = config.CAMERA
        keys = pygame.key.get_pressed()

        step = cam["keyboard_rotate_speed"] * dt
        for key, (sign_theta, sign_phi) in ROTATE_KEYS.items():
            if keys[key]:
                self.camera.rotate(sign_theta * step, sign_phi * step)

        for key, sign in ZOOM_KEYS.items():
            if keys[key]:
                self.camera.zoom(sign * cam["keyboard_zoom_speed"] * dt)

        if self.dragging:
            x, y = pygame.mouse.get_pos()
            ox, oy = self.drag_origin
            sensitivity = cam["mouse_sensitivity"]
            # Dragging right spins the disc with the cursor
            self.camera.rotate(-(x - ox) * sensitivity, (y - oy) * sensitivity)
            self.drag_origin = (x, y)
