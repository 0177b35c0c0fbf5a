import logging

import pygame

logger = logging.getLogger("sandbox")


class Canvas:
    """
    Raster drawing surface for the simulation.

    Wraps a pygame Surface with the two operations the engine needs: filling
    the whole surface (optionally alpha-blended, which leaves motion trails)
    and drawing filled circles.
    """

    def __init__(self, width, height, surface=None):
        self.surface = surface if surface is not None else pygame.Surface((width, height))
        self._overlay = None

    @property
    def width(self):
        return self.surface.get_width()

    @property
    def height(self):
        return self.surface.get_height()

    def fill(self, color, alpha=1.0):
        """
        Fill the whole surface.

        Args:
            color: pygame Color or RGB tuple
            alpha: Opacity in [0, 1]; below 1 the color is blended over what is there
        """
        if alpha >= 1.0:
            self.surface.fill(color)
            return

        if self._overlay is None or self._overlay.get_size() != self.surface.get_size():
            self._overlay = pygame.Surface(self.surface.get_size(), pygame.SRCALPHA)
        rgb = pygame.Color(color)
        self._overlay.fill((rgb.r, rgb.g, rgb.b, int(max(0.0, alpha) * 255)))
        self.surface.blit(self._overlay, (0, 0))

    def circle(self, center, radius, color):
        if radius <= 0:
            return
        try:
            pygame.draw.circle(self.surface, color, (int(center[0]), int(center[1])), max(1, int(radius)))
        except (pygame.error, ValueError, TypeError) as e:
            logger.debug(f"Skipped drawing circle at {center}: {e}")

    def resize(self, width, height):
        """Swap in a new surface of the given size, keeping what fits of the old contents."""
        old = self.surface
        self.surface = pygame.Surface((max(1, width), max(1, height)))
        self.surface.blit(old, (0, 0))
        self._overlay = None
