import datetime
import logging
import os

import cv2
import numpy as np
import pygame

logger = logging.getLogger("sandbox")


def surface_to_bgr(surface, frame_size=None):
    """
    Convert a pygame Surface to an OpenCV BGR frame.

    Args:
        surface: pygame Surface
        frame_size: Optional (width, height); the frame is scaled to it when the
            surface has been resized since recording started

    Returns:
        uint8 numpy array of shape (height, width, 3)
    """
    frame = pygame.surfarray.array3d(surface)
    frame = np.swapaxes(frame, 0, 1)  # pygame is (x, y), OpenCV is (row, col)
    frame = cv2.cvtColor(frame, cv2.COLOR_RGB2BGR)
    if frame_size is not None and (frame.shape[1], frame.shape[0]) != tuple(frame_size):
        frame = cv2.resize(frame, tuple(frame_size), interpolation=cv2.INTER_AREA)
    return frame


class Recorder:
    """Records the simulation canvas to an MP4 file"""

    def __init__(self, output_dir="recordings", fps=60):
        self.output_dir = output_dir
        self.fps = fps
        self.recording = False
        self.video_writer = None
        self.video_filename = ""
        self.frame_size = None
        self.frames_written = 0

    def start_recording(self, frame_size):
        """
        Open a timestamped video file.

        Args:
            frame_size: (width, height) of the recorded frames
        """
        if self.recording:
            logger.info("Recording already in progress")
            return

        os.makedirs(self.output_dir, exist_ok=True)
        timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
        self.video_filename = os.path.join(self.output_dir, f"sandbox_{timestamp}.mp4")
        self.frame_size = (int(frame_size[0]), int(frame_size[1]))

        fourcc = cv2.VideoWriter_fourcc(*"mp4v")
        self.video_writer = cv2.VideoWriter(self.video_filename, fourcc, self.fps, self.frame_size)
        if not self.video_writer.isOpened():
            logger.warning(f"Could not open video writer for {self.video_filename}")
            self.video_writer = None
            return

        self.frames_written = 0
        self.recording = True
        logger.info(f"Started recording to {self.video_filename}")

    def capture_frame(self, surface):
        if not self.recording or self.video_writer is None:
            return
        self.video_writer.write(surface_to_bgr(surface, self.frame_size))
        self.frames_written += 1

    def stop_recording(self):
        if not self.recording:
            return
        if self.video_writer is not None:
            self.video_writer.release()
            self.video_writer = None
        self.recording = False
        logger.info(f"Recording saved to {self.video_filename} ({self.frames_written} frames)")
