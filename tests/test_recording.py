import os

import pygame

from sandbox.recording import Recorder, surface_to_bgr


def test_surface_to_bgr_swaps_channels_and_axes():
    surface = pygame.Surface((4, 2))
    surface.fill((10, 20, 30))
    surface.set_at((3, 1), (255, 0, 0))

    frame = surface_to_bgr(surface)

    assert frame.shape == (2, 4, 3)
    assert tuple(frame[0, 0]) == (30, 20, 10)
    assert tuple(frame[1, 3]) == (0, 0, 255)


def test_surface_to_bgr_scales_to_recorded_size():
    surface = pygame.Surface((40, 20))
    frame = surface_to_bgr(surface, (20, 10))
    assert frame.shape == (10, 20, 3)


def test_idle_recorder_ignores_frames_and_stop(tmp_path):
    recorder = Recorder(output_dir=str(tmp_path))
    recorder.capture_frame(pygame.Surface((8, 8)))
    recorder.stop_recording()
    assert recorder.frames_written == 0
    assert not recorder.recording


def test_records_resized_frames_to_mp4(tmp_path):
    recorder = Recorder(output_dir=str(tmp_path), fps=30)
    recorder.start_recording((64, 48))
    assert recorder.recording
    filename = recorder.video_filename

    # Starting again keeps the open file and its frame size
    recorder.start_recording((32, 32))
    assert recorder.video_filename == filename
    assert recorder.frame_size == (64, 48)

    surface = pygame.Surface((80, 40))
    for shade in range(5):
        surface.fill((40 * shade, 100, 200))
        recorder.capture_frame(surface)
    recorder.stop_recording()
    recorder.stop_recording()

    assert not recorder.recording
    assert recorder.frames_written == 5
    assert os.path.dirname(filename) == str(tmp_path)
    assert filename.endswith(".mp4")
    assert os.path.getsize(filename) > 0
