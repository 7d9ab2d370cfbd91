"""
playback.py

Plays the patient's MP3 reply through pygame.mixer.
"""

import io
import time

import pygame


class PygamePlayer:

    def __init__(self, poll: float = 0.03):
        self.poll = poll
        if not pygame.mixer.get_init():
            pygame.mixer.init()

    def stop(self):
        # Immediately cut off any current playback
        if pygame.mixer.music.get_busy():
            pygame.mixer.music.stop()

    def play(self, audio: bytes) -> None:
        # Play and block until the clip finishes
        self.stop()
        pygame.mixer.music.load(io.BytesIO(audio))
        pygame.mixer.music.play()

        # busy becomes True shortly after .play()
        start_deadline = time.time() + 2.0  # guard if device is muted/etc.
        while not pygame.mixer.music.get_busy() and time.time() < start_deadline:
            time.sleep(self.poll)
        while pygame.mixer.music.get_busy():
            time.sleep(self.poll)
