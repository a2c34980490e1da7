"""
Pygame host window.

Plays the part of the browser: it owns the display, fires frame
callbacks once per refresh, delivers resize events, runs the signal
timer and turns key presses into knob edits.

Keys:
    Space       pause / resume the live signal
    S           cycle style preset
    P           toggle particle shape
    G           toggle film grain
    [ / ]       posterize levels
    Up / Down   base particle count
    Left/Right  wind multiplier
    , / .       background lightness
    - / =       flare amplitude
    9 / 0       particle amplitude
    Esc         quit
"""

import logging
import time

import pygame

from solarscope.core.params import ParameterSet
from solarscope.core.signal import RandomWalkSignalSource
from solarscope.errors import RenderTargetLost
from solarscope.render.canvas import Canvas
from solarscope.render.corona import CoronaRenderer
from solarscope.render.loop import AnimationLoop, FrameCallback, ManualScheduler
from solarscope.render.viewport import Viewport

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SIZE = (1280, 720)

# key -> (knob, steps)
KNOB_KEYS = {
    pygame.K_PERIOD: ("bg_lightness", 1),
    pygame.K_COMMA: ("bg_lightness", -1),
    pygame.K_RIGHTBRACKET: ("posterize", 1),
    pygame.K_LEFTBRACKET: ("posterize", -1),
    pygame.K_UP: ("base_particles", 1),
    pygame.K_DOWN: ("base_particles", -1),
    pygame.K_RIGHT: ("wind_multiplier", 1),
    pygame.K_LEFT: ("wind_multiplier", -1),
    pygame.K_EQUALS: ("flare_amp", 1),
    pygame.K_MINUS: ("flare_amp", -1),
    pygame.K_0: ("particle_amp", 1),
    pygame.K_9: ("particle_amp", -1),
}


class SolarscopeHost:
    """
    Resizable pygame window running an AnimationLoop.

    The host is the loop's frame scheduler: pending frame callbacks fire
    once per pass of the event loop, paced by ``pygame.time.Clock``.
    """

    def __init__(
        self,
        width: int = 1280,
        height: int = 720,
        fps: int = 60,
        pixel_ratio: float = 1.0,
        knobs: ParameterSet | None = None,
        signal_source=None,
        renderer: CoronaRenderer | None = None,
        seed: int | None = None,
        start_paused: bool = False,
        caption: str = "Solarscope",
    ):
        self.viewport = Viewport()
        self.viewport.update(width, height, pixel_ratio)
        if self.viewport.is_empty:
            logger.warning(
                "Window size %sx%s is unusable, using %dx%d", width, height, *DEFAULT_WINDOW_SIZE
            )
            self.viewport.update(*DEFAULT_WINDOW_SIZE)
        self.fps = fps
        self.caption = caption
        self.start_paused = start_paused
        self.signal_source = (
            signal_source if signal_source is not None else RandomWalkSignalSource(seed=seed)
        )

        self.scheduler = ManualScheduler()
        self.canvas = Canvas()
        self.loop = AnimationLoop(
            self.canvas,
            self,
            signal_source=self.signal_source,
            knobs=knobs,
            renderer=renderer,
            seed=seed,
        )
        self.screen: pygame.Surface | None = None
        self.clock: pygame.time.Clock | None = None
        self.running = False
        self._caption_text: str | None = None

    # -- FrameScheduler ----------------------------------------------------

    def request_frame(self, callback: FrameCallback) -> int:
        return self.scheduler.request_frame(callback)

    def cancel_frame(self, handle: int) -> None:
        self.scheduler.cancel_frame(handle)

    # -- lifecycle ---------------------------------------------------------

    def open(self):
        pygame.init()
        self._caption_text = None
        self.update_caption()
        self.screen = pygame.display.set_mode(self.viewport.backing_size, pygame.RESIZABLE)
        self.clock = pygame.time.Clock()
        self.running = True

        # The first frame must see the real window size
        self.loop.start(self.viewport)
        if self.start_paused:
            self.loop.pause()

    def close(self):
        """Stop the loop first so no frame callback outlives the window."""
        self.loop.stop()
        self.canvas.release()
        self.running = False
        if pygame.get_init():
            pygame.quit()

    def run(self, max_frames: int | None = None) -> int:
        """
        Run until the window closes or ``max_frames`` frames were drawn.

        Returns:
            Number of frames drawn.
        """
        if self.screen is None:
            self.open()

        try:
            while self.running and self.loop.active:
                for event in pygame.event.get():
                    self.handle_event(event)
                if not self.running:
                    break

                if self.loop.live:
                    self.signal_source.poll(time.monotonic())

                self.scheduler.run_pending(pygame.time.get_ticks() / 1000.0)
                if not self.loop.active:
                    break
                self.update_caption()
                self.present()

                if max_frames is not None and self.loop.frame_count >= max_frames:
                    break
                self.clock.tick(self.fps)
        finally:
            frames = self.loop.frame_count
            self.close()
        return frames

    def present(self):
        """Copy the canvas to the window."""
        if self.canvas.viewport.is_empty:
            return
        try:
            frame = self.canvas.surface
            if frame.get_size() != self.screen.get_size():
                frame = pygame.transform.scale(frame, self.screen.get_size())
            self.screen.blit(frame, (0, 0))
            pygame.display.flip()
        except (pygame.error, RenderTargetLost) as e:
            logger.warning("Display lost: %s", e)
            self.loop.stop()

    def status_caption(self) -> str:
        """Window title: live indicator plus the incoming signal readout."""
        sig = self.loop.signal
        state = "LIVE" if self.loop.live else "PAUSED"
        return (
            f"{self.caption} [{state}] t={sig.timestamp:.1f}s"
            f" flare {sig.flare_prob:.2f} wind {sig.solar_wind_speed:.2f}"
            f" kp {sig.kp_index:.2f} sunspot {sig.sunspot_area:.2f}"
        )

    def update_caption(self) -> bool:
        """Retitle the window when the readout changed. Returns True if it did."""
        text = self.status_caption()
        if text == self._caption_text:
            return False
        self._caption_text = text
        pygame.display.set_caption(text)
        return True

    # -- events ------------------------------------------------------------

    def handle_event(self, event: pygame.event.Event):
        if event.type == pygame.QUIT:
            self.running = False
        elif event.type == pygame.VIDEORESIZE:
            self.handle_resize(event.w, event.h)
        elif event.type == pygame.KEYDOWN:
            self.handle_key(event.key)

    def handle_resize(self, width: int, height: int):
        """Window pixels -> logical viewport; applied before the next frame."""
        ratio = self.viewport.pixel_ratio
        self.viewport.update(width / ratio, height / ratio)
        self.loop.resize(self.viewport.width, self.viewport.height, ratio)

    def handle_key(self, key: int):
        knobs = self.loop.knobs
        if key == pygame.K_ESCAPE:
            self.running = False
            return
        if key == pygame.K_SPACE:
            live = self.loop.toggle_live()
            print("Live signal resumed" if live else "Live signal paused", flush=True)
            return

        if key == pygame.K_s:
            knobs = knobs.cycle_style()
            message = f"style: {knobs.style}"
        elif key == pygame.K_p:
            knobs = knobs.toggle_shape()
            message = f"particle shape: {knobs.particle_shape}"
        elif key == pygame.K_g:
            knobs = knobs.toggle_grain()
            message = f"grain: {'on' if knobs.grain else 'off'}"
        elif key in KNOB_KEYS:
            name, steps = KNOB_KEYS[key]
            knobs = knobs.nudge(name, steps)
            message = f"{name}: {getattr(knobs, name)}"
        else:
            return

        self.loop.set_knobs(knobs)
        print(message, flush=True)
