"""
Self-rescheduling animation loop.

The loop owns at most one outstanding frame request at a time. Each frame
draws the latest signal/knob snapshots and then asks the scheduler for
the next frame, unless the loop was stopped in the meantime.

States::

    IDLE --start--> RUNNING <--pause/resume--> PAUSED
                       \\                         /
                        +-------stop----> STOPPED
"""

import enum
import logging
from typing import Callable, Protocol

from solarscope.core.mapper import MappedVisualParams, map_visual_params
from solarscope.core.params import ParameterSet
from solarscope.core.particles import ParticlePopulation
from solarscope.core.signal import Signal
from solarscope.errors import RenderTargetLost
from solarscope.render.canvas import Canvas
from solarscope.render.corona import CoronaRenderer
from solarscope.render.viewport import Viewport

logger = logging.getLogger(__name__)

FrameCallback = Callable[[float], None]


class FrameScheduler(Protocol):
    """Host primitive that calls back once per display refresh."""

    def request_frame(self, callback: FrameCallback) -> int:
        ...

    def cancel_frame(self, handle: int) -> None:
        ...


class ManualScheduler:
    """
    Scheduler driven by explicit ``run_pending()`` calls.

    Used for headless runs and tests; the pygame host has its own.
    """

    def __init__(self):
        self._pending: dict[int, FrameCallback] = {}
        self._next_handle = 1
        self.now = 0.0

    def request_frame(self, callback: FrameCallback) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self._pending[handle] = callback
        return handle

    def cancel_frame(self, handle: int) -> None:
        self._pending.pop(handle, None)

    @property
    def pending(self) -> int:
        return len(self._pending)

    def run_pending(self, timestamp: float | None = None) -> int:
        """
        Fire the callbacks requested before this call.

        Callbacks requested while running wait for the next call.
        Returns the number of callbacks fired.
        """
        timestamp = self.now if timestamp is None else timestamp
        fired = 0
        for handle in list(self._pending):
            callback = self._pending.pop(handle, None)
            if callback is None:
                continue
            callback(timestamp)
            fired += 1
        return fired

    def advance(self, frames: int = 1, dt: float = 1 / 60) -> int:
        """Run ``frames`` refresh ticks ``dt`` seconds apart."""
        fired = 0
        for _ in range(frames):
            self.now += dt
            fired += self.run_pending(self.now)
        return fired


class LoopState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"


class AnimationLoop:
    """
    Drives the corona renderer from the current signal and knobs.

    Signal and knob updates replace whole snapshots; the next frame picks
    them up. While PAUSED the signal is frozen but frames keep rendering.
    """

    def __init__(
        self,
        canvas: Canvas,
        scheduler: FrameScheduler,
        signal_source=None,
        knobs: ParameterSet | None = None,
        renderer: CoronaRenderer | None = None,
        population: ParticlePopulation | None = None,
        seed: int | None = None,
    ):
        self.canvas = canvas
        self.scheduler = scheduler
        self.signal_source = signal_source
        self.renderer = renderer if renderer is not None else CoronaRenderer(seed=seed)
        self.population = population if population is not None else ParticlePopulation(seed=seed)
        self.viewport = Viewport(*canvas.logical_size, canvas.viewport.pixel_ratio)

        self.state = LoopState.IDLE
        self.frame_count = 0
        self._handle: int | None = None

        self._signal = signal_source.current() if signal_source is not None else Signal()
        self._knobs = (knobs if knobs is not None else ParameterSet()).sanitized()
        self._mapped: MappedVisualParams | None = None
        self._mapped_key: tuple[Signal, ParameterSet] | None = None

    # -- state machine -----------------------------------------------------

    @property
    def live(self) -> bool:
        """True while signal updates are being taken."""
        return self.state is LoopState.RUNNING

    @property
    def active(self) -> bool:
        return self.state in (LoopState.RUNNING, LoopState.PAUSED)

    def start(self, viewport: Viewport | None = None):
        """Mount: apply the initial viewport and schedule the first frame."""
        if self.state is not LoopState.IDLE:
            return
        if viewport is not None:
            self.resize(viewport.width, viewport.height, viewport.pixel_ratio)
        self.state = LoopState.RUNNING
        self._schedule()

    def pause(self):
        """Freeze the signal; rendering continues."""
        if self.state is LoopState.RUNNING:
            self.state = LoopState.PAUSED

    def resume(self):
        if self.state is LoopState.PAUSED:
            self.state = LoopState.RUNNING
            if self.signal_source is not None:
                self._signal = self.signal_source.current()

    def toggle_live(self) -> bool:
        """Pause or resume. Returns the new ``live`` value."""
        if self.state is LoopState.RUNNING:
            self.pause()
        elif self.state is LoopState.PAUSED:
            self.resume()
        return self.live

    def stop(self):
        """Tear down. Cancels the outstanding frame; idempotent."""
        if self.state is LoopState.STOPPED:
            return
        self.state = LoopState.STOPPED
        if self._handle is not None:
            handle, self._handle = self._handle, None
            self.scheduler.cancel_frame(handle)

    # -- inputs ------------------------------------------------------------

    @property
    def signal(self) -> Signal:
        return self._signal

    @property
    def knobs(self) -> ParameterSet:
        return self._knobs

    def push_signal(self, signal: Signal) -> bool:
        """Replace the current snapshot. Ignored unless live (or not yet started)."""
        if self.state in (LoopState.PAUSED, LoopState.STOPPED):
            return False
        self._signal = signal
        return True

    def set_knobs(self, knobs: ParameterSet):
        self._knobs = knobs.sanitized()

    def resize(self, width: float, height: float, pixel_ratio: float | None = None):
        """Apply a new viewport immediately so the next frame uses it."""
        self.viewport.update(width, height, pixel_ratio)
        self.canvas.resize(self.viewport)

    def mapped_params(self) -> MappedVisualParams:
        """Mapped parameters for the current snapshots, recomputed on change."""
        key = (self._signal, self._knobs)
        if self._mapped is None or key != self._mapped_key:
            self._mapped = map_visual_params(self._signal, self._knobs)
            self._mapped_key = key
        return self._mapped

    # -- frames ------------------------------------------------------------

    def _schedule(self):
        self._handle = self.scheduler.request_frame(self._on_frame)

    def _on_frame(self, timestamp: float):
        self._handle = None
        if not self.active:
            return

        if self.live and self.signal_source is not None:
            self._signal = self.signal_source.current()

        try:
            self.render_once()
        except RenderTargetLost as e:
            logger.warning("Render target lost, stopping animation loop: %s", e)
            self.stop()
            return

        if self.active:
            self._schedule()

    def render_once(self):
        """Draw one frame from the current snapshots."""
        mapped = self.mapped_params()
        self.population.sync(mapped.particle_count)
        self.renderer.draw_frame(self.canvas, self._signal, self._knobs, mapped, self.population)
        self.frame_count += 1
