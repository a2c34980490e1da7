"""Drawing surface, frame renderer and animation loop."""

from solarscope.render.canvas import Canvas
from solarscope.render.corona import CoronaConfig, CoronaRenderer
from solarscope.render.loop import AnimationLoop, LoopState, ManualScheduler
from solarscope.render.viewport import Viewport
