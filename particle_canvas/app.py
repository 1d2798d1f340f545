"""Desktop host: GLFW window, moderngl context, ImGui overlay and the particle engine.

The window stands in for the festival page. Mouse wheel scrolls the page
model, the cursor drives parallax, and the left/right arrow keys cycle shapes.
"""

import logging
import time

import glfw
import moderngl
from imgui_bundle import imgui
from imgui_bundle.python_backends.glfw_backend import GlfwRenderer as ImGuiGlfwRenderer

from particle_canvas.ui.control_panel import ControlPanel
from particle_canvas.ui.preset_manager import PresetManager
from particle_canvas.visualization.config import EngineConfig
from particle_canvas.visualization.engine import ParticleEngine
from particle_canvas.visualization.sections import SectionObserver

logger = logging.getLogger(__name__)

TITLE = "Refresko 2026"

# Pixels of page scrolled per wheel notch
SCROLL_STEP = 120.0


def _create_window(width: int, height: int):
    if not glfw.init():
        raise RuntimeError("Failed to initialize GLFW")

    # moderngl needs a 3.3 core profile for the particle shaders
    for hint, value in (
        (glfw.CONTEXT_VERSION_MAJOR, 3),
        (glfw.CONTEXT_VERSION_MINOR, 3),
        (glfw.OPENGL_PROFILE, glfw.OPENGL_CORE_PROFILE),
        (glfw.OPENGL_FORWARD_COMPAT, True),
        (glfw.SAMPLES, 4),
    ):
        glfw.window_hint(hint, value)

    window = glfw.create_window(width, height, TITLE, None, None)
    if not window:
        glfw.terminate()
        raise RuntimeError("Failed to create GLFW window")
    glfw.make_context_current(window)
    glfw.swap_interval(1)
    return window


class App:
    """Owns the window and the particle engine mounted into it."""

    def __init__(self, width: int = 1280, height: int = 720, config: EngineConfig | None = None):
        self.window = _create_window(width, height)
        self.ctx = moderngl.create_context()
        logger.info("[App] OpenGL %s", self.ctx.info.get("GL_VERSION", "?"))

        imgui.create_context()
        self.imgui_impl = ImGuiGlfwRenderer(self.window)
        style = imgui.get_style()
        imgui.style_colors_dark(style)
        style.window_rounding = 8.0
        style.frame_rounding = 3.0

        self.sections = SectionObserver(viewport_height=height)
        self.engine = ParticleEngine(config)
        self._mount_engine()

        self.control_panel = ControlPanel(PresetManager())

        # Chained after the ImGui callbacks
        glfw.set_framebuffer_size_callback(self.window, self._on_framebuffer_size)
        self._imgui_key_callback = glfw.set_key_callback(self.window, self._on_key)
        self._imgui_cursor_callback = glfw.set_cursor_pos_callback(self.window, self._on_cursor)
        self._imgui_scroll_callback = glfw.set_scroll_callback(self.window, self._on_scroll)

        self._windowed_rect = (*glfw.get_window_pos(self.window), width, height)
        self._last_frame_time = time.perf_counter()

    def _mount_engine(self):
        fb_w, fb_h = glfw.get_framebuffer_size(self.window)
        self.engine.start(self.ctx, fb_w, fb_h, observer=self.sections)

    def _restart_engine(self, config: EngineConfig):
        logger.info("[App] Restarting particle engine")
        self.engine.stop()
        self.engine = ParticleEngine(config)
        self._mount_engine()

    # --- GLFW callbacks ---

    def _on_framebuffer_size(self, window, width, height):
        if width <= 0 or height <= 0:
            return
        self.engine.on_viewport_resize(width, height)
        # The page model scrolls in window units, not framebuffer pixels
        self.sections.set_viewport_height(glfw.get_window_size(window)[1])

    def _on_cursor(self, window, x, y):
        if self._imgui_cursor_callback:
            self._imgui_cursor_callback(window, x, y)
        win_w, win_h = glfw.get_window_size(window)
        if win_w > 0 and win_h > 0:
            # [-1, 1] with +y up
            self.engine.on_pointer_move(2.0 * x / win_w - 1.0, 1.0 - 2.0 * y / win_h)

    def _on_scroll(self, window, xoffset, yoffset):
        if self._imgui_scroll_callback:
            self._imgui_scroll_callback(window, xoffset, yoffset)
        if not imgui.get_io().want_capture_mouse:
            self.sections.scroll_by(-yoffset * SCROLL_STEP)

    def _on_key(self, window, key, scancode, action, mods):
        if self._imgui_key_callback:
            self._imgui_key_callback(window, key, scancode, action, mods)
        if action != glfw.PRESS or imgui.get_io().want_capture_keyboard:
            return

        fullscreen = glfw.get_window_monitor(window) is not None
        if key in (glfw.KEY_LEFT, glfw.KEY_RIGHT):
            self.engine.request_cycle(1 if key == glfw.KEY_RIGHT else -1)
        elif key == glfw.KEY_HOME:
            self.sections.scroll_to(0.0)
        elif key == glfw.KEY_END:
            self.sections.scroll_to(self.sections.max_scroll)
        elif key == glfw.KEY_F11 or (key == glfw.KEY_F and mods == 0):
            self._set_fullscreen(not fullscreen)
        elif key == glfw.KEY_ESCAPE and fullscreen:
            self._set_fullscreen(False)

    def _set_fullscreen(self, enabled: bool):
        if enabled:
            self._windowed_rect = (*glfw.get_window_pos(self.window),
                                   *glfw.get_window_size(self.window))
            monitor = glfw.get_primary_monitor()
            mode = glfw.get_video_mode(monitor)
            glfw.set_window_monitor(self.window, monitor, 0, 0,
                                    mode.size.width, mode.size.height, mode.refresh_rate)
        else:
            x, y, w, h = self._windowed_rect
            glfw.set_window_monitor(self.window, None, x, y, w, h, 0)

    # --- Main loop ---

    def run(self):
        try:
            while not glfw.window_should_close(self.window):
                glfw.poll_events()
                self.imgui_impl.process_inputs()
                imgui.new_frame()

                self._draw_ui()
                self._draw_frame()

                imgui.render()
                self.imgui_impl.render(imgui.get_draw_data())
                glfw.swap_buffers(self.window)
        finally:
            self._shutdown()

    def _draw_ui(self):
        active = self.sections.active
        actions = self.control_panel.draw(self.engine, active.name if active else "")
        if actions["cycle"]:
            self.engine.request_cycle(actions["cycle"])
        if actions["apply"] is not None:
            self._restart_engine(actions["apply"])

    def _draw_frame(self):
        now = time.perf_counter()
        delta_time, self._last_frame_time = now - self._last_frame_time, now

        self.ctx.screen.use()
        if not self.engine.frame(delta_time):
            # Engine unavailable: the page still gets a plain background
            self.ctx.viewport = (0, 0, *glfw.get_framebuffer_size(self.window))
            self.ctx.clear(*self.engine.config.background, 1.0)

    def _shutdown(self):
        self.engine.stop()
        self.imgui_impl.shutdown()
        imgui.destroy_context()
        glfw.terminate()
