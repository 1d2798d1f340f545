"""ImGui overlay: active shape, manual prev/next, and engine presets."""

from imgui_bundle import imgui

from particle_canvas.ui.preset_manager import BUILTIN
from particle_canvas.visualization.config import DEFAULT_CONFIG, EngineConfig


class ControlPanel:
    """Corner overlay for the particle canvas.

    draw() never mutates the engine; it reports what the user asked for and
    the app applies it after the frame's UI pass.
    """

    def __init__(self, preset_manager=None):
        self.config: EngineConfig = DEFAULT_CONFIG
        self.preset_manager = preset_manager
        self.preset_name = "Default"
        self._new_name = ""

    def draw(self, engine, section_name: str = "") -> dict:
        """Draw the overlay.

        Returns {"cycle": -1|0|1, "apply": EngineConfig or None}.
        """
        actions = {"cycle": 0, "apply": None}

        imgui.set_next_window_pos((20, 20), imgui.Cond_.first_use_ever)
        imgui.set_next_window_size((280, 0), imgui.Cond_.first_use_ever)
        imgui.set_next_window_bg_alpha(0.6)
        flags = imgui.WindowFlags_.no_focus_on_appearing | imgui.WindowFlags_.always_auto_resize
        visible, _ = imgui.begin("Refresko Particles", None, flags)
        if visible:
            self._draw_status(engine, section_name, actions)
            if self.preset_manager is not None:
                imgui.separator()
                self._draw_presets(actions)
        imgui.end()
        return actions

    def _draw_status(self, engine, section_name: str, actions: dict):
        if not engine.mounted:
            imgui.text_colored((1.0, 0.4, 0.4, 1.0), "Visualization disabled")
            return

        controller = engine.controller
        imgui.text(f"{controller.current_index + 1}/{controller.shape_count}  {controller.current_name}")
        if section_name:
            imgui.text_disabled(f"Section: {section_name}")

        imgui.begin_disabled(controller.is_transitioning)
        if imgui.button("<", (28, 0)):
            actions["cycle"] = -1
        imgui.same_line()
        if imgui.button(">", (28, 0)):
            actions["cycle"] = 1
        imgui.end_disabled()
        imgui.same_line()

        label = "Morphing" if controller.is_transitioning else "Idle"
        imgui.progress_bar(controller.progress, (-1, 0), label)
        imgui.text_disabled(f"{engine.buffers.count} particles")

    def _draw_presets(self, actions: dict):
        mgr = self.preset_manager
        imgui.text("Presets")
        for name in mgr.get_all_names():
            if imgui.radio_button(name, name == self.preset_name):
                loaded = mgr.load(name)
                if loaded is not None:
                    self.preset_name = name
                    self.config = loaded

        if imgui.button("Apply", (120, 0)):
            actions["apply"] = self.config

        _, self._new_name = imgui.input_text_with_hint("##name", "new preset name", self._new_name)
        imgui.same_line()
        imgui.begin_disabled(not mgr.is_valid_name(self._new_name))
        if imgui.button("Save"):
            self.save_as(self._new_name)
        imgui.end_disabled()

        imgui.begin_disabled(self.preset_name in BUILTIN)
        if imgui.button("Delete", (120, 0)):
            self.delete_selected()
        imgui.end_disabled()

    def save_as(self, name: str) -> bool:
        """Save the selected config under name and select it on success."""
        name = name.strip()
        if not self.preset_manager.save(name, self.config):
            return False
        self.preset_name = name
        self._new_name = ""
        return True

    def delete_selected(self) -> bool:
        """Delete the selected user preset and fall back to Default."""
        if not self.preset_manager.delete(self.preset_name):
            return False
        self.preset_name = "Default"
        self.config = DEFAULT_CONFIG
        return True
