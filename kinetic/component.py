class Component:
    def __init__(self, name="Component"):
        self.name = name
        self.enabled = True
        self.engine = None

    def on_init(self, engine):
        """Called when the component is added to the engine."""
        self.engine = engine

    def on_update(self, dt: float):
        """Per-tick logic; ``dt`` is one tick expressed in seconds."""
        pass

    def on_render_ui(self, canvas):
        """Draw on the host's canvas, after every component has been updated."""
        pass

    def on_destroy(self):
        """Called when component is removed."""
        pass
