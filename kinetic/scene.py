from kinetic.component import Component


class Scene(Component):
    """Objects drawn together, in the order they were added."""

    def __init__(self, name="Scene"):
        super().__init__(name)
        self.objects = []

    def __len__(self):
        return len(self.objects)

    def __contains__(self, obj):
        return any(o is obj for o in self.objects)

    def add(self, *objects):
        for obj in objects:
            if not callable(getattr(obj, "show", None)):
                raise TypeError(f"{obj!r} has no show(canvas) method")
        self.objects.extend(objects)

    def remove(self, *objects):
        self.objects = [o for o in self.objects if not any(o is x for x in objects)]

    def render(self, canvas):
        for obj in self.objects:
            obj.show(canvas)

    def on_render_ui(self, canvas):
        self.render(canvas)
