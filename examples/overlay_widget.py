"""
Example showing a small overlay widget built on SmartBase.
"""

from __future__ import annotations

from smartbase import Base


def _xy_setter(self, value):
    self.set("x", value[0])
    self.set("y", value[1])


Overlay = Base.extend(
    {
        "__name__": "Overlay",
        "attrs": {
            "class_prefix": "ui-overlay",
            "closable": True,
            "width": 200,
            "height": 300,
            "z_index": 99,
            "x": {"value": 0, "validator": lambda self, value: isinstance(value, int)},
            "y": {"value": 0, "validator": lambda self, value: isinstance(value, int)},
            "xy": {
                "getter": lambda self: (self.get("x"), self.get("y")),
                "setter": _xy_setter,
            },
        },
        "show": lambda self: self.trigger("show"),
        "hide": lambda self: self.trigger("hide"),
        "render": lambda self: self.change(),
        "_onChangeX": lambda self, value: print(f"move left edge to {value}"),
    }
)


class ModalOverlay(Overlay):
    attrs = {"mask": True, "z_index": 1000}

    def initialize(self, config=None, **options):
        ModalOverlay.superclass.initialize(self, config, **options)
        self.opened = False

    def show(self):
        self.opened = True
        return super().show()


if __name__ == "__main__":
    modal = ModalOverlay(
        {"xy": (10, 20), "closable": False},
        onShow=lambda: print("shown"),
        afterHide=lambda result: print("hidden"),
    )
    modal.plug("logging", methods="show hide", print=True)
    modal.render()
    modal.show()
    modal.hide()
    modal.set("x", "left", error=lambda name, value: print(f"rejected {name}={value!r}"))
    print(modal.get("xy"), modal.get("z_index"), modal.get("mask"))
    modal.destroy()
