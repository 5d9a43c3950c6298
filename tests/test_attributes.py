"""Tests for attribute merging, accessors and change notification."""

import logging

from smartbase import Base
from smartbase.core.attribute import Attribute
from smartbase.core.events import Events


def _xy_setter(self, val):
    self.set("x", val[0])
    self.set("y", val[1])


def test_normal_usage_merges_defaults_and_config():
    Widget = Base.extend(attrs={"color": "#fff", "size": {"width": 100, "height": 100}})
    position = {"top": 50, "left": 100}
    my = Widget({"color": "#f00", "size": {"width": 200}, "position": position})

    assert my.get("color") == "#f00"
    assert my.get("size") == {"width": 200, "height": 100}
    assert my.get("position") is position
    assert my.get("missing") is None


def test_config_dict_is_merged_into_a_clone():
    Widget = Base.extend(attrs={"size": {"width": 100, "height": 100}})
    my_size = {"width": 50, "height": 50}
    w = Widget({"size": my_size})
    assert w.get("size") == my_size
    assert w.get("size") is not my_size
    assert Widget.attrs["size"] == {"width": 100, "height": 100}


def test_non_dict_values_replace_instead_of_merging():
    items = [9]
    Widget = Base.extend(attrs={"items": [1, 2, 3], "pair": (1, 2)})
    w = Widget({"items": items, "pair": (3,)})
    assert w.get("items") is items
    assert w.get("pair") == (3,)


def test_defaults_are_cloned_per_instance():
    element = object()
    A = Base.extend(attrs={"array": [1, 2, 3], "nested": {"list": [1]}, "element": None, "point": None})
    a = A({"element": element})

    a.attrs["array"]["value"].append(4)
    a.get("nested")["list"].append(2)
    assert a.get("array") == [1, 2, 3, 4]
    assert A.attrs["array"] == [1, 2, 3]
    assert A.attrs["nested"] == {"list": [1]}
    assert a.attrs["element"]["value"] is element
    assert a.attrs["point"]["value"] is None

    b = A()
    assert b.get("array") == [1, 2, 3]
    assert b.get("nested") == {"list": [1]}


def test_attrs_from_ancestors():
    class Person(Base):
        attrs = {"o1": "p1", "o2": "p2", "o3": "p3"}

    class Man(Person):
        attrs = {"o3": "m1", "o4": "m2"}

    class Child(Man):
        attrs = {"o4": "c1", "o5": "c2"}

    c = Child({"o4": "o4", "o2": "o2"})
    assert [c.get(f"o{i}") for i in range(1, 6)] == ["p1", "o2", "m1", "o4", "c2"]


def test_nested_dict_defaults_merge_across_ancestors():
    C = Base.extend(attrs={"size": {"w": 1, "h": 1, "inner": {"a": 1, "b": 2}}})
    B = C.extend(attrs={"size": {"w": 2, "inner": {"a": 5}}})
    assert B().get("size") == {"w": 2, "h": 1, "inner": {"a": 5, "b": 2}}
    assert B({"size": {"inner": {"b": 9}}}).get("size") == {"w": 2, "h": 1, "inner": {"a": 5, "b": 9}}
    assert C().get("size") == {"w": 1, "h": 1, "inner": {"a": 1, "b": 2}}


def test_accessors_with_validator_setter_and_getter():
    Overlay = Base.extend(
        attrs={
            "name": "overlay",
            "x": {"value": 0, "validator": lambda self, val: isinstance(val, (int, float))},
            "y": {"value": 0, "setter": lambda self, val: int(str(val).rstrip("px"))},
            "xy": {"getter": lambda self: [self.get("x"), self.get("y")]},
        }
    )
    o = Overlay({"x": 10})
    assert o.get("name") == "overlay"
    assert o.get("x") == 10

    o.set("y", "2px")
    assert o.get("y") == 2
    assert o.get("xy") == [10, 2]

    errors = []
    o.set("x", "str", {"error": lambda name, value: errors.append((name, value))})
    assert errors == [("x", "str")]
    assert o.get("x") == 10

    o.set("x", "again", error=lambda name: errors.append(name))
    assert errors[-1] == "x"


def test_rejected_value_is_silent_and_logged(caplog):
    seen = []
    Counter = Base.extend(attrs={"count": {"value": 0, "validator": lambda self, v: v >= 0}})
    c = Counter()
    c.on("change:count", lambda *args: seen.append(args))

    with caplog.at_level(logging.DEBUG, logger="smartbase.attribute"):
        c.set("count", -1)

    assert c.get("count") == 0
    assert seen == []
    assert "rejected -1" in caplog.text


def test_rejected_config_value_keeps_default():
    Counter = Base.extend(attrs={"count": {"value": 3, "validator": lambda self, v: v >= 0}})
    assert Counter({"count": -5}).get("count") == 3
    assert Counter({"count": 7}).get("count") == 7


def test_inherited_attrs_and_setters():
    A = Base.extend(attrs={"x": "x"})
    B = A.extend(attrs={"x": "x2"})
    assert B({"x": "x3"}).get("x") == "x3"

    B2 = A.extend(attrs={"x": {"setter": lambda self, val: "x2"}})
    b2 = B2()
    assert b2.get("x") == "x2"
    b2.set("x", "x3")
    assert b2.get("x") == "x2"
    assert A().get("x") == "x"


def test_child_setter_replaces_parent_setter_and_keeps_default():
    P = Base.extend(attrs={"n": {"value": 1, "setter": lambda self, v: v * 10}})
    C = P.extend(attrs={"n": {"setter": lambda self, v: v + 1}})

    c = C()
    assert c.get("n") == 2
    c.set("n", 5)
    assert c.get("n") == 6
    assert P().get("n") == 10


def test_overlay_style_construction():
    calls = []

    class Overlay(Base):
        attrs = {
            "closable": True,
            "mask": True,
            "width": 200,
            "z_index": 99,
            "x": 0,
            "y": 0,
            "xy": {"getter": lambda self: [self.get("x"), self.get("y")], "setter": _xy_setter},
        }

        def _onChangeX(self, value):
            calls.append(value)

    o = Overlay({"closable": False, "xy": [10, 20], "z_index": 100, "unknown": "xx"})
    assert calls == []
    assert o.get("mask") is True
    assert o.get("closable") is False
    assert o.get("width") == 200
    assert o.get("z_index") == 100
    assert o.get("x") == 10
    assert o.get("y") == 20
    assert o.get("xy") == [10, 20]
    assert o.get("unknown") == "xx"

    o.set("xy", [1, 2])
    assert calls == [1]
    assert o.get("xy") == [1, 2]


def test_change_events():
    class A(Base):
        attrs = {"x": 1, "y": 1}

        def initialize(self, config=None, **options):
            self.y_changes = []
            super().initialize(config, **options)

        def _onChangeY(self, val, prev):
            self.y_changes.append((val, prev))

    a = A({"x": 2})
    events = []
    a.on("change:x", lambda val, prev, key: events.append((val, prev, key)))

    a.set("x", 3)
    a.set("x", 3)
    assert events == [(3, 2, "x")]

    a.set("x", 4, silent=True)
    assert len(events) == 1
    assert a.get("x") == 4

    a.set("x", 5)
    assert events[-1] == (5, 4, "x")

    a.set("y", 2)
    assert a.y_changes == [(2, 1)]
    a.set("y", 3, {"silent": True})
    assert a.y_changes == [(2, 1)]
    assert a.get("y") == 3


def test_equal_but_distinct_containers_still_notify():
    A = Base.extend(attrs={"items": [1]})
    a = A()
    events = []
    a.on("change:items", events.append)
    same = a.get("items")
    a.set("items", same)
    a.set("items", [1])
    assert len(events) == 1


def test_change_method_runs_before_listeners():
    order = []

    class A(Base):
        attrs = {"color": "red"}

        def _onChangeColor(self, value, prev):
            order.append("method")

    a = A(onChangeColor=lambda value: order.append("config"))
    a.on("change:color", lambda: order.append("listener"))
    a.set("color", "blue")
    assert order == ["method", "config", "listener"]


def test_batch_set_processes_keys_independently():
    A = Base.extend(attrs={"a": 1, "b": 1, "x": {"value": 0, "validator": lambda self, v: isinstance(v, int)}})
    a = A()
    order = []
    a.on("all", lambda name, *args: order.append(name))
    errors = []

    a.set({"b": 2, "x": "bad", "a": 3}, {"error": lambda name, value: errors.append(name)})
    assert order == ["change:b", "change:a"]
    assert errors == ["x"]
    assert (a.get("a"), a.get("b"), a.get("x")) == (3, 2, 0)

    a.set({"a": 9}, silent=True)
    assert a.get("a") == 9
    assert order == ["change:b", "change:a"]


def test_handler_may_set_other_attributes():
    class A(Base):
        attrs = {"a": 1, "b": 1}

        def _onChangeA(self, value):
            self.set("b", value * 2)

    a = A()
    order = []
    a.on("all", lambda name, value: order.append((name, value)))
    a.set("a", 5)
    assert a.get("b") == 10
    assert order == [("change:b", 10), ("change:a", 5)]


def test_change_announces_every_non_blank_attribute():
    hits = []

    class A(Base):
        attrs = {"a": 1, "b": 1, "c": 1}

        def _onChangeA(self, value, prev, name):
            hits.append((name, value, prev))

        def _onChangeB(self, value, prev, name):
            hits.append((name, value, prev))

        def _onChangeC(self, value, prev, name):
            hits.append((name, value, prev))

    a = A()
    assert hits == []
    a.change()
    assert hits == [("a", 1, None), ("b", 1, None), ("c", 1, None)]

    hits.clear()
    A({"a": 1, "b": 2, "c": 3}).change()
    assert hits == [("a", 1, None), ("b", 2, None), ("c", 3, None)]

    hits.clear()
    A().change(names="b")
    assert hits == [("b", 1, None)]


def test_change_skips_blank_values():
    counter = []
    order = []

    def incr(self, *args):
        counter.append(1)

    class A(Base):
        attrs = {
            "bool": False,
            "str": "",
            "str2": "x",
            "obj": {},
            "arr": [],
            "fn": None,
            "fn3": lambda: None,
            "onChangeFn3": lambda *args: order.append("attrs"),
        }

        _onChangeBool = incr
        _onChangeStr = incr
        _onChangeStr2 = incr
        _onChangeObj = incr
        _onChangeArr = incr
        _onChangeFn = incr

        def _onChangeFn3(self, *args):
            order.append("method")
            counter.append(1)

    a = A()
    assert counter == []
    a.change()
    assert len(counter) == 3
    assert order == ["method", "attrs"]

    counter.clear()
    order.clear()
    b = A({"str2": "", "onChangeFn3": lambda *args: order.append("config")})
    b.change()
    assert len(counter) == 2
    assert order == ["method", "config"]


def test_attributes_with_capital_letters():
    seen = []

    class A(Base):
        attrs = {"xY": 1}

        def _onChangeXY(self, value):
            seen.append(("method", value))

    a = A(onChangeXY=lambda value: seen.append(("config", value)))
    a.set("xY", 2)
    assert seen == [("method", 2), ("config", 2)]


def test_single_parameter_hooks_receive_the_value():
    A = Base.extend(
        attrs={
            "x": {"value": 0, "validator": lambda value: isinstance(value, int)},
            "label": {"value": "a", "setter": lambda value: value.upper()},
        }
    )
    a = A()
    assert a.get("label") == "A"

    errors = []
    a.set("x", 5, error=lambda name, value: errors.append((name, value)))
    assert a.get("x") == 5
    assert errors == []

    a.set("x", "five", error=lambda name, value: errors.append((name, value)))
    assert a.get("x") == 5
    assert errors == [("x", "five")]

    a.set("label", "b")
    assert a.get("label") == "B"


def test_attribute_mixin_keeps_storage_per_instance():
    class Model(Attribute, Events):
        attrs = {"x": 0, "tags": []}

    first, second = Model(), Model()
    changes = []
    first.on("change:x", changes.append)

    first.set("x", 1)
    first.get("tags").append("red")
    first.set("extra", True)

    assert second.get("x") == 0
    assert second.get("tags") == []
    assert second.get("extra") is None
    assert changes == [1]
    assert Model.attrs == {"x": 0, "tags": []}
    assert Attribute.attrs == {}
