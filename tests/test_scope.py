import unittest

import pytest

from slotbind import Context, TypeNotRegisteredError


class Foo(str): ...


class Bar(str): ...


class TestContextChildBehavior(unittest.TestCase):
    parent: Context
    child: Context

    def setUp(self):
        self.parent = Context()
        self.parent.register(Foo("parentFoo"), Bar("parentBar"))
        self.child = self.parent.child()

    def test_child_registration_overrides_parent_registration(self):
        self.child.register(Foo("childFoo"))

        def read(f: Foo, b: Bar):
            return (f, b)

        assert self.child.inject(read) == ("childFoo", "parentBar")
        assert self.parent.inject(read) == ("parentFoo", "parentBar")

    def test_child_resolves_from_parent_when_not_registered_locally(self):
        assert self.child.resolve(Bar) == "parentBar"

    def test_parent_never_sees_child_only_registrations(self):
        class OnlyChild: ...

        self.child.register(OnlyChild())

        assert isinstance(self.child.resolve(OnlyChild), OnlyChild)
        with pytest.raises(TypeNotRegisteredError):
            self.parent.resolve(OnlyChild)

    def test_grandchild_walks_whole_parent_chain(self):
        self.child.register(Foo("childFoo"))
        grandchild = self.child.child()

        assert grandchild.resolve(Foo) == "childFoo"
        assert grandchild.resolve(Bar) == "parentBar"

    def test_parent_link_is_fixed(self):
        assert self.child.parent is self.parent
        assert self.parent.parent is None

        with pytest.raises(AttributeError):
            self.child.parent = Context()

    def test_each_context_injects_itself(self):
        def me(ctx: Context):
            return ctx

        assert self.child.inject(me) is self.child
        assert self.parent.inject(me) is self.parent

    def test_lazy_parent_factory_shared_with_children(self):
        calls = []

        class Service: ...

        def make() -> Service:
            calls.append(1)
            return Service()

        self.parent.register(make)
        other_child = self.parent.child()

        assert self.child.resolve(Service) is other_child.resolve(Service)
        assert self.parent.resolve(Service) is self.child.resolve(Service)
        assert calls == [1]
