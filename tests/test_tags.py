from __future__ import annotations

import gc

import pytest

from listener_scope.tags import OwnershipTags, release, resolve_owner, unwrap


class Wrapper:
    def __init__(self, listener):
        self.listener = listener

    def __call__(self, *args):
        return self.listener(*args)


def test_tag_returns_previous_owner():
    tags = OwnershipTags()

    def foo():
        pass

    assert tags.tag(foo, 1) is None
    assert tags.tag(foo, 2) == 1
    assert tags.owner_of(foo) == 2


def test_restore_puts_back_previous_tag():
    tags = OwnershipTags()

    def foo():
        pass

    tags.tag(foo, 1)
    previous = tags.tag(foo, 2)
    tags.restore(foo, previous)
    assert tags.owner_of(foo) == 1

    tags.restore(foo, None)
    assert tags.owner_of(foo) is None


def test_untag_only_for_matching_owner():
    tags = OwnershipTags()

    def foo():
        pass

    tags.tag(foo, 1)
    assert tags.untag(foo, 2) is False
    assert tags.untag(foo, 1) is True
    assert tags.owner_of(foo) is None


def test_weak_entries_are_released():
    tags = OwnershipTags()

    def make():
        def listener():
            pass

        return listener

    listener = make()
    tags.tag(listener, 7)
    assert len(tags) == 1
    del listener
    gc.collect()
    assert len(tags) == 0


def test_builtins_are_held_strongly():
    tags = OwnershipTags()
    tags.tag(len, 3)
    assert tags.owner_of(len) == 3
    assert len(tags) == 1
    assert tags.untag(len, 3) is True
    assert len(tags) == 0


def test_unhashable_listener_raises():
    class Unhashable:
        __hash__ = None

        def __call__(self):
            pass

    tags = OwnershipTags()
    with pytest.raises(TypeError):
        tags.tag(Unhashable(), 1)
    assert tags.owner_of(Unhashable()) is None


def test_resolve_owner_follows_wrapper_chain():
    tags = OwnershipTags()

    def foo():
        pass

    tags.tag(foo, 5)
    wrapped = Wrapper(Wrapper(foo))
    assert resolve_owner(wrapped, tags) == 5
    assert unwrap(wrapped) is foo


def test_resolve_owner_prefers_outer_tag():
    tags = OwnershipTags()

    def foo():
        pass

    wrapped = Wrapper(foo)
    tags.tag(foo, 1)
    tags.tag(wrapped, 2)
    assert resolve_owner(wrapped, tags) == 2


def test_resolve_owner_untagged_and_cycles():
    tags = OwnershipTags()
    wrapped = Wrapper(None)
    wrapped.listener = wrapped
    assert resolve_owner(wrapped, tags) is None
    assert unwrap(wrapped) is wrapped
    assert resolve_owner(print, tags) is None


def test_release_untags_tagged_link_of_chain():
    tags = OwnershipTags()

    def foo():
        pass

    tags.tag(foo, 9)
    wrapped = Wrapper(Wrapper(foo))
    assert release(wrapped, 8, tags) is False
    assert tags.owner_of(foo) == 9
    assert release(wrapped, 9, tags) is True
    assert tags.owner_of(foo) is None
    assert release(wrapped, 9, tags) is False
