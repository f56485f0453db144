from __future__ import annotations

import threading

from warden.core.authz.permission import base_name, full_name

from .helpers.fakes import EventRecorder


def _docs_tree(pm):
    pm.add_custom_permission("docs")
    pm.add_custom_permission("a", "docs")
    pm.add_custom_permission("b", "docs")
    pm.add_custom_permission("x", "docs:a")


def test_name_helpers():
    assert full_name("view", "reports") == "reports:view"
    assert full_name("view", None) == "view"
    assert full_name("view", "") == "view"
    assert base_name("docs:a:x") == "x"
    assert base_name("docs") == "docs"


def test_enable_and_disable_cascade_depth_first(permissions):
    _docs_tree(permissions)
    permissions.enable_permission("docs")
    for name in ("docs", "docs:a", "docs:b", "docs:a:x"):
        assert permissions.is_permission_enabled(name)

    permissions.disable_permission("docs:a")
    assert permissions.is_permission_enabled("docs")
    assert permissions.is_permission_disabled("docs:a")
    assert permissions.is_permission_disabled("docs:a:x")
    assert permissions.is_permission_enabled("docs:b")


def test_reenabling_parent_reaches_only_linked_children(permissions):
    _docs_tree(permissions)
    permissions.disable_permission("docs")
    permissions.remove_permission("docs:a")

    permissions.enable_permission("docs")

    assert permissions.is_permission_enabled("docs:b")
    # orphaned grandchild is no longer under docs
    assert permissions.is_permission_disabled("docs:a:x")


def test_cascade_fires_one_event_per_changed_permission(permissions):
    _docs_tree(permissions)
    rec = EventRecorder()
    for name in ("docs", "docs:a", "docs:b", "docs:a:x"):
        permissions.set_permission_on_enabled(name, rec)
    permissions.enable_permission("docs:b")
    rec.clear()

    permissions.enable_permission("docs")

    assert sorted(s.permission.name for s in rec.seen) == ["docs", "docs:a", "docs:a:x"]


def test_child_helpers_on_permission(permissions):
    assert permissions.add_custom_permission("docs")
    docs = permissions.get_permission("docs")
    assert docs.add_new_child_permission("a") is True
    assert docs.add_and_enable_new_child_permission("b") is True
    assert permissions.is_permission_disabled("docs:a")
    assert permissions.is_permission_enabled("docs:b")

    assert docs.has_child_permission("docs:a")
    assert docs.has_child_permissions(["docs:a", "docs:b"])
    assert not docs.has_child_permissions(["docs:a", "docs:zzz"])

    assert docs.remove_child_permission("docs:zzz") is False
    assert docs.remove_child_permission("docs:a") is True
    assert not permissions.does_permission_exist("docs:a")
    assert not docs.has_child_permission("docs:a")


def test_children_view_is_a_copy(permissions):
    _docs_tree(permissions)
    docs = permissions.get_permission("docs")
    docs.children.clear()
    assert docs.children == {"docs:a", "docs:b"}


def test_copy_to_new_parent_copies_subtree_and_handlers(permissions):
    _docs_tree(permissions)
    rec = EventRecorder()
    a = permissions.get_permission("docs:a")
    a.set_on_enabled(rec)

    assert a.copy_to_new_parent("edit") is True

    assert permissions.does_permission_exist("edit:a")
    assert permissions.does_permission_exist("edit:a:x")
    assert permissions.get_permission_children("edit") == {"edit:a"}
    assert permissions.get_permission("edit:a").get_on_enabled() is rec
    # the original stays where it was
    assert permissions.get_permission_children("docs") == {"docs:a", "docs:b"}

    permissions.enable_permission("edit")
    assert permissions.is_permission_enabled("edit:a:x")
    assert [s.permission.name for s in rec.seen] == ["edit:a"]


def test_copy_to_existing_name_is_refused(permissions):
    _docs_tree(permissions)
    a = permissions.get_permission("docs:a")
    assert a.copy_to_new_parent("edit") is True
    assert a.copy_to_new_parent("edit") is False
    assert a.copy_to_new_parent("missing") is False


def test_copy_into_own_subtree_is_refused(permissions):
    _docs_tree(permissions)
    before = permissions.get_permission_names()
    docs = permissions.get_permission("docs")

    assert docs.copy_to_new_parent("docs") is False
    assert docs.copy_to_new_parent("docs:a") is False
    assert docs.copy_to_new_parent("docs:a:x") is False
    assert permissions.get_permission_names() == before
    assert not permissions.events.has_event("permissionEnabled_docs:a:docs")

    # a sibling whose name merely starts with the same letters is fine
    permissions.add_custom_permission("docs2")
    assert docs.copy_to_new_parent("docs2") is True
    assert permissions.does_permission_exist("docs2:docs:a:x")


def test_concurrent_toggles_leave_consistent_state(permissions):
    for i in range(20):
        permissions.add_custom_permission(f"p{i}")
        permissions.add_custom_permission("child", f"p{i}")

    def worker(i: int) -> None:
        for _ in range(50):
            permissions.enable_permission(f"p{i}")
            permissions.disable_permission(f"p{i}")
        permissions.enable_permission(f"p{i}")

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    for i in range(20):
        assert permissions.is_permission_enabled(f"p{i}")
        assert permissions.is_permission_enabled(f"p{i}:child")
