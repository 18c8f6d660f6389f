from types import SimpleNamespace

from app.platform.modules.resolver import conflicts, find_dependents, is_newer_version, missing_dependencies


def _module(code, dependencies=(), conflicts_with=()):
    return SimpleNamespace(module_code=code, dependencies=set(dependencies), conflicts_with=set(conflicts_with))


def _installation(code, dependencies=()):
    return SimpleNamespace(master_module=_module(code, dependencies))


def test_missing_dependencies_is_set_difference():
    candidate = _module("reports", dependencies={"orders", "invoices"})

    assert missing_dependencies(set(), candidate) == {"orders", "invoices"}
    assert missing_dependencies({"orders"}, candidate) == {"invoices"}
    assert missing_dependencies({"orders", "invoices", "other"}, candidate) == set()


def test_conflicts_is_intersection_with_installed():
    candidate = _module("lite-crm", conflicts_with={"full-crm"})

    assert conflicts({"full-crm", "orders"}, candidate) == {"full-crm"}
    assert conflicts({"orders"}, candidate) == set()


def test_dependencies_are_not_resolved_transitively():
    # c -> b -> a: only b is checked for c.
    candidate = _module("c", dependencies={"b"})

    assert missing_dependencies({"b"}, candidate) == set()


def test_find_dependents_skips_the_module_itself():
    installations = [
        _installation("a"),
        _installation("b", dependencies={"a"}),
        _installation("c", dependencies={"b"}),
        _installation("d", dependencies={"a", "c"}),
    ]

    dependents = find_dependents("a", installations)

    assert [i.master_module.module_code for i in dependents] == ["b", "d"]
    assert find_dependents("d", installations) == []


def test_is_newer_version():
    assert is_newer_version("1.1.0", "1.0.0")
    assert is_newer_version("2.0.0", "1.10.3")
    assert not is_newer_version("1.0.0", "1.0.0")
    assert not is_newer_version("1.0.0", "1.2.0")
    assert not is_newer_version("", "1.0.0")


def test_is_newer_version_falls_back_to_inequality_for_free_form_versions():
    assert is_newer_version("beta", "alpha")
    assert not is_newer_version("beta", "beta")
