"""
Tests for reporting hierarchy traversal.
"""
import pytest
from hypothesis import given, settings, strategies as st

from workpulse.core.errors import StructuralError
from workpulse.services.org_graph import OrgGraph

from conftest import make_staff


@st.composite
def forests(draw, max_size=25):
    """Acyclic staff lists: each member reports to an earlier member or to nobody."""
    size = draw(st.integers(min_value=1, max_value=max_size))
    staff = []
    for i in range(1, size + 1):
        parent = draw(st.one_of(st.none(), st.integers(min_value=1, max_value=i - 1))) if i > 1 else None
        staff.append(make_staff(i, reporting_to=parent))
    return staff


def test_direct_and_transitive_subordinates(org):
    graph = OrgGraph(org.values())
    assert graph.subordinates_of(2) == {3, 6, 7, 9}
    assert graph.direct_reports_of(2) == {3, 7, 9}
    assert graph.subordinates_of(1) == {2, 3, 4, 5, 6, 7, 9}
    assert graph.subordinates_of(5) == frozenset()


def test_is_subordinate_follows_reporting_chain(org):
    graph = OrgGraph(org.values())
    assert graph.is_subordinate_of(3, 2)
    assert graph.is_subordinate_of(6, 2)
    assert graph.is_subordinate_of(6, 1)
    assert not graph.is_subordinate_of(5, 2)
    assert not graph.is_subordinate_of(2, 3)


def test_self_is_never_a_subordinate(org):
    graph = OrgGraph(org.values())
    assert not graph.is_subordinate_of(2, 2)
    assert 2 not in graph.subordinates_of(2)


def test_missing_manager_link_is_nobodys_subordinate(org):
    graph = OrgGraph(org.values())
    assert not graph.is_subordinate_of(8, 1)
    assert not graph.is_subordinate_of(8, 2)


def test_unknown_staff_has_no_relationships(org):
    graph = OrgGraph(org.values())
    assert not graph.is_subordinate_of(404, 1)
    assert graph.subordinates_of(404) == frozenset()
    assert graph.approver_chain_of(404) == ()


def test_forest_with_multiple_roots():
    graph = OrgGraph([make_staff(1), make_staff(2), make_staff(3, reporting_to=1), make_staff(4, reporting_to=2)])
    assert graph.subordinates_of(1) == {3}
    assert graph.subordinates_of(2) == {4}
    assert not graph.is_subordinate_of(4, 1)


def test_approver_chain_prefers_approving_manager(org):
    graph = OrgGraph(org.values())
    # 6 reports to 3 but is approved by 2
    assert graph.approver_chain_of(6) == (2, 1)
    assert graph.approver_chain_of(3) == (2, 1)
    assert graph.approver_chain_of(1) == ()


def test_approver_chain_falls_back_to_reporting_line(org):
    graph = OrgGraph(org.values())
    assert graph.approver_chain_of(7) == (2, 1)
    assert graph.managers_of(6) == (3, 2, 1)


def test_cycle_raises_structural_error_instead_of_looping():
    graph = OrgGraph([make_staff(1, reporting_to=3), make_staff(2, reporting_to=1), make_staff(3, reporting_to=2), make_staff(4, reporting_to=1)])
    with pytest.raises(StructuralError) as excinfo:
        graph.is_subordinate_of(4, 99)
    assert excinfo.value.path[0] == 4
    with pytest.raises(StructuralError):
        graph.subordinates_of(1)
    with pytest.raises(StructuralError):
        graph.approver_chain_of(2)


def test_mutual_reporting_is_never_a_subordinate_link():
    graph = OrgGraph([make_staff(1, reporting_to=2), make_staff(2, reporting_to=1)])
    with pytest.raises(StructuralError):
        graph.is_subordinate_of(1, 2)
    with pytest.raises(StructuralError):
        graph.is_subordinate_of(2, 1)
    with pytest.raises(StructuralError):
        graph.subordinates_of(1)


def test_walk_into_a_cycle_raises_even_when_manager_is_reached():
    graph = OrgGraph([make_staff(1, reporting_to=2), make_staff(2, reporting_to=1), make_staff(3, reporting_to=1)])
    with pytest.raises(StructuralError):
        graph.is_subordinate_of(3, 1)


def test_cycle_elsewhere_does_not_affect_clean_branches():
    graph = OrgGraph(
        [
            make_staff(1),
            make_staff(2, reporting_to=1),
            make_staff(5, reporting_to=6),
            make_staff(6, reporting_to=5),
        ]
    )
    assert graph.is_subordinate_of(2, 1)
    assert graph.subordinates_of(1) == {2}


def test_chains_stop_at_staff_missing_from_the_directory():
    graph = OrgGraph(
        [
            make_staff(1, reporting_to=404),
            make_staff(2, reporting_to=1),
            make_staff(3, reporting_to=2, approving_manager_id=405),
        ]
    )
    assert graph.approver_chain_of(2) == (1,)
    assert graph.managers_of(2) == (1,)
    assert graph.approver_chain_of(3) == ()
    assert graph.approver_chain_of(1) == ()


def test_self_loop_is_structural():
    graph = OrgGraph([make_staff(1, reporting_to=1), make_staff(2)])
    assert graph.direct_reports_of(1) == frozenset()
    with pytest.raises(StructuralError):
        graph.subordinates_of(1)
    with pytest.raises(StructuralError):
        graph.managers_of(1)


def test_approver_cycle_is_structural():
    graph = OrgGraph([make_staff(1, approving_manager_id=2), make_staff(2, approving_manager_id=1)])
    with pytest.raises(StructuralError):
        graph.approver_chain_of(1)


def test_find_cycles_reports_each_cycle_once():
    graph = OrgGraph(
        [
            make_staff(1, reporting_to=2),
            make_staff(2, reporting_to=1),
            make_staff(3, reporting_to=1),
            make_staff(5, reporting_to=6),
            make_staff(6, reporting_to=7),
            make_staff(7, reporting_to=5),
            make_staff(8),
        ]
    )
    assert graph.find_cycles() == [(1, 2), (5, 6, 7)]


def test_find_cycles_on_clean_graph(org):
    assert OrgGraph(org.values()).find_cycles() == []


@settings(max_examples=75, deadline=None)
@given(staff=forests())
def test_is_subordinate_matches_subordinate_set(staff):
    graph = OrgGraph(staff)
    ids = [s.staff_id for s in staff]
    for manager_id in ids:
        subordinates = graph.subordinates_of(manager_id)
        assert manager_id not in subordinates
        for candidate_id in ids:
            assert graph.is_subordinate_of(candidate_id, manager_id) == (candidate_id in subordinates)


@settings(max_examples=75, deadline=None)
@given(staff=forests())
def test_approver_chain_ends_at_a_root(staff):
    graph = OrgGraph(staff)
    for record in staff:
        chain = graph.approver_chain_of(record.staff_id)
        assert len(chain) == len(set(chain))
        if chain:
            assert graph.get(chain[-1]).reporting_to is None
            assert all(record.staff_id in graph.subordinates_of(a) for a in chain)
