import pytest

from bundle_size.bundle_analysis import (
    BundleSnapshot,
    ChangeDirection,
    ComparisonMode,
    RouteStat,
    compare_snapshots,
    is_significant,
)


def _snapshot(routes, total_size):
    return BundleSnapshot(
        routes={
            name: RouteStat(size=size, files=files)
            for name, (size, files) in routes.items()
        },
        total_size=total_size,
    )


def test_compare_without_base():
    current = _snapshot({"/": (1500, 2)}, 1500)

    comparison = compare_snapshots(current, None)

    assert comparison.mode == ComparisonMode.CURRENT_ONLY
    assert comparison.route_changes() == []
    assert comparison.total_change is None
    assert comparison.total_size_delta is None
    assert comparison.is_significant() is True


def test_compare_route_order_and_missing_sides():
    current = _snapshot({"/new": (300, 1), "/": (1500, 2)}, 1800)
    base = _snapshot({"/": (1000, 1), "/gone": (400, 1)}, 1400)

    comparison = compare_snapshots(current, base)

    assert comparison.mode == ComparisonMode.COMPARISON
    changes = comparison.route_changes()
    assert [c.route_name for c in changes] == ["/new", "/", "/gone"]
    assert [c.size_delta for c in changes] == [300, 500, -400]
    assert [c.direction for c in changes] == [
        ChangeDirection.INCREASE,
        ChangeDirection.INCREASE,
        ChangeDirection.DECREASE,
    ]
    assert changes[0].base == RouteStat(size=0, files=0)
    assert changes[2].current == RouteStat(size=0, files=0)
    assert comparison.total_size_delta == 400


def test_compare_identical_snapshots():
    current = _snapshot({"/": (10, 1)}, 10)
    base = _snapshot({"/": (10, 1)}, 10)

    comparison = compare_snapshots(current, base)

    assert [c.direction for c in comparison.route_changes()] == [
        ChangeDirection.UNCHANGED
    ]
    assert comparison.total_change.direction == ChangeDirection.UNCHANGED
    assert comparison.is_significant() is False


def test_compare_is_antisymmetric():
    first = _snapshot({"/": (1500, 2), "/a": (5, 1)}, 2000)
    second = _snapshot({"/": (1000, 1), "/b": (7, 1)}, 1100)

    forward = {
        c.route_name: c.size_delta
        for c in compare_snapshots(first, second).route_changes()
    }
    backward = {
        c.route_name: c.size_delta
        for c in compare_snapshots(second, first).route_changes()
    }

    assert forward.keys() == backward.keys()
    assert all(forward[name] == -backward[name] for name in forward)
    assert (
        compare_snapshots(first, second).total_size_delta
        == -compare_snapshots(second, first).total_size_delta
    )


def test_route_changes_returns_a_copy():
    comparison = compare_snapshots(_snapshot({"/": (1, 1)}, 1), _snapshot({}, 0))

    comparison.route_changes().clear()

    assert len(comparison.route_changes()) == 1


@pytest.mark.parametrize(
    "current_total, base_total, threshold, expected",
    [
        (600000, 598000, 1024, True),
        (2024, 1000, 1024, False),
        (2025, 1000, 1024, True),
        (1000, 2025, 1024, True),
        (1000, 1000, 0, False),
        (1001, 1000, 0, True),
    ],
)
def test_is_significant(current_total, base_total, threshold, expected):
    current = _snapshot({}, current_total)
    base = _snapshot({}, base_total)

    assert is_significant(current, base, threshold) is expected


def test_is_significant_ignores_route_swings():
    current = _snapshot({"/a": (10000, 1), "/b": (0, 0)}, 5000)
    base = _snapshot({"/a": (0, 0), "/b": (10000, 1)}, 5000)

    assert is_significant(current, base, 1024) is False


def test_is_significant_without_base():
    assert is_significant(_snapshot({}, 0), None, 1024) is True


def test_is_significant_invalid_threshold():
    snapshot = _snapshot({}, 0)
    with pytest.raises(ValueError):
        is_significant(snapshot, snapshot, -1)
    with pytest.raises(TypeError):
        is_significant(snapshot, snapshot, 1.5)
    with pytest.raises(TypeError):
        is_significant(snapshot, snapshot, True)
