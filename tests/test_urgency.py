from datetime import timedelta

import pytest
from hypothesis import given
from hypothesis import strategies as st

from orderflow.domain import OrderStatus, Urgency, classify, classify_order, elapsed_minutes
from orderflow.domain.urgency import time_since_label
from tests._factories import T0, make_order

SEVERITY = {Urgency.NORMAL: 0, Urgency.WARNING: 1, Urgency.CRITICAL: 2}


def test_pending_for_sixteen_minutes_is_critical():
    order = make_order(status=OrderStatus.PENDING)
    assert classify_order(order, T0 + timedelta(minutes=16)) is Urgency.CRITICAL


@pytest.mark.parametrize(
    "status,minutes,expected",
    [
        (OrderStatus.PENDING, 0, Urgency.NORMAL),
        (OrderStatus.PENDING, 10, Urgency.NORMAL),
        (OrderStatus.PENDING, 11, Urgency.WARNING),
        (OrderStatus.PENDING, 15, Urgency.WARNING),
        (OrderStatus.PENDING, 16, Urgency.CRITICAL),
        (OrderStatus.PREPARING, 10, Urgency.NORMAL),
        (OrderStatus.PREPARING, 11, Urgency.WARNING),
        (OrderStatus.PREPARING, 30, Urgency.WARNING),
        (OrderStatus.PREPARING, 31, Urgency.CRITICAL),
        (OrderStatus.READY, 10, Urgency.NORMAL),
        (OrderStatus.READY, 11, Urgency.CRITICAL),
    ],
)
def test_thresholds(status, minutes, expected):
    assert classify(status, minutes) is expected


@pytest.mark.parametrize(
    "status", [OrderStatus.SERVED, OrderStatus.DELIVERED, OrderStatus.CANCELLED]
)
def test_terminal_statuses_are_inapplicable(status):
    assert classify(status, 500) is Urgency.INAPPLICABLE


@given(
    st.sampled_from([OrderStatus.PENDING, OrderStatus.PREPARING, OrderStatus.READY]),
    st.integers(min_value=0, max_value=600),
    st.integers(min_value=0, max_value=600),
)
def test_urgency_never_decreases_with_time(status, a, b):
    early, late = sorted((a, b))
    assert SEVERITY[classify(status, early)] <= SEVERITY[classify(status, late)]


def test_pending_measured_from_creation():
    order = make_order(status=OrderStatus.PENDING)
    assert elapsed_minutes(order, T0 + timedelta(minutes=7, seconds=59)) == 7


def test_later_statuses_measured_from_last_change():
    changed = T0 + timedelta(minutes=20)
    order = make_order(status=OrderStatus.PREPARING, updated_at=changed)
    now = changed + timedelta(minutes=5)
    assert elapsed_minutes(order, now) == 5
    assert classify_order(order, now) is Urgency.NORMAL


def test_clock_skew_clamps_to_zero():
    order = make_order()
    assert elapsed_minutes(order, T0 - timedelta(minutes=3)) == 0


@pytest.mark.parametrize(
    "minutes,label", [(0, "Just now"), (1, "1 min ago"), (12, "12 mins ago")]
)
def test_time_since_label(minutes, label):
    assert time_since_label(minutes) == label
