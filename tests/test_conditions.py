import pytest

from stackcockpit.conditions import DisplayCondition, plain_conditions


class _ClusterCondition:
    def __init__(self, short, good, message):
        self.short = short
        self.good = good
        self.message = message

    def display_short(self):
        return self.short

    def is_good(self):
        return self.good


def test_mapping_condition():
    result = plain_conditions([{"type": "Available", "status": "True", "message": "ok"}])
    assert result == [DisplayCondition(condition="Available: True", message="ok", is_good=None)]


def test_mapping_without_message():
    result = plain_conditions([{"type": "Progressing", "status": "False"}])
    assert result[0].message is None
    assert result[0].is_good is None
    assert result[0].condition.startswith("Progressing")


def test_cluster_condition_uses_its_own_verdict():
    result = plain_conditions([_ClusterCondition("Stopped", False, "halted")])
    assert result == [DisplayCondition(condition="Stopped", message="halted", is_good=False)]


def test_order_is_kept():
    items = [{"type": name, "status": "True"} for name in ("A", "B", "C")]
    result = plain_conditions(items)
    assert [c.condition.split(":")[0] for c in result] == ["A", "B", "C"]


def test_empty():
    assert plain_conditions([]) == []


def test_missing_status_is_rejected():
    with pytest.raises(ValueError, match="status"):
        plain_conditions([{"type": "Available"}])


def test_unsupported_condition_is_rejected():
    with pytest.raises(ValueError):
        plain_conditions([42])