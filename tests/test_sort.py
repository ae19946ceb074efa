"""Tests for index table sorting."""

from tests.conftest import make_index

from esticli.sort import SortColumn, SortOrder, SortSetting


def names(rows):
    return [r.name for r in rows]


def test_default_is_rate_descending():
    setting = SortSetting()
    assert setting.column is SortColumn.RATE
    assert setting.order is SortOrder.DESCENDING


def test_column_cycle_wraps():
    assert SortColumn.HEALTH.next() is SortColumn.NAME
    assert SortColumn.NAME.prev() is SortColumn.HEALTH
    assert SortColumn.NAME.next() is SortColumn.DOC_COUNT


def test_order_toggle():
    setting = SortSetting()
    setting.toggle_order()
    assert setting.order is SortOrder.ASCENDING
    assert setting.order.arrow == "▲"
    setting.toggle_order()
    assert setting.order is SortOrder.DESCENDING
    assert setting.order.arrow == "▼"


class TestSort:
    rows = [
        make_index("b", rate=2.0, doc_count=30, size_bytes=100, health="yellow"),
        make_index("a", rate=5.0, doc_count=10, size_bytes=300, health="green"),
        make_index("c", rate=1.0, doc_count=20, size_bytes=200, health="red"),
    ]

    def test_rate_descending(self):
        assert names(SortSetting().sort(self.rows)) == ["a", "b", "c"]

    def test_name_ascending(self):
        setting = SortSetting(SortColumn.NAME, SortOrder.ASCENDING)
        assert names(setting.sort(self.rows)) == ["a", "b", "c"]

    def test_doc_count_descending(self):
        setting = SortSetting(SortColumn.DOC_COUNT)
        assert names(setting.sort(self.rows)) == ["b", "c", "a"]

    def test_size_ascending(self):
        setting = SortSetting(SortColumn.SIZE, SortOrder.ASCENDING)
        assert names(setting.sort(self.rows)) == ["b", "c", "a"]

    def test_health_is_lexicographic(self):
        setting = SortSetting(SortColumn.HEALTH, SortOrder.ASCENDING)
        assert names(setting.sort(self.rows)) == ["a", "c", "b"]

    def test_sort_returns_new_list(self):
        original = list(self.rows)
        SortSetting().sort(self.rows)
        assert self.rows == original

    def test_equal_keys_keep_input_order(self):
        rows = [make_index("x", rate=1.0), make_index("y", rate=1.0), make_index("z", rate=1.0)]
        setting = SortSetting(SortColumn.RATE, SortOrder.ASCENDING)
        assert names(setting.sort(rows)) == ["x", "y", "z"]

    def test_nan_rate_does_not_raise(self):
        rows = [make_index("x", rate=float("nan")), make_index("y", rate=1.0)]
        assert sorted(names(SortSetting().sort(rows))) == ["x", "y"]
