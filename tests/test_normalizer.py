"""
Tests for transaction normalization and payload unwrapping.
"""

from cxc_reconciler.ingestion import normalize, unwrap_payload
from cxc_reconciler.ingestion.normalizer import to_float, to_int
from cxc_reconciler.models import Transaction


class TestNormalize:

    def test_malformed_records_become_defaults(self):
        result = normalize([{}, {"amount": "bad"}, None])

        assert len(result) == 3
        assert all(t == Transaction() for t in result)
        assert all(t.amount == 0.0 for t in result)

    def test_spanish_keys(self, sample_records):
        result = normalize(sample_records)

        assert result[0] == Transaction(
            id=1, type="Factura", client_id=1, document="F-001",
            date="2024-01-05", category_id=3, amount=100.0,
        )

    def test_english_keys(self):
        [txn] = normalize([{
            "id": "9", "type": "Invoice", "clientId": "4", "document": "D-1",
            "date": "2024-02-01", "categoryId": 2, "amount": "12.50",
        }])

        assert txn.id == 9
        assert txn.client_id == 4
        assert txn.category_id == 2
        assert txn.amount == 12.5

    def test_spanish_key_wins_over_english(self):
        [txn] = normalize([{"monto": 10, "amount": 20, "clienteId": 3, "clientId": 4}])

        assert txn.amount == 10.0
        assert txn.client_id == 3

    def test_non_list_input_yields_empty(self):
        assert normalize("not a list") == []
        assert normalize(None) == []
        assert normalize({"data": [{"monto": 1}]}) == []

    def test_preserves_length_and_order(self):
        raw = [{"id": i, "monto": i} for i in range(5)]
        assert [t.id for t in normalize(raw)] == [0, 1, 2, 3, 4]


class TestCoercion:

    def test_to_int(self):
        assert to_int("7") == 7
        assert to_int("7.9") == 7
        assert to_int(3.2) == 3
        assert to_int("abc") == 0
        assert to_int(None) == 0
        assert to_int(True) == 0

    def test_to_float_rejects_non_finite(self):
        assert to_float("nan") == 0.0
        assert to_float(float("inf")) == 0.0
        assert to_float("1e3") == 1000.0
        assert to_float([1]) == 0.0


class TestUnwrapPayload:

    def test_data_takes_precedence(self):
        assert unwrap_payload({"data": [1], "items": [2]}) == [1]

    def test_items_when_data_is_not_a_list(self):
        assert unwrap_payload({"data": "x", "items": [2]}) == [2]

    def test_bare_list(self):
        assert unwrap_payload([3]) == [3]

    def test_unknown_shapes(self):
        assert unwrap_payload({"foo": []}) is None
        assert unwrap_payload("text") is None
        assert unwrap_payload(None) is None
