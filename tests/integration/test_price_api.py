"""
Integration tests for the product price endpoint and /metrics.
"""

import pytest

pytestmark = pytest.mark.integration


class TestProductPrice:
    """Tests for GET /products/<id>/price."""

    def test_simple_breakdown(self, client, catalog_ids):
        response = client.get(f"/products/{catalog_ids['simple']}/price?qty=25")

        assert response.status_code == 200
        data = response.get_json()
        assert data['mode'] == 'simple'
        assert data['currency'] == 'EUR'
        assert data['price']['unit_price'] == '9.00'
        assert data['price']['old_price'] == '15.00'
        assert data['price']['savings_percent'] == 40
        assert data['price']['active_tier_index'] == 1
        assert [tier['active'] for tier in data['tiers']] == [False, True, False]
        assert [tier['unit_price'] for tier in data['tiers']] == ['10.00', '9.00', '8.00']

    def test_group_query_arg(self, client, catalog_ids):
        response = client.get(f"/products/{catalog_ids['simple']}/price?qty=5&group={catalog_ids['dealer_slug']}")

        price = response.get_json()['price']
        assert price['unit_price'] == '8.00'
        assert price['source'] == 'group'

    def test_invalid_quantity_becomes_moq(self, client, catalog_ids):
        response = client.get(f"/products/{catalog_ids['boxed']}/price?qty=abc")
        assert response.get_json()['price']['quantity'] == 6

    def test_grouped_uses_aggregate_quantity(self, client, catalog_ids):
        response = client.get(f"/products/{catalog_ids['grouped']}/price?qty=10")

        data = response.get_json()
        assert data['mode'] == 'grouped'
        assert data['price']['unit_price'] == '9.00'
        assert data['default_child_id'] == catalog_ids['child_a']

    def test_variable_quote(self, client, catalog_ids):
        response = client.get(f"/products/{catalog_ids['variable']}/price?option.Color=blue")

        variant = response.get_json()['variant']
        assert variant['configured_price'] == '51.50'
        assert variant['labels'] == ['Blue']
        assert variant['missing'] == ['Size']

    def test_mix_and_match_box_prices(self, client, catalog_ids):
        response = client.get(f"/products/{catalog_ids['box']}/price")

        assert response.status_code == 200
        boxes = response.get_json()['boxes']
        assert [(box['name'], box['item_count'], box['price']) for box in boxes] == [('Box of 3', 3, '12.00')]

    def test_unpriced_product(self, client, catalog_ids):
        response = client.get(f"/products/{catalog_ids['unpriced']}/price")

        assert response.status_code == 422
        data = response.get_json()
        assert data['status'] == 'error'
        assert data['product_id'] == catalog_ids['unpriced']

    def test_unknown_product(self, client, session):
        response = client.get('/products/123456/price')
        assert response.status_code == 404

    def test_inactive_product(self, client, catalog_ids):
        response = client.get(f"/products/{catalog_ids['retired']}/price")

        assert response.status_code == 422
        data = response.get_json()
        assert data['error'] == 'invalid_product'
        assert data['product_id'] == catalog_ids['retired']

    def test_disabled_mode(self, app, client, catalog_ids, monkeypatch):
        monkeypatch.setitem(app.config, 'PRICING_MIX_AND_MATCH_ENABLED', False)

        response = client.get(f"/products/{catalog_ids['box']}/price")

        assert response.status_code == 422
        assert 'cannot be ordered online' in response.get_json()['message']


class TestMetrics:
    """Tests for the Prometheus endpoint."""

    def test_metrics_exposes_pricing_counters(self, client, catalog_ids):
        client.post(f"/cart/add/{catalog_ids['simple']}", json={'quantity': 1})
        client.post(f"/cart/add/{catalog_ids['unpriced']}", json={'quantity': 1})

        response = client.get('/metrics')

        assert response.status_code == 200
        body = response.get_data(as_text=True)
        assert 'cart_lines_composed_total{mode="simple"}' in body
        assert 'pricing_rejections_total{reason="invalid_product"}' in body
        assert 'http_requests_total' in body
