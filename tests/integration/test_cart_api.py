"""
Integration tests for the cart endpoints (session cart).
"""

import pytest

pytestmark = pytest.mark.integration


class TestAddToCart:
    """Tests for POST /cart/add/<product_id>."""

    def test_add_simple_product(self, client, catalog_ids):
        response = client.post(f"/cart/add/{catalog_ids['simple']}", json={'quantity': 25})

        assert response.status_code == 200
        data = response.get_json()
        assert data['status'] == 'ok'
        assert data['added']['unit_price'] == '9.00'
        assert data['cart']['total'] == '225.00'
        assert data['cart']['item_count'] == 25

    def test_add_twice_merges_lines(self, client, catalog_ids):
        client.post(f"/cart/add/{catalog_ids['boxed']}", json={'quantity': 6})
        response = client.post(f"/cart/add/{catalog_ids['boxed']}", json={'quantity': 6})

        cart = response.get_json()['cart']
        assert len(cart['lines']) == 1
        assert cart['lines'][0]['quantity'] == 12
        assert cart['total'] == '48.00'

    def test_dealer_gets_group_price(self, client, catalog_ids):
        with client.session_transaction() as sess:
            sess['customer_group_id'] = catalog_ids['dealer_slug']

        response = client.post(f"/cart/add/{catalog_ids['simple']}", json={'quantity': 5})

        line = response.get_json()['added']['lines'][0]
        assert line['unit_price'] == '8.00'
        assert line['price_source'] == 'group'

    def test_add_grouped_product(self, client, catalog_ids):
        quantities = {str(catalog_ids['child_a']): 3, str(catalog_ids['child_b']): 7}
        response = client.post(f"/cart/add/{catalog_ids['grouped']}", json={'quantities': quantities})

        data = response.get_json()
        assert data['status'] == 'ok'
        assert data['added']['aggregate_quantity'] == 10
        assert [line['line_total'] for line in data['added']['lines']] == ['27.00', '63.00']
        assert data['cart']['total'] == '90.00'

    def test_grouped_without_quantities_is_noop(self, client, catalog_ids):
        response = client.post(f"/cart/add/{catalog_ids['grouped']}", json={'quantities': {}})

        data = response.get_json()
        assert response.status_code == 200
        assert data['status'] == 'noop'
        assert data['cart']['lines'] == []

    def test_add_variable_product(self, client, catalog_ids):
        response = client.post(
            f"/cart/add/{catalog_ids['variable']}",
            json={'quantity': 1, 'selection': {'Color': 'red', 'Size': 'xl'}}
        )

        line = response.get_json()['added']['lines'][0]
        assert line['unit_price'] == '55.00'
        assert line['title'] == 'Shirt (Red, XL)'

    def test_incomplete_selection(self, client, catalog_ids):
        response = client.post(
            f"/cart/add/{catalog_ids['variable']}",
            json={'quantity': 1, 'selection': {'Color': 'red'}}
        )

        assert response.status_code == 400
        data = response.get_json()
        assert data['error'] == 'incomplete_selection'
        assert data['missing'] == ['Size']

    def test_unpriced_product_rejected(self, client, catalog_ids):
        response = client.post(f"/cart/add/{catalog_ids['unpriced']}", json={'quantity': 1})

        assert response.status_code == 422
        assert response.get_json()['error'] == 'invalid_product'

        cart = client.get('/cart/').get_json()
        assert cart['lines'] == []

    def test_mix_and_match_box(self, client, catalog_ids):
        response = client.post(
            f"/cart/add/{catalog_ids['box']}",
            json={'box': 'Box of 3', 'items': {str(catalog_ids['bar']): 3}}
        )

        data = response.get_json()
        assert data['added']['unit_price'] == '12.00'
        assert data['added']['mode'] == 'mixAndMatch'

    def test_unknown_product(self, client, catalog_ids):
        response = client.post('/cart/add/999999', json={'quantity': 1})

        assert response.status_code == 404
        assert response.get_json()['error'] == 'not_found'

    def test_form_post(self, client, catalog_ids):
        response = client.post(f"/cart/add/{catalog_ids['simple']}", data={'quantity': '3'})

        assert response.status_code == 200
        assert response.get_json()['cart']['item_count'] == 3

    def test_form_post_grouped_quantities(self, client, catalog_ids):
        response = client.post(f"/cart/add/{catalog_ids['grouped']}", data={
            f"quantities.{catalog_ids['child_a']}": '3',
            f"quantities.{catalog_ids['child_b']}": '7',
        })

        data = response.get_json()
        assert response.status_code == 200
        assert data['added']['aggregate_quantity'] == 10
        assert data['cart']['total'] == '90.00'

    def test_form_post_selection(self, client, catalog_ids):
        response = client.post(f"/cart/add/{catalog_ids['variable']}", data={
            'quantity': '1', 'selection.Color': 'red', 'selection.Size': 'xl',
        })

        assert response.status_code == 200
        assert response.get_json()['added']['lines'][0]['title'] == 'Shirt (Red, XL)'

    def test_form_post_box_items(self, client, catalog_ids):
        response = client.post(f"/cart/add/{catalog_ids['box']}", data={
            'box': 'Box of 3', f"items.{catalog_ids['bar']}": '3',
        })

        assert response.status_code == 200
        assert response.get_json()['added']['unit_price'] == '12.00'

    def test_json_array_body_rejected(self, client, catalog_ids):
        response = client.post(f"/cart/add/{catalog_ids['simple']}", json=[1, 2])

        assert response.status_code == 400
        data = response.get_json()
        assert data['error'] == 'incomplete_selection'
        assert data['missing'] == ['body']

    def test_grouped_quantities_list_rejected(self, client, catalog_ids):
        response = client.post(
            f"/cart/add/{catalog_ids['grouped']}",
            json={'quantities': [catalog_ids['child_a'], 3]}
        )

        assert response.status_code == 400
        assert response.get_json()['missing'] == ['quantities']
        assert client.get('/cart/').get_json()['lines'] == []

    def test_selection_string_rejected(self, client, catalog_ids):
        response = client.post(
            f"/cart/add/{catalog_ids['variable']}",
            json={'quantity': 1, 'selection': 'red'}
        )

        assert response.status_code == 400
        assert response.get_json()['missing'] == ['selection']

    def test_box_items_list_rejected(self, client, catalog_ids):
        response = client.post(
            f"/cart/add/{catalog_ids['box']}",
            json={'box': 'Box of 3', 'items': [catalog_ids['bar']] * 3}
        )

        assert response.status_code == 400
        assert response.get_json()['missing'] == ['items']

    def test_inactive_product_rejected(self, client, catalog_ids):
        response = client.post(f"/cart/add/{catalog_ids['retired']}", json={'quantity': 1})

        assert response.status_code == 422
        assert response.get_json()['error'] == 'invalid_product'

    def test_explicit_max_above_stock_keeps_growing(self, client, catalog_ids):
        client.post(f"/cart/add/{catalog_ids['capped']}", json={'quantity': 40})
        response = client.post(f"/cart/add/{catalog_ids['capped']}", json={'quantity': 1})

        cart = response.get_json()['cart']
        assert cart['lines'][0]['quantity'] == 41
        assert cart['total'] == '205.00'

    def test_merge_stops_at_max(self, client, catalog_ids):
        client.post(f"/cart/add/{catalog_ids['capped']}", json={'quantity': 40})
        response = client.post(f"/cart/add/{catalog_ids['capped']}", json={'quantity': 20})

        assert response.get_json()['cart']['lines'][0]['quantity'] == 50


class TestCartManagement:
    """Tests for update / remove / clear."""

    def test_update_rounds_to_order_multiple(self, client, catalog_ids):
        key = client.post(f"/cart/add/{catalog_ids['boxed']}", json={'quantity': 6}).get_json()['keys'][0]
        response = client.post('/cart/update', json={'key': key, 'quantity': 16})

        data = response.get_json()
        assert data['line']['quantity'] == 18
        assert data['cart']['total'] == '72.00'

    def test_update_zero_removes(self, client, catalog_ids):
        key = client.post(f"/cart/add/{catalog_ids['simple']}", json={'quantity': 2}).get_json()['keys'][0]
        response = client.post('/cart/update', json={'key': key, 'quantity': 0})

        data = response.get_json()
        assert data['line'] is None
        assert data['cart']['lines'] == []

    def test_update_unknown_key(self, client):
        response = client.post('/cart/update', json={'key': 'nope', 'quantity': 1})
        assert response.status_code == 404

    def test_remove_and_clear(self, client, catalog_ids):
        key = client.post(f"/cart/add/{catalog_ids['simple']}", json={'quantity': 2}).get_json()['keys'][0]
        client.post(f"/cart/add/{catalog_ids['boxed']}", json={'quantity': 6})

        cart = client.post('/cart/remove', json={'key': key}).get_json()['cart']
        assert len(cart['lines']) == 1

        cart = client.post('/cart/clear').get_json()['cart']
        assert cart == {'lines': [], 'item_count': 0, 'total': '0.00'}
