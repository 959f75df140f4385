from decimal import Decimal

from chalicelib.analytics import compute_analytics
from chalicelib.constants.constants import ROLE_VENDOR, ROLE_RESTAURANT_ADMIN
from chalicelib.constants.status_codes import http200, http403
from test.utils.regression_test_data import put, put_user, put_vendor_with_restaurant, get_order_record
from test.utils.request_utils import make_request, body_of

from test.utils.fixtures import chalice_gateway


def item(menu_item_template_id, name, quantity, price='5.00'):
    return {'menu_item_template_id': menu_item_template_id, 'name': name, 'quantity': quantity,
            'price': Decimal(price)}


def test_no_orders():
    assert compute_analytics([]) == {
        'total_orders': 0,
        'orders_by_status': {},
        'revenue': Decimal('0.00'),
        'average_order_value': Decimal(0),
        'top_items': []
    }


def test_rejected_orders_are_not_revenue():
    orders = [
        get_order_record('r', 'v', 'completed', [item('burger', 'Classic Cheeseburger', 2)], '20.00'),
        get_order_record('r', 'v', 'pending',
                         [item('fries', 'Crispy Fries', 3), item('burger', 'Classic Cheeseburger', 1)], '15.01'),
        get_order_record('r', 'v', 'rejected', [item('shake', 'Chocolate Shake', 10)], '50.00'),
    ]
    analytics = compute_analytics(orders)
    assert analytics['total_orders'] == 3
    assert analytics['orders_by_status'] == {'completed': 1, 'pending': 1, 'rejected': 1}
    assert analytics['revenue'] == Decimal('35.01')
    assert analytics['average_order_value'] == Decimal('17.50')
    assert analytics['top_items'] == [
        {'menu_item_template_id': 'burger', 'name': 'Classic Cheeseburger', 'quantity': 3},
        {'menu_item_template_id': 'fries', 'name': 'Crispy Fries', 'quantity': 3},
    ]


def test_top_items_are_limited():
    orders = [get_order_record('r', 'v', 'completed', [item(f'item-{i}', f'Item {i}', i) for i in range(1, 8)],
                               '10.00')]
    top_items = compute_analytics(orders)['top_items']
    assert [top['quantity'] for top in top_items] == [7, 6, 5, 4, 3]


def test_analytics_endpoint(chalice_gateway):
    vendor_id, restaurant_id = put_vendor_with_restaurant()
    put(get_order_record(restaurant_id, vendor_id, 'completed', [item('burger', 'Classic Cheeseburger', 2)], '24.42'))
    _, token = put_user(ROLE_VENDOR, vendor_id=vendor_id)

    response = make_request(chalice_gateway, endpoint=f'/restaurants/{restaurant_id}/analytics', token=token)
    assert response['statusCode'] == http200, response['body']
    analytics = body_of(response)
    assert analytics['restaurant_id'] == restaurant_id
    assert analytics['revenue'] == 24.42
    assert analytics['top_items'][0]['name'] == 'Classic Cheeseburger'


def test_analytics_needs_permission(chalice_gateway):
    vendor_id, restaurant_id = put_vendor_with_restaurant()
    _, token = put_user(ROLE_RESTAURANT_ADMIN, vendor_id=vendor_id, restaurant_id=restaurant_id,
                        permissions={'can_view_analytics': False, 'can_manage_orders': True})
    response = make_request(chalice_gateway, endpoint=f'/restaurants/{restaurant_id}/analytics', token=token)
    assert response['statusCode'] == http403
