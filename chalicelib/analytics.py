from collections import Counter, defaultdict
from decimal import Decimal
from typing import List, Dict

from chalice import Response

from chalicelib.constants.constants import REJECTED_STATUS, TOP_ITEMS_LIMIT, CENTS, PERMISSION_VIEW_ANALYTICS
from chalicelib.constants.status_codes import http200
from chalicelib.orders import Order
from chalicelib.restaurants import Restaurant
from chalicelib.utils import auth as utils_auth, app as utils_app, data as utils_data


def compute_analytics(orders: List[Dict]) -> Dict:
    """
    Orders are db records, rejected orders are excluded from revenue and top items
    """
    orders_by_status = Counter(order.get('status_') for order in orders)
    accepted_orders = [order for order in orders if order.get('status_') != REJECTED_STATUS]
    revenue = sum((utils_data.to_money(order['total']) for order in accepted_orders), Decimal(0)).quantize(CENTS)
    average_order_value = (revenue / len(accepted_orders)).quantize(CENTS) if accepted_orders else Decimal(0)

    quantities = defaultdict(int)
    names = {}
    for order in accepted_orders:
        for item in order.get('items', []):
            key = item.get('menu_item_template_id') or item.get('name')
            quantities[key] += int(item.get('quantity', 0))
            names[key] = item.get('name')
    top_items = sorted(quantities.items(), key=lambda pair: (-pair[1], names[pair[0]] or ''))[:TOP_ITEMS_LIMIT]

    return {
        'total_orders': len(orders),
        'orders_by_status': dict(orders_by_status),
        'revenue': revenue,
        'average_order_value': average_order_value,
        'top_items': [
            {'menu_item_template_id': key, 'name': names[key], 'quantity': quantity}
            for key, quantity in top_items
        ]
    }


@utils_app.request_exception_handler
@utils_auth.authenticate
@utils_app.log_start_finish
def endpoint_get_analytics(request, restaurant_id):
    restaurant = Restaurant.init_by_id(restaurant_id)
    utils_auth.check_restaurant_access(request.auth_result, restaurant._to_dict(), permission=PERMISSION_VIEW_ANALYTICS)
    analytics = compute_analytics(Order.list_records(restaurant_id))
    return Response(status_code=http200, body={'restaurant_id': restaurant_id, **analytics})
