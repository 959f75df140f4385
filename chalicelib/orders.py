import os
from datetime import datetime
from decimal import Decimal
from typing import Tuple, List, Dict, Optional
from uuid import uuid4

from boto3.dynamodb.conditions import Attr
from chalice import Response

from chalicelib import board_templates
from chalicelib.base_class_entity import EntityBase
from chalicelib.board_templates import BoardTemplate
from chalicelib.carts import Cart, cart_subtotal
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import ORDER_EMAIL_FROM, TAX_RATE, DELIVERY_FEE, CENTS, ORDER_ID_LENGTH, \
    ROLE_VENDOR, ROLE_RESTAURANT_ADMIN, PERMISSION_MANAGE_ORDERS
from chalicelib.constants.status_codes import http200
from chalicelib.menu_templates import MenuItemTemplate
from chalicelib.restaurants import Restaurant, get_restaurant_record
from chalicelib.utils import auth as utils_auth, \
    data as utils_data, \
    app as utils_app, \
    notifications as utils_notifications, \
    exceptions, \
    email_templates
from chalicelib.utils.exceptions import OrderNotFound
from chalicelib.utils.logger import logger, log_request


def calculate_totals(items: List[Dict]) -> Dict[str, Decimal]:
    subtotal = cart_subtotal(items)
    taxes = (subtotal * TAX_RATE).quantize(CENTS)
    return {
        'subtotal': subtotal,
        'taxes': taxes,
        'delivery_fee': DELIVERY_FEE,
        'total': (subtotal + taxes + DELIVERY_FEE).quantize(CENTS)
    }


def new_order_id() -> str:
    return uuid4().hex[:ORDER_ID_LENGTH]


class Order(EntityBase):
    pk = keys_structure.orders_pk
    sk = keys_structure.orders_sk

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'restaurant_id': lambda x: isinstance(x, str),
        'vendor_id': lambda x: isinstance(x, str),
        'items': lambda x: isinstance(x, list) and len(x) > 0,
        'subtotal': lambda x: isinstance(x, Decimal),
        'taxes': lambda x: isinstance(x, Decimal),
        'delivery_fee': lambda x: isinstance(x, Decimal),
        'total': lambda x: isinstance(x, Decimal),
        'order_time': lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'status_': lambda x: isinstance(x, str) and len(x) > 0,
        'last_update_time': lambda x: isinstance(x, str),
        'history': lambda x: isinstance(x, list)
    }

    optional_fields_validation = {
        'user_id': lambda x: isinstance(x, str),
        'rejection_reason': lambda x: isinstance(x, str),
        'processed_by_user_id': lambda x: isinstance(x, str)
    }

    def __init__(self, id_, restaurant_id=None, **kwargs):
        EntityBase.__init__(self, id_)

        self.restaurant_id: str = restaurant_id
        self.vendor_id: str = kwargs.get('vendor_id')
        self.user_id: str = kwargs.get('user_id')
        self.items: List[Dict] = kwargs.get('items') or []
        self.subtotal: Decimal = kwargs.get('subtotal')
        self.taxes: Decimal = kwargs.get('taxes')
        self.delivery_fee: Decimal = kwargs.get('delivery_fee')
        self.total: Decimal = kwargs.get('total')
        self.status: str = kwargs.get('status', kwargs.get('status_'))
        self.order_time: str = kwargs.get('order_time')
        self.last_update_time: str = kwargs.get('last_update_time')
        self.rejection_reason: str = kwargs.get('rejection_reason')
        self.processed_by_user_id: str = kwargs.get('processed_by_user_id')
        self.history: List[Dict] = kwargs.get('history') or []
        self.record_type = 'order'

    @classmethod
    def init_endpoint(cls, request, restaurant_id=None, order_id=None):
        log_request(request)
        return cls(order_id, restaurant_id)

    @staticmethod
    def list_records(restaurant_id: str, status: str = None) -> List[Dict]:
        filter_expression = Attr('status_').eq(status) if status else None
        records = Order._query_partition(keys_structure.orders_pk.format(restaurant_id=restaurant_id),
                                         filter_expression)
        return sorted(records, key=lambda record: record.get('order_time') or '', reverse=True)

    def _fill_from_db(self) -> None:
        try:
            super()._fill_from_db()
        except exceptions.RecordNotFound:
            raise OrderNotFound(f'order {self.id_} of restaurant {self.restaurant_id} not found')

    def place(self, cart: Cart, user_id: str = None):
        """
        Creates the order from the cart in the initial status of the restaurant board and clears the cart
        """
        if not cart.items:
            raise exceptions.ValidationException('Cart is empty')
        restaurant = Restaurant.init_by_id(cart.restaurant_id)
        items_by_id = MenuItemTemplate.items_by_id(restaurant.vendor_id)
        unavailable = [item['name'] for item in cart.items
                       if item['menu_item_template_id'] not in items_by_id or
                       not items_by_id[item['menu_item_template_id']].is_available]
        if unavailable:
            raise exceptions.SomeItemsAreNotAvailable(f'Some items are not available anymore: {unavailable}')

        now = datetime.now().isoformat()
        self._reinit(
            new_order_id(),
            restaurant.id_,
            vendor_id=restaurant.vendor_id,
            user_id=user_id,
            items=[{key: value for key, value in item.items() if key != 'cart_item_id'} for item in cart.items],
            status=board_templates.initial_status(restaurant.board_config),
            order_time=now,
            last_update_time=now,
            **calculate_totals(cart.items)
        )
        self.history = [{'status': self.status, 'time': now, 'user_id': user_id}]
        self._create_db_record()
        cart.clear()

    def change_status(self, config: Dict, new_status: str, user_id: str, rejection_reason: str = None):
        board_templates.check_transition(config, self.status, new_status)
        now = datetime.now().isoformat()
        self.status = new_status
        self.last_update_time = now
        self.processed_by_user_id = user_id
        if rejection_reason:
            self.rejection_reason = board_templates.resolve_rejection_reason(config, rejection_reason)
        self.history.append({'status': new_status, 'time': now, 'user_id': user_id})
        self._update_db_record()

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_create_order(self, request) -> Response:
        request_body = utils_data.parse_raw_body(request)
        if not request_body.get('cart_id'):
            raise exceptions.MandatoryFieldsAreNotFilled('cart_id is mandatory')
        auth_result = utils_auth.get_optional_auth_result(request)
        self.place(Cart.init_by_id(request_body['cart_id']), user_id=auth_result and auth_result['user_id'])
        return Response(status_code=http200, body={'message': 'Order successfully created',
                                                   'id': self.id_, 'order': self._to_ui()})

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_get_by_id(self) -> Response:
        self._fill_from_db()
        return Response(status_code=http200, body=self._to_ui())

    @utils_app.request_exception_handler
    @utils_auth.authenticate_class
    @utils_app.log_start_finish
    def endpoint_update_status(self, request) -> Response:
        utils_auth.require_role(self.auth_result, ROLE_VENDOR, ROLE_RESTAURANT_ADMIN)
        request_body = utils_data.parse_raw_body(request)
        if not request_body.get('status'):
            raise exceptions.MandatoryFieldsAreNotFilled('status is mandatory')
        restaurant = Restaurant.init_by_id(self.restaurant_id)
        utils_auth.check_restaurant_access(self.auth_result, restaurant._to_dict(),
                                           permission=PERMISSION_MANAGE_ORDERS, allow_super_admin=False)
        self._fill_from_db()
        config = restaurant.board_config
        self.change_status(config, request_body['status'], self.auth_result['user_id'],
                           request_body.get('rejection_reason'))
        return Response(status_code=http200, body={'message': 'Order status was successfully updated',
                                                   'id': self.id_, 'order': self._to_ui(config)})

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk.format(restaurant_id=self.restaurant_id), self.sk.format(order_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'restaurant_id': self.restaurant_id,
            'vendor_id': self.vendor_id,
            'user_id': self.user_id,
            'items': self.items,
            'subtotal': self.subtotal,
            'taxes': self.taxes,
            'delivery_fee': self.delivery_fee,
            'total': self.total,
            'status_': self.status,
            'order_time': self.order_time,
            'last_update_time': self.last_update_time,
            'rejection_reason': self.rejection_reason,
            'processed_by_user_id': self.processed_by_user_id,
            'history': self.history
        }

    def _to_ui(self, config: Dict = None):
        item = super()._to_ui()
        if config is not None:
            item['status_label'] = board_templates.status_label(config, self.status)
            item['allowed_next_statuses'] = board_templates.allowed_transitions(config, self.status)
        return item


def _get_staff_restaurant(auth_result: Dict, restaurant_id: str, permission: str) -> Restaurant:
    restaurant = Restaurant.init_by_id(restaurant_id)
    utils_auth.check_restaurant_access(auth_result, restaurant._to_dict(), permission=permission)
    return restaurant


def paginate(records: List[Dict], page_size: Optional[str], start_key: Optional[str]) -> Tuple[List[Dict], str]:
    """
    start_key is the id of the last order of the previous page
    """
    if start_key:
        ids = [record['id_'] for record in records]
        records = records[ids.index(start_key) + 1:] if start_key in ids else []
    if not page_size:
        return records, None
    limit = utils_data.to_int(page_size, 'page_size')
    if limit < 1:
        raise exceptions.ValidationException('page_size must be positive')
    page = records[:limit]
    last_evaluated_key = page[-1]['id_'] if len(records) > limit else None
    return page, last_evaluated_key


@utils_app.request_exception_handler
@utils_auth.authenticate
@utils_app.log_start_finish
def endpoint_get_restaurant_orders(request, restaurant_id):
    restaurant = _get_staff_restaurant(request.auth_result, restaurant_id, PERMISSION_MANAGE_ORDERS)
    qp = request.query_params or {}
    config = restaurant.board_config
    records, last_evaluated_key = paginate(Order.list_records(restaurant_id, qp.get('status')),
                                           qp.get('page_size'), qp.get('start_key'))
    return Response(
        status_code=http200,
        body={
            'orders': [Order.init_by_db_record(record)._to_ui(config) for record in records],
            'last_evaluated_key': last_evaluated_key
        }
    )


@utils_app.request_exception_handler
@utils_auth.authenticate
@utils_app.log_start_finish
def endpoint_get_board(request, restaurant_id):
    restaurant = _get_staff_restaurant(request.auth_result, restaurant_id, PERMISSION_MANAGE_ORDERS)
    config = restaurant.board_config
    orders = [Order.init_by_db_record(record)._to_ui(config) for record in Order.list_records(restaurant_id)]
    return Response(
        status_code=http200,
        body={
            'restaurant_id': restaurant_id,
            'board_template_id': restaurant.board_template_id,
            'config': config,
            'columns': board_templates.group_orders_by_columns(config, orders)
        }
    )


@utils_app.log_start_finish
def db_trigger_order_record(record_old: dict, record_new: dict, event_id: str, event_name: str):
    logger.info(f'db_trigger_order_record ::: order_record={record_new}, {event_id=}, {event_name=}')
    restaurant_record = get_restaurant_record(record_new.get('restaurant_id') or record_old.get('restaurant_id')) or {}

    if event_name.lower() == 'insert':
        order_notification_emails: List = [
            (restaurant_record.get('contact') or {}).get('email'),
            os.environ.get("ALL_ORDERS_EMAIL")
        ]
        subject = f'New order has been created, ' \
                  f'order ID - {record_new.get("id_")}, ' \
                  f'restaurant - {restaurant_record.get("name_")}'
        email_body = email_templates.get_new_order_notification_message(record_new, restaurant_record.get('name_'))
        utils_notifications.send_email_ses(order_notification_emails, ORDER_EMAIL_FROM, subject, email_body)

    elif event_name.lower() == 'modify' and record_old.get('status_') != record_new.get('status_'):
        config = BoardTemplate.config_for(restaurant_record.get('vendor_id'),
                                          restaurant_record.get('board_template_id'))
        message = email_templates.get_order_status_message(
            record_new, board_templates.status_label(config, record_new.get('status_')))
        utils_notifications.publish_sns(
            utils_notifications.order_events_topic(),
            message,
            subject='Order status changed',
            attributes={
                'restaurant_id': record_new.get('restaurant_id'),
                'order_id': record_new.get('id_'),
                'status': record_new.get('status_')
            }
        )
