from decimal import Decimal
from typing import Tuple, List, Dict
from uuid import uuid4

from chalice import Response

from chalicelib.base_class_entity import EntityBase, now_iso
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import CART_CONFLICT_MESSAGE
from chalicelib.constants.status_codes import http200
from chalicelib.menu_templates import MenuItemTemplate
from chalicelib.restaurants import Restaurant
from chalicelib.utils import app as utils_app, data as utils_data, exceptions
from chalicelib.utils.logger import logger, log_request


def cart_subtotal(items: List[Dict]) -> Decimal:
    return utils_data.to_money(sum(
        (utils_data.to_money(item['price']) * int(item['quantity']) for item in items), Decimal(0)
    ))


class Cart(EntityBase):
    pk = keys_structure.carts_pk
    sk = keys_structure.carts_sk

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str) and len(x) > 0,
    }

    required_mutable_fields_validation = {
        'restaurant_id': lambda x: isinstance(x, str),
        'items': lambda x: isinstance(x, list),
        'date_updated': lambda x: isinstance(x, str)
    }

    def __init__(self, id_, **kwargs):
        EntityBase.__init__(self, id_)

        self.restaurant_id: str = kwargs.get('restaurant_id')
        self.items: List[Dict] = kwargs.get('items') or []
        self.date_updated: str = kwargs.get('date_updated') or now_iso()
        self.record_type = 'cart'

    @classmethod
    def init_endpoint(cls, request, cart_id):
        log_request(request)
        return cls(cart_id)

    @classmethod
    def init_by_id(cls, cart_id):
        """
        Unknown cart is an empty cart
        """
        c = cls(cart_id)
        c._load()
        return c

    def _load(self):
        try:
            self._fill_from_db()
        except exceptions.RecordNotFound:
            logger.info(f'_load ::: cart {self.id_} not found, starting with an empty one')

    @property
    def subtotal(self) -> Decimal:
        return cart_subtotal(self.items)

    def add_item(self, restaurant_id: str, menu_item_template_id: str, quantity: int = 1) -> Dict:
        if quantity < 1:
            raise exceptions.ValidationException('quantity must be at least 1')
        if self.items and self.restaurant_id != restaurant_id:
            raise exceptions.CartConflict(CART_CONFLICT_MESSAGE)
        restaurant = Restaurant.init_by_id(restaurant_id)
        menu_item = MenuItemTemplate.init_by_id(restaurant.vendor_id, menu_item_template_id)
        if not menu_item.is_available:
            raise exceptions.SomeItemsAreNotAvailable(f'{menu_item.name} is not available')
        cart_item = {
            'cart_item_id': uuid4().hex,
            'menu_item_template_id': menu_item.id_,
            'restaurant_id': restaurant.id_,
            'name': menu_item.name,
            'price': menu_item.effective_price,
            'quantity': quantity
        }
        self.restaurant_id = restaurant.id_
        self.items.append(cart_item)
        return cart_item

    def set_quantity(self, cart_item_id: str, quantity: int):
        """
        Quantity below 1 removes the item
        """
        if quantity < 1:
            self.remove_item(cart_item_id)
            return
        self._get_item(cart_item_id)['quantity'] = quantity

    def remove_item(self, cart_item_id: str):
        self._get_item(cart_item_id)
        self.items = [item for item in self.items if item['cart_item_id'] != cart_item_id]

    def _get_item(self, cart_item_id: str) -> Dict:
        for item in self.items:
            if item['cart_item_id'] == cart_item_id:
                return item
        raise exceptions.RecordNotFound(f'item {cart_item_id} is not in cart {self.id_}')

    def save(self):
        if not self.items:
            self.clear()
            return
        self.date_updated = now_iso()
        self._create_db_record()

    def clear(self):
        self.items = []
        self.restaurant_id = None
        self._delete_db_record()

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_get_cart(self) -> Response:
        self._load()
        return Response(status_code=http200, body={'cart': self._to_ui()})

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_add_item(self, request) -> Response:
        request_body = utils_data.parse_raw_body(request)
        for field in ('restaurant_id', 'menu_item_template_id'):
            if not request_body.get(field):
                raise exceptions.MandatoryFieldsAreNotFilled(f'{field} is mandatory')
        self._load()
        cart_item = self.add_item(
            request_body['restaurant_id'],
            request_body['menu_item_template_id'],
            utils_data.to_int(request_body.get('quantity', 1), 'quantity')
        )
        self.save()
        return Response(status_code=http200, body={'cart': self._to_ui(),
                                                   'message': f"{cart_item['name']} added to cart!"})

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_set_quantity(self, request, cart_item_id) -> Response:
        request_body = utils_data.parse_raw_body(request)
        if 'quantity' not in request_body:
            raise exceptions.MandatoryFieldsAreNotFilled('quantity is mandatory')
        self._load()
        self.set_quantity(cart_item_id, utils_data.to_int(request_body['quantity'], 'quantity'))
        self.save()
        return Response(status_code=http200, body={'cart': self._to_ui()})

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_remove_item(self, cart_item_id) -> Response:
        self._load()
        self.remove_item(cart_item_id)
        self.save()
        return Response(status_code=http200, body={'cart': self._to_ui()})

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_clear_cart(self) -> Response:
        self.clear()
        return Response(status_code=http200, body={'message': 'Cart was successfully cleared'})

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(cart_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'restaurant_id': self.restaurant_id,
            'items': self.items,
            'date_updated': self.date_updated
        }

    def _to_ui(self):
        item = super()._to_ui()
        item['subtotal'] = self.subtotal
        item['items_count'] = sum(int(cart_item['quantity']) for cart_item in self.items)
        return item
