from copy import deepcopy
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Tuple
from uuid import uuid4

from chalicelib.constants import keys_structure
from chalicelib.constants.constants import WEEKDAYS
from chalicelib.constants.db_structure import DEFAULT_BOARD_CONFIG, DEFAULT_BRANDING
from chalicelib.utils import db
from test.utils.request_utils import make_token

ALWAYS_OPEN = {day: {'is_open': True, 'open': '00:00', 'close': '00:00'} for day in WEEKDAYS}
ALWAYS_ACTIVE = {day: {'is_active': True, 'start_time': '00:00', 'end_time': '23:59'} for day in WEEKDAYS}
NEVER_ACTIVE = {day: {'is_active': False, 'start_time': '00:00', 'end_time': '23:59'} for day in WEEKDAYS}


def _now() -> str:
    return datetime.today().isoformat(timespec='seconds')


def get_vendor_record(name: str = 'Burger Queen Group') -> Dict:
    vendor_id = str(uuid4())
    return {
        "partkey": keys_structure.vendors_pk,
        "sortkey": vendor_id,
        "record_type": "vendor",
        "id_": vendor_id,
        "name_": name,
        "date_created": _now(),
        "date_updated": _now()
    }


def get_user_record(role: str, vendor_id: str = None, restaurant_id: str = None, permissions: Dict = None,
                    permission_schedule: Dict = None, username: str = None,
                    linked_restaurant_ids: List = None) -> Dict:
    user_id = str(uuid4())
    record = {
        "partkey": keys_structure.users_pk,
        "sortkey": user_id,
        "record_type": "user",
        "id_": user_id,
        "name_": f"test {role} {user_id[:4]}",
        "username": username or f"{role.lower()}-{user_id[:8]}",
        "role": role,
        "vendor_id": vendor_id,
        "restaurant_id": restaurant_id,
        "permissions": permissions,
        "permission_schedule": permission_schedule,
        "linked_restaurant_ids": linked_restaurant_ids,
        "date_created": _now(),
        "date_updated": _now()
    }
    return {key: value for key, value in record.items() if value is not None}


def get_restaurant_record(vendor_id: str, name: str = 'Burger Queen', **kwargs) -> Dict:
    restaurant_id = str(uuid4())
    return {
        "partkey": keys_structure.restaurants_pk,
        "sortkey": restaurant_id,
        "record_type": "restaurant",
        "id_": restaurant_id,
        "vendor_id": vendor_id,
        "name_": name,
        "description": "Home of the Flame-Grilled Masterpiece.",
        "contact": {"phone": "555-1234", "email": "contact@burgerqueen.com", "address": "123 Burger Lane"},
        "opening_hours": deepcopy(ALWAYS_OPEN),
        "payment_methods": ["Credit Card", "Cash"],
        "branding": deepcopy(DEFAULT_BRANDING),
        "media": [],
        "assigned_menu_template_ids": [],
        "date_created": _now(),
        "date_updated": _now(),
        **kwargs
    }


def get_menu_item_record(vendor_id: str, name: str, price: str, **kwargs) -> Dict:
    item_id = str(uuid4())
    return {
        "partkey": keys_structure.menu_item_templates_pk.format(vendor_id=vendor_id),
        "sortkey": item_id,
        "record_type": "menu_item_template",
        "id_": item_id,
        "vendor_id": vendor_id,
        "name_": name,
        "price": Decimal(price),
        "is_available": True,
        "date_created": _now(),
        "date_updated": _now(),
        **kwargs
    }


def get_menu_record(vendor_id: str, sections: List[Dict], name: str = 'Main Menu') -> Dict:
    menu_id = str(uuid4())
    return {
        "partkey": keys_structure.menu_templates_pk.format(vendor_id=vendor_id),
        "sortkey": menu_id,
        "record_type": "menu_template",
        "id_": menu_id,
        "vendor_id": vendor_id,
        "name_": name,
        "sections": sections,
        "date_created": _now(),
        "date_updated": _now()
    }


def get_board_record(vendor_id: str, config: Dict = None, name: str = 'Standard Workflow') -> Dict:
    board_id = str(uuid4())
    return {
        "partkey": keys_structure.board_templates_pk.format(vendor_id=vendor_id),
        "sortkey": board_id,
        "record_type": "board_template",
        "id_": board_id,
        "vendor_id": vendor_id,
        "name_": name,
        "config": deepcopy(config or DEFAULT_BOARD_CONFIG),
        "date_created": _now(),
        "date_updated": _now()
    }


def get_order_record(restaurant_id: str, vendor_id: str, status: str, items: List[Dict], total: str,
                     order_time: str = None) -> Dict:
    order_id = uuid4().hex[:8]
    order_time = order_time or datetime.now().isoformat()
    return {
        "partkey": keys_structure.orders_pk.format(restaurant_id=restaurant_id),
        "sortkey": order_id,
        "record_type": "order",
        "id_": order_id,
        "restaurant_id": restaurant_id,
        "vendor_id": vendor_id,
        "items": items,
        "subtotal": Decimal(total),
        "taxes": Decimal('0.00'),
        "delivery_fee": Decimal('0.00'),
        "total": Decimal(total),
        "status_": status,
        "order_time": order_time,
        "last_update_time": order_time,
        "history": [{"status": status, "time": order_time, "user_id": None}]
    }


def put(record: Dict) -> str:
    db.put_db_record(record)
    return record['id_']


def put_user(role: str, **kwargs) -> Tuple[str, str]:
    """
    :return:
    user id and a token of the user
    """
    user_id = put(get_user_record(role, **kwargs))
    return user_id, make_token(user_id)


def put_vendor_with_restaurant(**restaurant_kwargs) -> Tuple[str, str]:
    vendor_id = put(get_vendor_record())
    restaurant_id = put(get_restaurant_record(vendor_id, **restaurant_kwargs))
    return vendor_id, restaurant_id
