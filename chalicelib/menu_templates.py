from decimal import Decimal
from typing import List, Dict, Tuple
from uuid import uuid4

from chalice import Response

from chalicelib.base_class_entity import EntityBase, now_iso
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import ROLE_SUPER_ADMIN, ROLE_VENDOR, ROLE_RESTAURANT_ADMIN, \
    PERMISSION_MANAGE_MENU, CENTS
from chalicelib.constants.status_codes import http200
from chalicelib.utils import auth as utils_auth, data as utils_data, exceptions, app as utils_app
from chalicelib.utils.logger import logger

MENU_MANAGERS = (ROLE_SUPER_ADMIN, ROLE_VENDOR, ROLE_RESTAURANT_ADMIN)


def is_valid_discount(discount) -> bool:
    if not isinstance(discount, dict):
        return False
    percentage = discount.get('percentage')
    if isinstance(percentage, bool) or not isinstance(percentage, (int, Decimal)) or not 0 <= percentage <= 100:
        return False
    return isinstance(discount.get('show_to_consumer', False), bool)


def is_valid_tags(tags) -> bool:
    return isinstance(tags, list) and all(
        isinstance(tag, dict) and isinstance(tag.get('id'), str) and isinstance(tag.get('name'), str) for tag in tags
    )


def effective_price(price: Decimal, discount: Dict = None) -> Decimal:
    price = utils_data.to_money(price)
    if not discount or not discount.get('percentage'):
        return price
    return (price * (Decimal(100) - Decimal(str(discount['percentage']))) / Decimal(100)).quantize(CENTS)


def check_menu_access(auth_result: Dict, requested_vendor_id: str = None) -> str:
    """
    :return:
    vendor_id the user is allowed to manage menus for
    """
    utils_auth.require_role(auth_result, *MENU_MANAGERS)
    vendor_id = utils_auth.resolve_vendor_id(auth_result, requested_vendor_id)
    utils_auth.check_vendor_access(auth_result, vendor_id, permission=PERMISSION_MANAGE_MENU)
    return vendor_id


class MenuItemTemplate(EntityBase):
    pk = keys_structure.menu_item_templates_pk
    sk = keys_structure.menu_item_templates_sk

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'vendor_id': lambda x: isinstance(x, str) and len(x) > 0,
        "date_created": lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'name_': lambda x: isinstance(x, str) and len(x.strip()) > 0,
        'price': lambda x: isinstance(x, Decimal) and x > 0,
        'is_available': lambda x: isinstance(x, bool),
        "date_updated": lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'description': lambda x: isinstance(x, str),
        'image_url': lambda x: isinstance(x, str),
        'composition': lambda x: isinstance(x, list) and all(isinstance(i, str) for i in x),
        'allergens': is_valid_tags,
        'intolerances': is_valid_tags,
        'discount': is_valid_discount,
        "updated_by": lambda x: isinstance(x, str)
    }

    def __init__(self, id_, vendor_id=None, **kwargs):
        EntityBase.__init__(self, id_)

        self.vendor_id: str = vendor_id
        self.name: str = kwargs.get('name', kwargs.get('name_'))
        self.description: str = kwargs.get('description')
        self.price: Decimal = Decimal(str(kwargs.get('price'))).quantize(CENTS) if \
            type(kwargs.get('price')) in [int, float, Decimal] else None
        self.image_url: str = kwargs.get('image_url')
        self.composition: list = kwargs.get('composition')
        self.allergens: list = kwargs.get('allergens')
        self.intolerances: list = kwargs.get('intolerances')
        self.discount: dict = kwargs.get('discount')
        self.is_available: bool = kwargs.get('is_available')
        self.date_created: str = kwargs.get('date_created') or now_iso()
        self.date_updated: str = kwargs.get('date_updated') or now_iso()
        self.updated_by: str = kwargs.get('updated_by')
        self.record_type = 'menu_item_template'

    @classmethod
    def init_by_id(cls, vendor_id, id_):
        c = cls(id_, vendor_id)
        c._fill_from_db()
        return c

    @staticmethod
    def list_records(vendor_id) -> List[Dict]:
        return MenuItemTemplate._query_partition(keys_structure.menu_item_templates_pk.format(vendor_id=vendor_id))

    @classmethod
    def items_by_id(cls, vendor_id) -> Dict[str, 'MenuItemTemplate']:
        return {record['id_']: cls.init_by_db_record(record) for record in cls.list_records(vendor_id)}

    @property
    def effective_price(self) -> Decimal:
        return effective_price(self.price, self.discount)

    @staticmethod
    @utils_app.request_exception_handler
    @utils_auth.authenticate
    @utils_app.log_start_finish
    def endpoint_get_all(request) -> Response:
        vendor_id = check_menu_access(request.auth_result, (request.query_params or {}).get('vendor_id'))
        items = [MenuItemTemplate.init_by_db_record(record)._to_ui() for record in
                 MenuItemTemplate.list_records(vendor_id)]
        return Response(status_code=http200, body=items)

    @utils_app.request_exception_handler
    @utils_auth.authenticate_class
    @utils_app.log_start_finish
    def endpoint_create(self, request) -> Response:
        request_body = utils_data.parse_raw_body(request)
        request_body.pop('id_', None)
        self._reinit(str(uuid4()), check_menu_access(self.auth_result, request_body.pop('vendor_id', None)),
                     **{'is_available': True, **request_body})
        self.request_data = {'auth_result': self.auth_result}
        self.updated_by = self.auth_result['user_id']
        self._create_db_record()
        return Response(status_code=http200, body={'message': 'Menu item successfully created',
                                                   'id': self.id_, 'menu_item_template': self._to_ui()})

    @utils_app.request_exception_handler
    @utils_auth.authenticate_class
    @utils_app.log_start_finish
    def endpoint_update(self, request) -> Response:
        request_body = utils_data.parse_raw_body(request)
        request_body.pop('id_', None)
        self.vendor_id = check_menu_access(self.auth_result, request_body.pop('vendor_id', None) or
                                           (request.query_params or {}).get('vendor_id'))
        self._fill_from_db()
        update = MenuItemTemplate(self.id_, self.vendor_id, **request_body)
        update.request_data = {'auth_result': self.auth_result}
        if 'price' in request_body and update.price is None:
            self.raise_validation_error('price', request_body['price'])
        update._update_db_record(allowed_attrs_to_delete=['discount', 'image_url', 'description'])
        self._fill_from_db()
        return Response(status_code=http200, body={'message': 'Menu item was successfully updated',
                                                   'id': self.id_, 'menu_item_template': self._to_ui()})

    @utils_app.request_exception_handler
    @utils_auth.authenticate_class
    @utils_app.log_start_finish
    def endpoint_delete(self, request) -> Response:
        self.vendor_id = check_menu_access(self.auth_result, (request.query_params or {}).get('vendor_id'))
        self._fill_from_db()
        self._delete_db_record()
        return Response(status_code=http200, body={'message': 'Menu item was deleted successfully', 'id': self.id_})

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk.format(vendor_id=self.vendor_id), self.sk.format(menu_item_template_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'vendor_id': self.vendor_id,
            'name': self.name,
            'description': self.description,
            'price': self.price,
            'image_url': self.image_url,
            'composition': self.composition,
            'allergens': self.allergens,
            'intolerances': self.intolerances,
            'discount': self.discount,
            'is_available': self.is_available,
            "date_created": self.date_created,
            "date_updated": self.date_updated,
            'updated_by': self.updated_by
        }

    def _to_ui(self):
        item = super()._to_ui()
        for key in ('composition', 'allergens', 'intolerances'):
            item[key] = item.get(key) or []
        item['effective_price'] = self.effective_price if self.price is not None else None
        return item


class MenuTemplate(EntityBase):
    pk = keys_structure.menu_templates_pk
    sk = keys_structure.menu_templates_sk

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'vendor_id': lambda x: isinstance(x, str) and len(x) > 0,
        "date_created": lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'name_': lambda x: isinstance(x, str) and len(x.strip()) > 0,
        'sections': lambda x: isinstance(x, list),
        "date_updated": lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        "updated_by": lambda x: isinstance(x, str)
    }

    def __init__(self, id_, vendor_id=None, **kwargs):
        EntityBase.__init__(self, id_)

        self.vendor_id: str = vendor_id
        self.name: str = kwargs.get('name', kwargs.get('name_'))
        self.sections: list = kwargs.get('sections')
        self.date_created: str = kwargs.get('date_created') or now_iso()
        self.date_updated: str = kwargs.get('date_updated') or now_iso()
        self.updated_by: str = kwargs.get('updated_by')
        self.record_type = 'menu_template'

    @classmethod
    def init_by_id(cls, vendor_id, id_):
        c = cls(id_, vendor_id)
        c._fill_from_db()
        return c

    @staticmethod
    def list_records(vendor_id) -> List[Dict]:
        return MenuTemplate._query_partition(keys_structure.menu_templates_pk.format(vendor_id=vendor_id))

    def validate_sections(self):
        if not isinstance(self.sections, list):
            self.raise_validation_error('sections', self.sections)
        known_items = {record['id_'] for record in MenuItemTemplate.list_records(self.vendor_id)}
        section_ids = []
        for section in self.sections:
            if not isinstance(section, dict) or not isinstance(section.get('title'), str):
                self.raise_validation_error('sections', section)
            section.setdefault('id', f'sec-{uuid4().hex[:8]}')
            section.setdefault('item_ids', [])
            if section['id'] in section_ids:
                raise exceptions.ValidationException(f"section id {section['id']} is duplicated")
            section_ids.append(section['id'])
            unknown_items = [item_id for item_id in section['item_ids'] if item_id not in known_items]
            if unknown_items:
                raise exceptions.ValidationException(f'section {section["id"]} references unknown '
                                                     f'menu items {unknown_items}')

    def resolve(self, items_by_id: Dict[str, MenuItemTemplate]) -> Dict:
        """
        Menu with item ids replaced with items, items which don't exist anymore are skipped
        """
        menu = self._to_ui()
        menu['sections'] = [
            {
                'id': section.get('id'),
                'title': section.get('title'),
                'items': [items_by_id[item_id]._to_ui() for item_id in section.get('item_ids', [])
                          if item_id in items_by_id]
            }
            for section in self.sections or []
        ]
        return menu

    @staticmethod
    @utils_app.request_exception_handler
    @utils_auth.authenticate
    @utils_app.log_start_finish
    def endpoint_get_all(request) -> Response:
        vendor_id = check_menu_access(request.auth_result, (request.query_params or {}).get('vendor_id'))
        menus = [MenuTemplate.init_by_db_record(record)._to_ui() for record in MenuTemplate.list_records(vendor_id)]
        return Response(status_code=http200, body=menus)

    @utils_app.request_exception_handler
    @utils_auth.authenticate_class
    @utils_app.log_start_finish
    def endpoint_create(self, request) -> Response:
        request_body = utils_data.parse_raw_body(request)
        request_body.pop('id_', None)
        self._reinit(str(uuid4()), check_menu_access(self.auth_result, request_body.pop('vendor_id', None)),
                     **{'sections': [], **request_body})
        self.request_data = {'auth_result': self.auth_result}
        self.updated_by = self.auth_result['user_id']
        self.validate_sections()
        self._create_db_record()
        return Response(status_code=http200, body={'message': 'Menu template successfully created',
                                                   'id': self.id_, 'menu_template': self._to_ui()})

    @utils_app.request_exception_handler
    @utils_auth.authenticate_class
    @utils_app.log_start_finish
    def endpoint_update(self, request) -> Response:
        request_body = utils_data.parse_raw_body(request)
        request_body.pop('id_', None)
        self.vendor_id = check_menu_access(self.auth_result, request_body.pop('vendor_id', None) or
                                           (request.query_params or {}).get('vendor_id'))
        self._fill_from_db()
        self.name = request_body.get('name', self.name)
        if 'sections' in request_body:
            self.sections = request_body['sections']
            self.validate_sections()
        self._update_db_record()
        logger.info(f"endpoint_update ::: menu template {self.id_} has {len(self.sections)} sections")
        return Response(status_code=http200, body={'message': 'Menu template was successfully updated',
                                                   'id': self.id_, 'menu_template': self._to_ui()})

    @utils_app.request_exception_handler
    @utils_auth.authenticate_class
    @utils_app.log_start_finish
    def endpoint_delete(self, request) -> Response:
        self.vendor_id = check_menu_access(self.auth_result, (request.query_params or {}).get('vendor_id'))
        self._fill_from_db()
        self._delete_db_record()
        return Response(status_code=http200, body={'message': 'Menu template was deleted successfully',
                                                   'id': self.id_})

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk.format(vendor_id=self.vendor_id), self.sk.format(menu_template_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'vendor_id': self.vendor_id,
            'name': self.name,
            'sections': self.sections,
            "date_created": self.date_created,
            "date_updated": self.date_updated,
            'updated_by': self.updated_by
        }
