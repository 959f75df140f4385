from copy import deepcopy
from datetime import datetime
from typing import Tuple, List, Dict, Optional
from uuid import uuid4

from boto3.dynamodb.conditions import Attr
from chalice import Response

from chalicelib.base_class_entity import EntityBase, now_iso
from chalicelib.board_templates import BoardTemplate
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import ROLE_SUPER_ADMIN, ROLE_VENDOR, ROLE_RESTAURANT_ADMIN, WEEKDAYS, \
    MEDIA_TYPES, MEDIA_TYPE_VIDEO, PERMISSION_MANAGE_SETTINGS
from chalicelib.constants.db_structure import DEFAULT_OPENING_HOURS, DEFAULT_PAYMENT_METHODS, DEFAULT_BRANDING, \
    DEFAULT_CONTACT
from chalicelib.constants.status_codes import http200
from chalicelib.menu_templates import MenuTemplate, MenuItemTemplate
from chalicelib.utils import auth as utils_auth, data as utils_data, exceptions, db as utils_db, \
    app as utils_app, notifications as utils_notifications
from chalicelib.utils.logger import logger


def is_valid_opening_hours(opening_hours) -> bool:
    if not isinstance(opening_hours, dict):
        return False
    for day, hours in opening_hours.items():
        if day not in WEEKDAYS or not isinstance(hours, dict) or not isinstance(hours.get('is_open'), bool):
            return False
        if not utils_data.is_time_string(hours.get('open')) or not utils_data.is_time_string(hours.get('close')):
            return False
    return True


def is_valid_media(media) -> bool:
    return isinstance(media, list) and all(
        isinstance(item, dict) and item.get('type') in MEDIA_TYPES and isinstance(item.get('source', ''), str)
        for item in media
    )


def is_open_at(opening_hours: Dict, moment: datetime) -> bool:
    """
    close <= open means the restaurant works past midnight
    """
    hours = (opening_hours or {}).get(WEEKDAYS[moment.weekday()])
    if not hours or not hours.get('is_open'):
        return False
    current_time = moment.strftime('%H:%M')
    if hours['close'] <= hours['open']:
        return current_time >= hours['open'] or current_time < hours['close']
    return hours['open'] <= current_time < hours['close']


class Restaurant(EntityBase):
    pk = keys_structure.restaurants_pk
    sk = keys_structure.restaurants_sk

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'vendor_id': lambda x: isinstance(x, str) and len(x) > 0,
        "date_created": lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'name_': lambda x: isinstance(x, str) and len(x.strip()) > 0,
        'opening_hours': is_valid_opening_hours,
        'payment_methods': lambda x: isinstance(x, list) and all(isinstance(i, str) for i in x),
        'branding': lambda x: isinstance(x, dict),
        'contact': lambda x: isinstance(x, dict),
        "date_updated": lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'description': lambda x: isinstance(x, str),
        'banner_url': lambda x: isinstance(x, str),
        'media': is_valid_media,
        'board_template_id': lambda x: isinstance(x, str),
        'assigned_menu_template_ids': lambda x: isinstance(x, list) and all(isinstance(i, str) for i in x),
        "updated_by": lambda x: isinstance(x, str)
    }

    def __init__(self, id_, **kwargs):
        EntityBase.__init__(self, id_)

        self.vendor_id: str = kwargs.get('vendor_id')
        self.name: str = kwargs.get('name', kwargs.get('name_'))
        self.description: str = kwargs.get('description')
        self.banner_url: str = kwargs.get('banner_url')
        self.contact: dict = kwargs.get('contact')
        self.opening_hours: dict = kwargs.get('opening_hours')
        self.payment_methods: list = kwargs.get('payment_methods')
        self.branding: dict = kwargs.get('branding')
        self.media: list = kwargs.get('media')
        self.board_template_id: str = kwargs.get('board_template_id')
        self.assigned_menu_template_ids: list = kwargs.get('assigned_menu_template_ids')
        self.date_created: str = kwargs.get('date_created') or now_iso()
        self.date_updated: str = kwargs.get('date_updated') or now_iso()
        self.updated_by: str = kwargs.get('updated_by')
        self.record_type = 'restaurant'

    @classmethod
    def init_by_id(cls, id_):
        c = cls(id_)
        c._fill_from_db()
        return c

    @staticmethod
    def list_records(vendor_id: str = None) -> List[Dict]:
        filter_expression = Attr('vendor_id').eq(vendor_id) if vendor_id else None
        return Restaurant._query_partition(keys_structure.restaurants_pk, filter_expression)

    @property
    def board_config(self) -> Dict:
        return BoardTemplate.config_for(self.vendor_id, self.board_template_id)

    def is_open_at(self, moment: datetime = None) -> bool:
        return is_open_at(self.opening_hours, moment or datetime.now())

    def get_menu(self) -> List[Dict]:
        """
        Assigned menu templates in the assigned order, templates deleted in the meantime are skipped
        """
        items_by_id = MenuItemTemplate.items_by_id(self.vendor_id)
        menus = []
        for menu_template_id in self.assigned_menu_template_ids or []:
            try:
                menus.append(MenuTemplate.init_by_id(self.vendor_id, menu_template_id).resolve(items_by_id))
            except exceptions.RecordNotFound:
                logger.warning(f'get_menu ::: {menu_template_id=} assigned to restaurant {self.id_} not found')
        return menus

    def validate_references(self):
        if self.board_template_id:
            try:
                BoardTemplate.init_by_id(self.vendor_id, self.board_template_id)
            except exceptions.RecordNotFound:
                raise exceptions.ValidationException(f'board template {self.board_template_id} not found')
        for menu_template_id in self.assigned_menu_template_ids or []:
            try:
                MenuTemplate.init_by_id(self.vendor_id, menu_template_id)
            except exceptions.RecordNotFound:
                raise exceptions.ValidationException(f'menu template {menu_template_id} not found')

    @staticmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_get_all(request) -> Response:
        vendor_id = (request.query_params or {}).get('vendor_id')
        restaurants: List[Dict] = [Restaurant.init_by_db_record(record)._to_ui() for record in
                                   Restaurant.list_records(vendor_id)]
        logger.info(f"endpoint_get_all ::: returning restaurants={[rest['id'] for rest in restaurants]}")
        return Response(status_code=http200, body=restaurants)

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_get_by_id(self) -> Response:
        self._fill_from_db()
        return Response(status_code=http200, body=self._to_ui())

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_get_menu(self) -> Response:
        self._fill_from_db()
        return Response(status_code=http200, body={'restaurant_id': self.id_, 'menus': self.get_menu()})

    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_get_board(self) -> Response:
        self._fill_from_db()
        return Response(status_code=http200, body={
            'restaurant_id': self.id_,
            'board_template_id': self.board_template_id,
            'config': self.board_config
        })

    @staticmethod
    @utils_app.request_exception_handler
    @utils_app.log_start_finish
    def endpoint_get_home(request) -> Response:
        """
        Home page: videos of all restaurants and restaurants split into linked to the user and others
        Guests pass their linked restaurants in the query string
        """
        auth_result = utils_auth.get_optional_auth_result(request)
        if auth_result is not None:
            linked_ids = auth_result.get('linked_restaurant_ids') or []
        else:
            linked_ids = [i for i in (request.query_params or {}).get('linked_restaurant_ids', '').split(',') if i]

        restaurants = [Restaurant.init_by_db_record(record)._to_ui() for record in Restaurant.list_records()]
        featured_media = [
            {**item, 'restaurant_id': restaurant['id'], 'restaurant_name': restaurant['name']}
            for restaurant in restaurants
            for item in restaurant['media'] if item.get('type') == MEDIA_TYPE_VIDEO
        ]
        return Response(status_code=http200, body={
            'featured_media': featured_media,
            'linked_restaurants': [r for r in restaurants if r['id'] in linked_ids],
            'other_restaurants': [r for r in restaurants if r['id'] not in linked_ids]
        })

    @utils_app.request_exception_handler
    @utils_auth.authenticate_class
    @utils_app.log_start_finish
    def endpoint_create(self, request) -> Response:
        utils_auth.require_role(self.auth_result, ROLE_SUPER_ADMIN, ROLE_VENDOR)
        request_body = utils_data.parse_raw_body(request)
        request_body.pop('id_', None)
        vendor_id = utils_auth.resolve_vendor_id(self.auth_result, request_body.get('vendor_id'))
        utils_db.get_db_item(keys_structure.vendors_pk, keys_structure.vendors_sk.format(vendor_id=vendor_id))
        self._reinit(str(uuid4()), **{
            'contact': deepcopy(DEFAULT_CONTACT),
            'opening_hours': deepcopy(DEFAULT_OPENING_HOURS),
            'payment_methods': list(DEFAULT_PAYMENT_METHODS),
            'branding': deepcopy(DEFAULT_BRANDING),
            'media': [],
            'assigned_menu_template_ids': [],
            **request_body,
            'vendor_id': vendor_id
        })
        self.request_data = {'auth_result': self.auth_result}
        self.updated_by = self.auth_result['user_id']
        self.validate_references()
        self._create_db_record()
        return Response(status_code=http200, body={'message': 'Restaurant successfully created',
                                                   'id': self.id_, 'restaurant': self._to_ui()})

    @utils_app.request_exception_handler
    @utils_auth.authenticate_class
    @utils_app.log_start_finish
    def endpoint_update(self, request) -> Response:
        request_body = utils_data.parse_raw_body(request)
        self._fill_from_db()
        utils_auth.check_restaurant_access(self.auth_result, self._to_dict(), permission=PERMISSION_MANAGE_SETTINGS)
        if request_body.get('vendor_id', self.vendor_id) != self.vendor_id:
            raise exceptions.ValidationException('vendor_id of a restaurant can not be changed')
        request_body.pop('vendor_id', None)
        request_body.pop('id_', None)

        update = Restaurant(self.id_, vendor_id=self.vendor_id, **request_body)
        update.request_data = self.request_data
        update.validate_references()
        update._update_db_record(allowed_attrs_to_delete=[
            'description', 'banner_url', 'media', 'board_template_id', 'assigned_menu_template_ids'
        ])
        self._fill_from_db()
        return Response(status_code=http200, body={'message': 'Restaurant was successfully updated',
                                                   'id': self.id_, 'restaurant': self._to_ui()})

    @utils_app.request_exception_handler
    @utils_auth.authenticate_class
    @utils_app.log_start_finish
    def endpoint_delete(self, request) -> Response:
        utils_auth.require_role(self.auth_result, ROLE_SUPER_ADMIN, ROLE_VENDOR)
        self._fill_from_db()
        utils_auth.check_restaurant_access(self.auth_result, self._to_dict())
        self.delete()
        return Response(status_code=http200, body={'message': 'Restaurant was deleted successfully', 'id': self.id_})

    def delete(self):
        utils_db.delete_partition(keys_structure.orders_pk.format(restaurant_id=self.id_))
        self._delete_db_record()

    @utils_app.request_exception_handler
    @utils_auth.authenticate_class
    @utils_app.log_start_finish
    def endpoint_push_notification(self, request) -> Response:
        utils_auth.require_role(self.auth_result, ROLE_VENDOR, ROLE_RESTAURANT_ADMIN)
        message = (utils_data.parse_raw_body(request).get('message') or '').strip()
        if not message:
            raise exceptions.MandatoryFieldsAreNotFilled('message is mandatory')
        self._fill_from_db()
        utils_auth.check_restaurant_access(self.auth_result, self._to_dict(), allow_super_admin=False)
        notification = self.push_notification_text(message)
        message_id = utils_notifications.publish_sns(
            utils_notifications.push_notifications_topic(),
            notification,
            attributes={'restaurant_id': self.id_}
        )
        return Response(status_code=http200, body={'message': 'Notification was sent',
                                                   'notification': notification, 'message_id': message_id})

    def push_notification_text(self, message: str) -> str:
        return f'📢 [{self.name}]: {message}'

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(restaurant_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'vendor_id': self.vendor_id,
            'name': self.name,
            'description': self.description,
            'banner_url': self.banner_url,
            'contact': self.contact,
            'opening_hours': self.opening_hours,
            'payment_methods': self.payment_methods,
            'branding': self.branding,
            'media': self.media,
            'board_template_id': self.board_template_id,
            'assigned_menu_template_ids': self.assigned_menu_template_ids,
            "date_created": self.date_created,
            "date_updated": self.date_updated,
            'updated_by': self.updated_by
        }

    def _to_ui(self):
        item = super()._to_ui()
        item['media'] = item.get('media') or []
        item['assigned_menu_template_ids'] = item.get('assigned_menu_template_ids') or []
        item['is_open'] = self.is_open_at() if self.opening_hours else False
        return item


def get_restaurant_record(restaurant_id: str) -> Optional[Dict]:
    try:
        return utils_db.get_db_item(keys_structure.restaurants_pk,
                                    keys_structure.restaurants_sk.format(restaurant_id=restaurant_id))
    except exceptions.RecordNotFound:
        return None
