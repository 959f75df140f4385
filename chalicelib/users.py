from typing import Tuple, List, Dict

from boto3.dynamodb.conditions import Attr
from chalice import Response

from chalicelib.base_class_entity import EntityBase, now_iso
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import ALL_ROLES, ALL_PERMISSIONS, WEEKDAYS, ROLE_SUPER_ADMIN, ROLE_VENDOR, \
    ROLE_RESTAURANT_ADMIN, SELF_DELETION_MESSAGE
from chalicelib.constants.db_structure import DEFAULT_RESTAURANT_ADMIN_PERMISSIONS
from chalicelib.constants.status_codes import http200
from chalicelib.restaurants import Restaurant
from chalicelib.utils import auth as utils_auth, app as utils_app, data as utils_data, cognito as utils_cognito, \
    exceptions
from chalicelib.utils.logger import logger


def is_valid_permissions(permissions) -> bool:
    return isinstance(permissions, dict) and \
        all(key in ALL_PERMISSIONS and isinstance(value, bool) for key, value in permissions.items())


def is_valid_permission_schedule(schedule) -> bool:
    if not isinstance(schedule, dict):
        return False
    for day, day_schedule in schedule.items():
        if day not in WEEKDAYS or not isinstance(day_schedule, dict):
            return False
        if not isinstance(day_schedule.get('is_active'), bool):
            return False
        if not all(utils_data.is_time_string(day_schedule.get(key)) for key in ('start_time', 'end_time')):
            return False
    return True


class User(EntityBase):
    pk = keys_structure.users_pk
    sk = keys_structure.users_sk

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str) and len(x) > 0,
        'username': lambda x: isinstance(x, str) and len(x.strip()) > 0,
        'date_created': lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'name_': lambda x: isinstance(x, str) and len(x.strip()) > 0,
        'role': lambda x: x in ALL_ROLES,
        'date_updated': lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'vendor_id': lambda x: isinstance(x, str),
        'restaurant_id': lambda x: isinstance(x, str),
        'permissions': is_valid_permissions,
        'permission_schedule': is_valid_permission_schedule,
        'linked_restaurant_ids': lambda x: isinstance(x, list) and all(isinstance(i, str) for i in x),
        'updated_by': lambda x: isinstance(x, str)
    }

    def __init__(self, id_, **kwargs):
        EntityBase.__init__(self, id_)

        self.name: str = kwargs.get('name', kwargs.get('name_'))
        self.username: str = kwargs.get('username')
        self.role: str = kwargs.get('role')
        self.vendor_id: str = kwargs.get('vendor_id')
        self.restaurant_id: str = kwargs.get('restaurant_id')
        self.permissions: Dict = kwargs.get('permissions')
        self.permission_schedule: Dict = kwargs.get('permission_schedule')
        self.linked_restaurant_ids: List = kwargs.get('linked_restaurant_ids')
        self.date_created: str = kwargs.get('date_created')
        self.date_updated: str = kwargs.get('date_updated')
        self.updated_by: str = kwargs.get('updated_by')
        self.record_type = 'user'

    @classmethod
    def init_by_id(cls, id_):
        c = cls(id_)
        c._fill_from_db()
        return c

    @classmethod
    def create_profile(cls, id_, username, name, role, **kwargs) -> 'User':
        """
        Creates user profile for an existing identity
        """
        date_created = now_iso()
        c = cls(id_, username=username, name=name, role=role, date_created=date_created,
                date_updated=date_created, **kwargs)
        c._create_db_record()
        return c

    @staticmethod
    def list_records(filter_expression=None) -> List[Dict]:
        return User._query_partition(keys_structure.users_pk, filter_expression)

    @utils_app.request_exception_handler
    @utils_auth.authenticate_class
    @utils_app.log_start_finish
    def endpoint_get_me(self, request) -> Response:
        self.id_ = self.auth_result['user_id']
        self._fill_from_db()
        return Response(status_code=http200, body=self._to_ui())

    @utils_app.request_exception_handler
    @utils_auth.authenticate_class
    @utils_app.log_start_finish
    def endpoint_update_me(self, request) -> Response:
        request_body = utils_data.parse_raw_body(request)
        self.id_ = self.auth_result['user_id']
        self.name = request_body.get('name')
        self.linked_restaurant_ids = request_body.get('linked_restaurant_ids')
        self._update_db_record(allowed_attrs_to_delete=['linked_restaurant_ids'])
        self._fill_from_db()
        return Response(status_code=http200, body=self._to_ui())

    @staticmethod
    @utils_app.request_exception_handler
    @utils_auth.authenticate
    @utils_app.log_start_finish
    def endpoint_get_users(request) -> Response:
        auth_result = request.auth_result
        utils_auth.require_role(auth_result, ROLE_SUPER_ADMIN, ROLE_VENDOR)
        if auth_result['role'] == ROLE_SUPER_ADMIN:
            records = User.list_records()
        else:
            records = User.list_records(Attr('vendor_id').eq(auth_result['vendor_id']))
        users: List[Dict] = [User.init_by_db_record(record)._to_ui() for record in records]
        logger.info(f"endpoint_get_users ::: returning users={[user['id'] for user in users]}")
        return Response(status_code=http200, body=users)

    @utils_app.request_exception_handler
    @utils_auth.authenticate_class
    @utils_app.log_start_finish
    def endpoint_create_restaurant_admin(self, request) -> Response:
        utils_auth.require_role(self.auth_result, ROLE_SUPER_ADMIN, ROLE_VENDOR)
        request_body = utils_data.parse_raw_body(request)
        for field in ('name', 'username', 'password', 'restaurant_id'):
            if not request_body.get(field):
                raise exceptions.MandatoryFieldsAreNotFilled(f'{field} is mandatory')
        restaurant = Restaurant.init_by_id(request_body['restaurant_id'])
        utils_auth.check_vendor_access(self.auth_result, restaurant.vendor_id)
        if not isinstance(request_body.get('permissions', {}), dict):
            self.raise_validation_error('permissions', request_body.get('permissions'))
        permissions = {**DEFAULT_RESTAURANT_ADMIN_PERMISSIONS, **request_body.get('permissions', {})}
        if not is_valid_permissions(permissions):
            self.raise_validation_error('permissions', permissions)
        if request_body.get('permission_schedule') is not None and \
                not is_valid_permission_schedule(request_body['permission_schedule']):
            self.raise_validation_error('permission_schedule', request_body['permission_schedule'])

        user_id = utils_cognito.create_auth_user(request_body['username'], request_body['password'])
        user = User.create_profile(
            user_id,
            username=request_body['username'],
            name=request_body['name'],
            role=ROLE_RESTAURANT_ADMIN,
            vendor_id=restaurant.vendor_id,
            restaurant_id=restaurant.id_,
            permissions=permissions,
            permission_schedule=request_body.get('permission_schedule')
        )
        return Response(status_code=http200, body={'message': 'Restaurant admin successfully created',
                                                   'id': user.id_, 'user': user._to_ui()})

    @utils_app.request_exception_handler
    @utils_auth.authenticate_class
    @utils_app.log_start_finish
    def endpoint_update_user(self, request) -> Response:
        utils_auth.require_role(self.auth_result, ROLE_SUPER_ADMIN, ROLE_VENDOR)
        request_body = utils_data.parse_raw_body(request)
        request_body.pop('password', None)
        self._fill_from_db()
        self._check_manage_access()
        new_role = request_body.get('role')
        if new_role is not None and new_role != self.role and self.auth_result['role'] != ROLE_SUPER_ADMIN and \
                new_role not in (ROLE_VENDOR, ROLE_RESTAURANT_ADMIN):
            raise exceptions.AccessDenied(f'Vendor is not allowed to assign {new_role=}')
        if request_body.get('restaurant_id'):
            restaurant = Restaurant.init_by_id(request_body['restaurant_id'])
            if self.vendor_id and restaurant.vendor_id != self.vendor_id:
                raise exceptions.ValidationException('Restaurant belongs to another vendor')

        update = User(self.id_)
        update.request_data = self.request_data
        update.name = request_body.get('name')
        update.role = new_role
        update.restaurant_id = request_body.get('restaurant_id')
        update.permissions = request_body.get('permissions')
        update.permission_schedule = request_body.get('permission_schedule')
        update.linked_restaurant_ids = request_body.get('linked_restaurant_ids')
        update._update_db_record(allowed_attrs_to_delete=['permission_schedule', 'linked_restaurant_ids'])
        self._fill_from_db()
        return Response(status_code=http200, body={'message': 'User was successfully updated',
                                                   'id': self.id_, 'user': self._to_ui()})

    @utils_app.request_exception_handler
    @utils_auth.authenticate_class
    @utils_app.log_start_finish
    def endpoint_delete_user(self, request) -> Response:
        utils_auth.require_role(self.auth_result, ROLE_SUPER_ADMIN, ROLE_VENDOR)
        if self.id_ == self.auth_result['user_id']:
            raise exceptions.ValidationException(SELF_DELETION_MESSAGE)
        self._fill_from_db()
        self._check_manage_access()
        self.delete()
        return Response(status_code=http200, body={'message': 'User was deleted successfully', 'id': self.id_})

    def delete(self):
        if self.username:
            utils_cognito.delete_auth_user(self.username)
        self._delete_db_record()

    def _check_manage_access(self):
        if self.auth_result['role'] == ROLE_SUPER_ADMIN:
            return
        if self.role == ROLE_SUPER_ADMIN or self.vendor_id != self.auth_result.get('vendor_id'):
            raise exceptions.AccessDenied(f'user {self.auth_result["user_id"]} can not manage user {self.id_}')

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(user_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'name': self.name,
            'username': self.username,
            'role': self.role,
            'vendor_id': self.vendor_id,
            'restaurant_id': self.restaurant_id,
            'permissions': self.permissions,
            'permission_schedule': self.permission_schedule,
            'linked_restaurant_ids': self.linked_restaurant_ids,
            'date_created': self.date_created,
            'date_updated': self.date_updated,
            'updated_by': self.updated_by
        }

    def _to_ui(self):
        item = super()._to_ui()
        item['linked_restaurant_ids'] = item.get('linked_restaurant_ids') or []
        item.pop('updated_by', None)
        return item
