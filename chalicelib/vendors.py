from typing import Tuple, List, Dict
from uuid import uuid4

from boto3.dynamodb.conditions import Attr
from chalice import Response

from chalicelib.base_class_entity import EntityBase, now_iso
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import ROLE_SUPER_ADMIN, ROLE_VENDOR
from chalicelib.constants.status_codes import http200
from chalicelib.restaurants import Restaurant
from chalicelib.users import User
from chalicelib.utils import auth as utils_auth, app as utils_app, data as utils_data, db as utils_db, \
    cognito as utils_cognito, exceptions
from chalicelib.utils.logger import logger


class Vendor(EntityBase):
    pk = keys_structure.vendors_pk
    sk = keys_structure.vendors_sk

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'date_created': lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'name_': lambda x: isinstance(x, str) and len(x.strip()) > 0,
        'date_updated': lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'updated_by': lambda x: isinstance(x, str)
    }

    def __init__(self, id_, **kwargs):
        EntityBase.__init__(self, id_)

        self.name: str = kwargs.get('name', kwargs.get('name_'))
        self.date_created: str = kwargs.get('date_created') or now_iso()
        self.date_updated: str = kwargs.get('date_updated') or now_iso()
        self.updated_by: str = kwargs.get('updated_by')
        self.record_type = 'vendor'

    @classmethod
    def init_by_id(cls, id_):
        c = cls(id_)
        c._fill_from_db()
        return c

    @staticmethod
    def list_records() -> List[Dict]:
        return Vendor._query_partition(keys_structure.vendors_pk)

    @staticmethod
    @utils_app.request_exception_handler
    @utils_auth.authenticate
    @utils_app.log_start_finish
    def endpoint_get_all(request) -> Response:
        auth_result = request.auth_result
        utils_auth.require_role(auth_result, ROLE_SUPER_ADMIN, ROLE_VENDOR)
        if auth_result['role'] == ROLE_SUPER_ADMIN:
            vendors = [Vendor.init_by_db_record(record)._to_ui() for record in Vendor.list_records()]
        else:
            vendors = [Vendor.init_by_id(auth_result['vendor_id'])._to_ui()]
        return Response(status_code=http200, body=vendors)

    @utils_app.request_exception_handler
    @utils_auth.authenticate_class
    @utils_app.log_start_finish
    def endpoint_get_by_id(self, request) -> Response:
        utils_auth.check_vendor_access(self.auth_result, self.id_)
        self._fill_from_db()
        return Response(status_code=http200, body=self._to_ui())

    @utils_app.request_exception_handler
    @utils_auth.authenticate_class
    @utils_app.log_start_finish
    def endpoint_create(self, request) -> Response:
        """
        Vendor is created together with its admin account
        """
        utils_auth.require_role(self.auth_result, ROLE_SUPER_ADMIN)
        request_body = utils_data.parse_raw_body(request)
        for field in ('name', 'admin_username', 'admin_password'):
            if not request_body.get(field):
                raise exceptions.MandatoryFieldsAreNotFilled(f'{field} is mandatory')
        self.id_ = str(uuid4())
        self.name = request_body['name']
        self.updated_by = self.auth_result['user_id']
        self._create_db_record()
        try:
            admin_id = utils_cognito.create_auth_user(request_body['admin_username'], request_body['admin_password'])
        except Exception:
            logger.warning(f'endpoint_create ::: admin of vendor {self.id_} was not created, removing the vendor')
            self._delete_db_record()
            raise
        admin = User.create_profile(
            admin_id,
            username=request_body['admin_username'],
            name=f'{self.name} Admin',
            role=ROLE_VENDOR,
            vendor_id=self.id_
        )
        return Response(status_code=http200, body={'message': 'Vendor successfully created', 'id': self.id_,
                                                   'vendor': self._to_ui(), 'admin': admin._to_ui()})

    @utils_app.request_exception_handler
    @utils_auth.authenticate_class
    @utils_app.log_start_finish
    def endpoint_update(self, request) -> Response:
        utils_auth.require_role(self.auth_result, ROLE_SUPER_ADMIN)
        request_body = utils_data.parse_raw_body(request)
        self._fill_from_db()
        self.name = request_body.get('name', self.name)
        self._update_db_record()
        return Response(status_code=http200, body={'message': 'Vendor was successfully updated',
                                                   'id': self.id_, 'vendor': self._to_ui()})

    @utils_app.request_exception_handler
    @utils_auth.authenticate_class
    @utils_app.log_start_finish
    def endpoint_delete(self, request) -> Response:
        utils_auth.require_role(self.auth_result, ROLE_SUPER_ADMIN)
        self._fill_from_db()
        deleted = self.delete()
        return Response(status_code=http200, body={'message': 'Vendor was deleted successfully',
                                                   'id': self.id_, 'deleted': deleted})

    def delete(self) -> Dict[str, int]:
        """
        Removes the vendor with its restaurants (and their orders), users and templates
        """
        restaurants = Restaurant.list_records(self.id_)
        for record in restaurants:
            Restaurant.init_by_db_record(record).delete()
        users = User.list_records(Attr('vendor_id').eq(self.id_))
        for record in users:
            User.init_by_db_record(record).delete()
        deleted = {
            'restaurants': len(restaurants),
            'users': len(users),
            'board_templates': len(utils_db.delete_partition(
                keys_structure.board_templates_pk.format(vendor_id=self.id_))),
            'menu_templates': len(utils_db.delete_partition(
                keys_structure.menu_templates_pk.format(vendor_id=self.id_))),
            'menu_item_templates': len(utils_db.delete_partition(
                keys_structure.menu_item_templates_pk.format(vendor_id=self.id_)))
        }
        self._delete_db_record()
        logger.info(f'delete ::: vendor {self.id_} deleted with {deleted=}')
        return deleted

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(vendor_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'name': self.name,
            'date_created': self.date_created,
            'date_updated': self.date_updated,
            'updated_by': self.updated_by
        }
