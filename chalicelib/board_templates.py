from copy import deepcopy
from typing import Tuple, List, Dict, Optional
from uuid import uuid4

from chalice import Response

from chalicelib.base_class_entity import EntityBase, now_iso
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import ROLE_SUPER_ADMIN, ROLE_VENDOR
from chalicelib.constants.db_structure import DEFAULT_BOARD_CONFIG
from chalicelib.constants.status_codes import http200
from chalicelib.utils import auth as utils_auth, app as utils_app, data as utils_data, exceptions
from chalicelib.utils.logger import logger


# Workflow rules

def _ids(items: List[Dict], entity: str) -> List[str]:
    ids = []
    for item in items:
        if not isinstance(item, dict) or not isinstance(item.get('id'), str) or not item['id']:
            raise exceptions.ValidationException(f'every {entity} must have a string id')
        if item['id'] in ids:
            raise exceptions.ValidationException(f"{entity} id {item['id']} is duplicated")
        ids.append(item['id'])
    return ids


def validate_board_config(config: Dict) -> Dict:
    if not isinstance(config, dict):
        raise exceptions.ValidationException('board config must be an object')

    statuses = config.get('statuses')
    if not isinstance(statuses, list) or not statuses:
        raise exceptions.ValidationException('board config must declare at least one status')
    status_ids = _ids(statuses, 'status')
    for status in statuses:
        if not isinstance(status.get('label'), str):
            raise exceptions.ValidationException(f"status {status['id']} must have a label")

    transitions = config.get('status_transitions', {})
    if not isinstance(transitions, dict):
        raise exceptions.ValidationException('status_transitions must be an object')
    for status, next_statuses in transitions.items():
        if status not in status_ids:
            raise exceptions.ValidationException(f'transition from unknown status {status}')
        if not isinstance(next_statuses, list):
            raise exceptions.ValidationException(f'transitions of {status} must be a list')
        for next_status in next_statuses:
            if next_status not in status_ids:
                raise exceptions.ValidationException(f'transition {status} -> {next_status} targets unknown status')
            if next_status == status:
                raise exceptions.ValidationException(f'status {status} can not transition to itself')

    columns = config.get('columns', [])
    if not isinstance(columns, list):
        raise exceptions.ValidationException('columns must be a list')
    _ids(columns, 'column')
    shown_statuses = []
    for column in columns:
        for status in column.get('status_ids', []):
            if status not in status_ids:
                raise exceptions.ValidationException(f"column {column['id']} shows unknown status {status}")
            if status in shown_statuses:
                raise exceptions.ValidationException(f'status {status} is shown in more than one column')
            shown_statuses.append(status)

    reasons = config.get('rejection_reasons', [])
    if not isinstance(reasons, list):
        raise exceptions.ValidationException('rejection_reasons must be a list')
    _ids(reasons, 'rejection reason')

    return config


def initial_status(config: Dict) -> str:
    return config['statuses'][0]['id']


def status_label(config: Dict, status: str) -> str:
    for item in config.get('statuses', []):
        if item['id'] == status:
            return item.get('label', status)
    return status


def allowed_transitions(config: Dict, status: str) -> List[str]:
    return list(config.get('status_transitions', {}).get(status, []))


def is_terminal(config: Dict, status: str) -> bool:
    return not allowed_transitions(config, status)


def check_transition(config: Dict, current_status: str, new_status: str):
    if new_status not in allowed_transitions(config, current_status):
        raise exceptions.InvalidStatusTransition(
            f'order in status {current_status} can not be moved to {new_status}, '
            f'allowed: {allowed_transitions(config, current_status)}')


def resolve_rejection_reason(config: Dict, reason: Optional[str]) -> Optional[str]:
    """
    Reason id is replaced with its message, free text is kept as is
    """
    if reason is None:
        return None
    for item in config.get('rejection_reasons', []):
        if item['id'] == reason:
            return item['message']
    return reason


def group_orders_by_columns(config: Dict, orders: List[Dict]) -> List[Dict]:
    orders = sorted(orders, key=lambda order: order.get('order_time') or '', reverse=True)
    board = []
    for column in config.get('columns', []):
        column_statuses = column.get('status_ids', [])
        board.append({
            **column,
            'orders': [order for order in orders if order.get('status') in column_statuses]
        })
    return board


class BoardTemplate(EntityBase):
    pk = keys_structure.board_templates_pk
    sk = keys_structure.board_templates_sk

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, str),
        'vendor_id': lambda x: isinstance(x, str) and len(x) > 0,
        'date_created': lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'name_': lambda x: isinstance(x, str) and len(x.strip()) > 0,
        'config': lambda x: isinstance(x, dict),
        'date_updated': lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'updated_by': lambda x: isinstance(x, str)
    }

    def __init__(self, id_, vendor_id=None, **kwargs):
        EntityBase.__init__(self, id_)

        self.vendor_id: str = vendor_id
        self.name: str = kwargs.get('name', kwargs.get('name_'))
        self.config: Dict = kwargs.get('config')
        self.date_created: str = kwargs.get('date_created') or now_iso()
        self.date_updated: str = kwargs.get('date_updated') or now_iso()
        self.updated_by: str = kwargs.get('updated_by')
        self.record_type = 'board_template'

    @classmethod
    def init_by_id(cls, vendor_id, id_):
        c = cls(id_, vendor_id)
        c._fill_from_db()
        return c

    @classmethod
    def config_for(cls, vendor_id, board_template_id) -> Dict:
        """
        Effective workflow of a restaurant, default one if the template is not assigned or was deleted
        """
        if vendor_id and board_template_id:
            try:
                return cls.init_by_id(vendor_id, board_template_id).config
            except exceptions.RecordNotFound:
                logger.warning(f'config_for ::: {board_template_id=} of {vendor_id=} not found, '
                               f'default board is used')
        return deepcopy(DEFAULT_BOARD_CONFIG)

    @staticmethod
    def list_records(vendor_id) -> List[Dict]:
        return BoardTemplate._query_partition(keys_structure.board_templates_pk.format(vendor_id=vendor_id))

    @staticmethod
    @utils_app.request_exception_handler
    @utils_auth.authenticate
    @utils_app.log_start_finish
    def endpoint_get_all(request) -> Response:
        utils_auth.require_role(request.auth_result, ROLE_SUPER_ADMIN, ROLE_VENDOR)
        vendor_id = utils_auth.resolve_vendor_id(request.auth_result, (request.query_params or {}).get('vendor_id'))
        templates = [BoardTemplate.init_by_db_record(record)._to_ui() for record in
                     BoardTemplate.list_records(vendor_id)]
        return Response(status_code=http200, body=templates)

    @utils_app.request_exception_handler
    @utils_auth.authenticate_class
    @utils_app.log_start_finish
    def endpoint_create(self, request) -> Response:
        utils_auth.require_role(self.auth_result, ROLE_SUPER_ADMIN, ROLE_VENDOR)
        request_body = utils_data.parse_raw_body(request)
        self.id_ = str(uuid4())
        self.vendor_id = utils_auth.resolve_vendor_id(self.auth_result, request_body.get('vendor_id'))
        self.name = request_body.get('name')
        self.config = validate_board_config(request_body.get('config', deepcopy(DEFAULT_BOARD_CONFIG)))
        self.updated_by = self.auth_result['user_id']
        self._create_db_record()
        return Response(status_code=http200, body={'message': 'Board template successfully created',
                                                   'id': self.id_, 'board_template': self._to_ui()})

    @utils_app.request_exception_handler
    @utils_auth.authenticate_class
    @utils_app.log_start_finish
    def endpoint_update(self, request) -> Response:
        utils_auth.require_role(self.auth_result, ROLE_SUPER_ADMIN, ROLE_VENDOR)
        request_body = utils_data.parse_raw_body(request)
        self.vendor_id = utils_auth.resolve_vendor_id(self.auth_result, request_body.get('vendor_id') or
                                                      (request.query_params or {}).get('vendor_id'))
        self._fill_from_db()
        self.name = request_body.get('name', self.name)
        if 'config' in request_body:
            self.config = validate_board_config(request_body['config'])
        self._update_db_record()
        return Response(status_code=http200, body={'message': 'Board template was successfully updated',
                                                   'id': self.id_, 'board_template': self._to_ui()})

    @utils_app.request_exception_handler
    @utils_auth.authenticate_class
    @utils_app.log_start_finish
    def endpoint_delete(self, request) -> Response:
        utils_auth.require_role(self.auth_result, ROLE_SUPER_ADMIN, ROLE_VENDOR)
        self.vendor_id = utils_auth.resolve_vendor_id(self.auth_result, (request.query_params or {}).get('vendor_id'))
        self._fill_from_db()
        self._delete_db_record()
        return Response(status_code=http200, body={'message': 'Board template was deleted successfully',
                                                   'id': self.id_})

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk.format(vendor_id=self.vendor_id), self.sk.format(board_template_id=self.id_)

    def _to_dict(self):
        return {
            'id_': self.id_,
            'vendor_id': self.vendor_id,
            'name': self.name,
            'config': self.config,
            'date_created': self.date_created,
            'date_updated': self.date_updated,
            'updated_by': self.updated_by
        }
