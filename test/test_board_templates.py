from copy import deepcopy

import pytest

from chalicelib import board_templates
from chalicelib.board_templates import BoardTemplate
from chalicelib.constants.constants import ROLE_SUPER_ADMIN, ROLE_VENDOR, ROLE_RESTAURANT_ADMIN
from chalicelib.constants.db_structure import DEFAULT_BOARD_CONFIG
from chalicelib.constants.status_codes import http200, http400, http403, http404
from chalicelib.utils import exceptions
from test.utils.regression_test_data import put, put_user, get_vendor_record, get_board_record
from test.utils.request_utils import make_request, body_of

from test.utils.fixtures import chalice_gateway


def config():
    return deepcopy(DEFAULT_BOARD_CONFIG)


def test_default_config_is_valid():
    assert board_templates.validate_board_config(config()) == DEFAULT_BOARD_CONFIG


@pytest.mark.parametrize('broken', [
    lambda c: c.update({'statuses': []}),
    lambda c: c['statuses'].append({'id': 'pending', 'label': 'Again'}),
    lambda c: c['status_transitions'].update({'unknown': ['accepted']}),
    lambda c: c['status_transitions'].update({'pending': ['teleported']}),
    lambda c: c['status_transitions'].update({'accepted': ['accepted']}),
    lambda c: c['columns'][1]['status_ids'].append('pending'),
    lambda c: c['columns'][0]['status_ids'].append('lost'),
    lambda c: c['rejection_reasons'].append({'message': 'no id'}),
])
def test_invalid_config_is_rejected(broken):
    broken_config = config()
    broken(broken_config)
    with pytest.raises(exceptions.ValidationException):
        board_templates.validate_board_config(broken_config)


def test_initial_status_and_labels():
    assert board_templates.initial_status(config()) == 'pending'
    assert board_templates.status_label(config(), 'ready-for-pickup') == 'Ready for Pickup'
    assert board_templates.status_label(config(), 'unknown') == 'unknown'
    assert board_templates.is_terminal(config(), 'completed')
    assert not board_templates.is_terminal(config(), 'pending')


def test_transitions():
    board_templates.check_transition(config(), 'pending', 'accepted')
    board_templates.check_transition(config(), 'pending', 'rejected')
    with pytest.raises(exceptions.InvalidStatusTransition):
        board_templates.check_transition(config(), 'pending', 'completed')
    with pytest.raises(exceptions.InvalidStatusTransition):
        board_templates.check_transition(config(), 'completed', 'pending')
    with pytest.raises(exceptions.InvalidStatusTransition):
        board_templates.check_transition(config(), 'pending', 'lost')


def test_rejection_reason_id_is_resolved_to_message():
    assert board_templates.resolve_rejection_reason(config(), 'reason-2') == 'One or more items are out of stock.'
    assert board_templates.resolve_rejection_reason(config(), 'We are closed') == 'We are closed'
    assert board_templates.resolve_rejection_reason(config(), None) is None


def test_orders_grouped_by_columns_newest_first():
    orders = [
        {'id': 'a', 'status': 'pending', 'order_time': '2024-05-01T10:00:00'},
        {'id': 'b', 'status': 'accepted', 'order_time': '2024-05-01T10:05:00'},
        {'id': 'c', 'status': 'in-progress', 'order_time': '2024-05-01T10:10:00'},
        {'id': 'd', 'status': 'completed', 'order_time': '2024-05-01T10:15:00'},
    ]
    columns = board_templates.group_orders_by_columns(config(), orders)
    assert [column['id'] for column in columns] == ['col-1', 'col-2', 'col-3']
    assert [order['id'] for order in columns[0]['orders']] == ['a']
    assert [order['id'] for order in columns[1]['orders']] == ['c', 'b']
    assert columns[2]['orders'] == []


def test_missing_template_falls_back_to_default_board():
    vendor_id = put(get_vendor_record())
    assert BoardTemplate.config_for(vendor_id, 'deleted-template') == DEFAULT_BOARD_CONFIG
    assert BoardTemplate.config_for(vendor_id, None) == DEFAULT_BOARD_CONFIG


def test_vendor_creates_and_lists_board_templates(chalice_gateway):
    vendor_id = put(get_vendor_record())
    _, token = put_user(ROLE_VENDOR, vendor_id=vendor_id)
    custom = config()
    custom['statuses'].insert(0, {'id': 'received', 'label': 'Received', 'color': '#000000'})
    custom['status_transitions']['received'] = ['pending']

    response = make_request(chalice_gateway, endpoint='/board-templates', method='POST',
                            json_body={'name': 'Kitchen flow', 'config': custom}, token=token)
    assert response['statusCode'] == http200, response['body']
    created = body_of(response)['board_template']
    assert created['vendor_id'] == vendor_id
    assert created['config']['statuses'][0]['id'] == 'received'

    response = make_request(chalice_gateway, endpoint='/board-templates', token=token)
    assert response['statusCode'] == http200
    assert [template['id'] for template in body_of(response)] == [created['id']]


def test_board_template_with_invalid_config_is_not_created(chalice_gateway):
    vendor_id = put(get_vendor_record())
    _, token = put_user(ROLE_VENDOR, vendor_id=vendor_id)
    broken = config()
    broken['status_transitions']['pending'] = ['nowhere']
    response = make_request(chalice_gateway, endpoint='/board-templates', method='POST',
                            json_body={'name': 'Broken', 'config': broken}, token=token)
    assert response['statusCode'] == http400


def test_super_admin_has_to_pass_vendor(chalice_gateway):
    vendor_id = put(get_vendor_record())
    _, token = put_user(ROLE_SUPER_ADMIN)
    response = make_request(chalice_gateway, endpoint='/board-templates', token=token)
    assert response['statusCode'] == http400
    response = make_request(chalice_gateway, endpoint='/board-templates', query=f'vendor_id={vendor_id}', token=token)
    assert response['statusCode'] == http200


def test_restaurant_admin_can_not_manage_board_templates(chalice_gateway):
    vendor_id = put(get_vendor_record())
    _, token = put_user(ROLE_RESTAURANT_ADMIN, vendor_id=vendor_id)
    response = make_request(chalice_gateway, endpoint='/board-templates', token=token)
    assert response['statusCode'] == http403


def test_update_and_delete_board_template(chalice_gateway):
    vendor_id = put(get_vendor_record())
    board_id = put(get_board_record(vendor_id))
    _, token = put_user(ROLE_VENDOR, vendor_id=vendor_id)

    response = make_request(chalice_gateway, endpoint=f'/board-templates/{board_id}', method='PUT',
                            json_body={'name': 'Renamed'}, token=token)
    assert response['statusCode'] == http200, response['body']
    assert body_of(response)['board_template']['name'] == 'Renamed'

    broken = config()
    broken['columns'][0]['status_ids'] = ['pending', 'accepted']
    response = make_request(chalice_gateway, endpoint=f'/board-templates/{board_id}', method='PUT',
                            json_body={'config': broken}, token=token)
    assert response['statusCode'] == http400

    response = make_request(chalice_gateway, endpoint=f'/board-templates/{board_id}', method='DELETE', token=token)
    assert response['statusCode'] == http200
    response = make_request(chalice_gateway, endpoint=f'/board-templates/{board_id}', method='DELETE', token=token)
    assert response['statusCode'] == http404


def test_vendor_can_not_touch_foreign_board_template(chalice_gateway):
    foreign_vendor_id = put(get_vendor_record('Pizza Palace Inc.'))
    board_id = put(get_board_record(foreign_vendor_id))
    vendor_id = put(get_vendor_record())
    _, token = put_user(ROLE_VENDOR, vendor_id=vendor_id)
    response = make_request(chalice_gateway, endpoint=f'/board-templates/{board_id}', method='PUT',
                            query=f'vendor_id={foreign_vendor_id}', json_body={'name': 'Mine'}, token=token)
    assert response['statusCode'] == http403
