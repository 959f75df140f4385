import os
from datetime import datetime

import pytest

from chalicelib.constants import keys_structure
from chalicelib.constants.constants import ROLE_SUPER_ADMIN, ROLE_VENDOR, ROLE_RESTAURANT_ADMIN, ROLE_CONSUMER
from chalicelib.constants.db_structure import DEFAULT_BOARD_CONFIG, DEFAULT_OPENING_HOURS
from chalicelib.constants.status_codes import http200, http400, http403, http404
from chalicelib.restaurants import is_open_at, is_valid_opening_hours
from test.utils.regression_test_data import put, put_user, put_vendor_with_restaurant, get_vendor_record, \
    get_restaurant_record, get_menu_item_record, get_menu_record, get_board_record, get_order_record
from test.utils.request_utils import make_request, body_of

from test.utils.fixtures import chalice_gateway

OPENING_HOURS = {
    'monday': {'is_open': True, 'open': '11:00', 'close': '22:00'},
    'tuesday': {'is_open': True, 'open': '18:00', 'close': '02:00'},
    'wednesday': {'is_open': False, 'open': '11:00', 'close': '22:00'}
}


@pytest.mark.parametrize('moment, expected', [
    (datetime(2024, 5, 6, 10, 59), False),
    (datetime(2024, 5, 6, 11, 0), True),
    (datetime(2024, 5, 6, 21, 59), True),
    (datetime(2024, 5, 6, 22, 0), False),
    (datetime(2024, 5, 7, 23, 30), True),
    (datetime(2024, 5, 7, 12, 0), False),
    (datetime(2024, 5, 8, 12, 0), False),
    (datetime(2024, 5, 9, 12, 0), False),
])
def test_is_open_at(moment, expected):
    assert is_open_at(OPENING_HOURS, moment) is expected


def test_opening_hours_validation():
    assert is_valid_opening_hours(DEFAULT_OPENING_HOURS)
    assert not is_valid_opening_hours({'someday': {'is_open': True, 'open': '10:00', 'close': '12:00'}})
    assert not is_valid_opening_hours({'monday': {'is_open': 'yes', 'open': '10:00', 'close': '12:00'}})
    assert not is_valid_opening_hours({'monday': {'is_open': True, 'open': '25:00', 'close': '12:00'}})
    assert not is_valid_opening_hours([])


def test_vendor_creates_restaurant_with_defaults(chalice_gateway):
    vendor_id = put(get_vendor_record())
    user_id, token = put_user(ROLE_VENDOR, vendor_id=vendor_id)

    response = make_request(chalice_gateway, endpoint='/restaurants', method='POST', token=token,
                            json_body={'name': 'Taco Town', 'description': 'Authentic street tacos.'})
    assert response['statusCode'] == http200, response['body']
    restaurant = body_of(response)['restaurant']
    assert restaurant['vendor_id'] == vendor_id
    assert restaurant['opening_hours'] == DEFAULT_OPENING_HOURS
    assert restaurant['payment_methods'] == ['Credit Card', 'Cash']
    assert restaurant['media'] == []
    assert 'is_open' in restaurant
    assert restaurant['updated_by'] == user_id

    response = make_request(chalice_gateway, endpoint=f"/restaurants/{restaurant['id']}")
    assert response['statusCode'] == http200
    assert body_of(response)['name'] == 'Taco Town'

    response = make_request(chalice_gateway, endpoint='/restaurants', query=f'vendor_id={vendor_id}')
    assert [r['id'] for r in body_of(response)] == [restaurant['id']]


@pytest.mark.parametrize('body', [
    {'name': ''},
    {'name': 'Late Night', 'opening_hours': {'monday': {'is_open': True, 'open': '9', 'close': '17'}}},
    {'name': 'Unknown board', 'board_template_id': 'no-such-board'},
    {'name': 'Unknown menu', 'assigned_menu_template_ids': ['no-such-menu']},
    {'name': 'Bad media', 'media': [{'type': 'hologram', 'source': 'x'}]},
])
def test_invalid_restaurant_is_rejected(chalice_gateway, body):
    vendor_id = put(get_vendor_record())
    _, token = put_user(ROLE_VENDOR, vendor_id=vendor_id)
    response = make_request(chalice_gateway, endpoint='/restaurants', method='POST', token=token, json_body=body)
    assert response['statusCode'] == http400


@pytest.mark.parametrize('body', [
    {'opening_hours': {'monday': {'is_open': 'yes', 'open': '11:00', 'close': '22:00'}}},
    {'opening_hours': {'someday': {'is_open': True, 'open': '11:00', 'close': '22:00'}}},
    {'media': [{'type': 'hologram', 'source': 'x'}]},
    {'payment_methods': 'Cash'},
    {'name': '   '},
])
def test_invalid_restaurant_update_is_rejected(chalice_gateway, body):
    vendor_id, restaurant_id = put_vendor_with_restaurant()
    _, token = put_user(ROLE_VENDOR, vendor_id=vendor_id)

    response = make_request(chalice_gateway, endpoint=f'/restaurants/{restaurant_id}', method='PUT', token=token,
                            json_body=body)
    assert response['statusCode'] == http400
    restaurant = body_of(make_request(chalice_gateway, endpoint=f'/restaurants/{restaurant_id}'))
    assert restaurant['name'] == 'Burger Queen'
    assert restaurant['payment_methods'] == ['Credit Card', 'Cash']
    assert restaurant['media'] == []


def test_super_admin_creates_restaurant_for_vendor(chalice_gateway):
    vendor_id = put(get_vendor_record())
    _, token = put_user(ROLE_SUPER_ADMIN)
    response = make_request(chalice_gateway, endpoint='/restaurants', method='POST', token=token,
                            json_body={'name': 'Pizza Palace'})
    assert response['statusCode'] == http400
    response = make_request(chalice_gateway, endpoint='/restaurants', method='POST', token=token,
                            json_body={'name': 'Pizza Palace', 'vendor_id': vendor_id})
    assert response['statusCode'] == http200, response['body']
    response = make_request(chalice_gateway, endpoint='/restaurants', method='POST', token=token,
                            json_body={'name': 'Pizza Palace', 'vendor_id': 'no-such-vendor'})
    assert response['statusCode'] == http404


def test_consumer_can_not_create_restaurant(chalice_gateway):
    _, token = put_user(ROLE_CONSUMER)
    response = make_request(chalice_gateway, endpoint='/restaurants', method='POST', token=token,
                            json_body={'name': 'Mine'})
    assert response['statusCode'] == http403


def test_restaurant_admin_updates_own_restaurant(chalice_gateway):
    vendor_id, restaurant_id = put_vendor_with_restaurant()
    board_id = put(get_board_record(vendor_id))
    _, token = put_user(ROLE_RESTAURANT_ADMIN, vendor_id=vendor_id, restaurant_id=restaurant_id,
                        permissions={'can_manage_settings': True})

    response = make_request(chalice_gateway, endpoint=f'/restaurants/{restaurant_id}', method='PUT', token=token,
                            json_body={'name': 'Burger Queen Downtown', 'description': '',
                                       'board_template_id': board_id})
    assert response['statusCode'] == http200, response['body']
    restaurant = body_of(response)['restaurant']
    assert restaurant['name'] == 'Burger Queen Downtown'
    assert restaurant['description'] is None
    assert restaurant['board_template_id'] == board_id
    assert restaurant['contact']['phone'] == '555-1234'

    response = make_request(chalice_gateway, endpoint=f'/restaurants/{restaurant_id}', method='PUT', token=token,
                            json_body={'vendor_id': 'another-vendor'})
    assert response['statusCode'] == http400


def test_restaurant_admin_needs_settings_permission(chalice_gateway):
    vendor_id, restaurant_id = put_vendor_with_restaurant()
    _, other_restaurant_id = put_vendor_with_restaurant()
    _, no_permission_token = put_user(ROLE_RESTAURANT_ADMIN, vendor_id=vendor_id, restaurant_id=restaurant_id,
                                      permissions={'can_manage_settings': False})
    _, token = put_user(ROLE_RESTAURANT_ADMIN, vendor_id=vendor_id, restaurant_id=restaurant_id,
                        permissions={'can_manage_settings': True})

    response = make_request(chalice_gateway, endpoint=f'/restaurants/{restaurant_id}', method='PUT',
                            token=no_permission_token, json_body={'name': 'Renamed'})
    assert response['statusCode'] == http403
    response = make_request(chalice_gateway, endpoint=f'/restaurants/{other_restaurant_id}', method='PUT',
                            token=token, json_body={'name': 'Renamed'})
    assert response['statusCode'] == http403
    response = make_request(chalice_gateway, endpoint=f'/restaurants/{restaurant_id}', method='DELETE', token=token)
    assert response['statusCode'] == http403


def test_delete_restaurant_removes_its_orders(chalice_gateway, gen_table):
    vendor_id, restaurant_id = put_vendor_with_restaurant()
    put(get_order_record(restaurant_id, vendor_id, 'pending', [], '12.00'))
    _, token = put_user(ROLE_VENDOR, vendor_id=vendor_id)

    response = make_request(chalice_gateway, endpoint=f'/restaurants/{restaurant_id}', method='DELETE', token=token)
    assert response['statusCode'] == http200
    assert gen_table.records(keys_structure.orders_pk.format(restaurant_id=restaurant_id)) == []
    response = make_request(chalice_gateway, endpoint=f'/restaurants/{restaurant_id}')
    assert response['statusCode'] == http404


def test_vendor_can_not_delete_foreign_restaurant(chalice_gateway):
    _, restaurant_id = put_vendor_with_restaurant()
    _, token = put_user(ROLE_VENDOR, vendor_id=put(get_vendor_record()))
    response = make_request(chalice_gateway, endpoint=f'/restaurants/{restaurant_id}', method='DELETE', token=token)
    assert response['statusCode'] == http403


def test_menu_of_restaurant(chalice_gateway):
    vendor_id = put(get_vendor_record())
    burger_id = put(get_menu_item_record(vendor_id, 'Classic Cheeseburger', '8.99'))
    put_menu = get_menu_record(vendor_id, [{'id': 'sec-1', 'title': 'Burgers', 'item_ids': [burger_id, 'gone']}])
    menu_id = put(put_menu)
    restaurant_id = put(get_restaurant_record(vendor_id, assigned_menu_template_ids=[menu_id, 'deleted-menu']))

    response = make_request(chalice_gateway, endpoint=f'/restaurants/{restaurant_id}/menu')
    assert response['statusCode'] == http200
    menus = body_of(response)['menus']
    assert [menu['id'] for menu in menus] == [menu_id]
    assert [item['name'] for item in menus[0]['sections'][0]['items']] == ['Classic Cheeseburger']
    assert menus[0]['sections'][0]['items'][0]['price'] == 8.99


def test_board_of_restaurant_falls_back_to_default(chalice_gateway):
    vendor_id = put(get_vendor_record())
    restaurant_id = put(get_restaurant_record(vendor_id, board_template_id='deleted-board'))
    response = make_request(chalice_gateway, endpoint=f'/restaurants/{restaurant_id}/board')
    assert response['statusCode'] == http200
    assert body_of(response)['config'] == DEFAULT_BOARD_CONFIG


def test_home_splits_linked_restaurants(chalice_gateway):
    vendor_id = put(get_vendor_record())
    linked_id = put(get_restaurant_record(vendor_id, 'Burger Queen', media=[
        {'type': 'video', 'source': 'https://videos.test/flame.mp4', 'title': 'Flame grill'},
        {'type': 'text', 'source': 'Now with fries'}
    ]))
    other_id = put(get_restaurant_record(vendor_id, 'Pizza Palace'))

    response = make_request(chalice_gateway, endpoint='/home', query=f'linked_restaurant_ids={linked_id}')
    assert response['statusCode'] == http200
    home = body_of(response)
    assert [r['id'] for r in home['linked_restaurants']] == [linked_id]
    assert [r['id'] for r in home['other_restaurants']] == [other_id]
    assert home['featured_media'] == [{'type': 'video', 'source': 'https://videos.test/flame.mp4',
                                       'title': 'Flame grill', 'restaurant_id': linked_id,
                                       'restaurant_name': 'Burger Queen'}]

    _, token = put_user(ROLE_CONSUMER, linked_restaurant_ids=[other_id])
    home = body_of(make_request(chalice_gateway, endpoint='/home', token=token))
    assert [r['id'] for r in home['linked_restaurants']] == [other_id]


def test_push_notification(chalice_gateway, fake_aws):
    vendor_id, restaurant_id = put_vendor_with_restaurant()
    _, token = put_user(ROLE_VENDOR, vendor_id=vendor_id)

    response = make_request(chalice_gateway, endpoint=f'/restaurants/{restaurant_id}/push-notification',
                            method='POST', token=token, json_body={'message': '2 for 1 burgers today!'})
    assert response['statusCode'] == http200, response['body']
    assert body_of(response)['notification'] == '📢 [Burger Queen]: 2 for 1 burgers today!'
    assert fake_aws.sns_messages == [{
        'topic_arn': os.environ['PUSH_NOTIFICATIONS_TOPIC_ARN'],
        'message': '📢 [Burger Queen]: 2 for 1 burgers today!',
        'subject': None,
        'attributes': {'restaurant_id': restaurant_id}
    }]

    response = make_request(chalice_gateway, endpoint=f'/restaurants/{restaurant_id}/push-notification',
                            method='POST', token=token, json_body={'message': '   '})
    assert response['statusCode'] == http400


def test_super_admin_does_not_push_notifications(chalice_gateway):
    _, restaurant_id = put_vendor_with_restaurant()
    _, token = put_user(ROLE_SUPER_ADMIN)
    response = make_request(chalice_gateway, endpoint=f'/restaurants/{restaurant_id}/push-notification',
                            method='POST', token=token, json_body={'message': 'hello'})
    assert response['statusCode'] == http403
