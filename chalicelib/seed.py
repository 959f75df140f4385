from copy import deepcopy
from decimal import Decimal
from typing import Dict, List
from uuid import uuid4

from chalicelib.board_templates import BoardTemplate
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import ROLE_VENDOR, ROLE_SUPER_ADMIN, ROLE_RESTAURANT_ADMIN, WEEKDAYS
from chalicelib.constants.db_structure import DEFAULT_BOARD_CONFIG
from chalicelib.menu_templates import MenuItemTemplate, MenuTemplate
from chalicelib.restaurants import Restaurant
from chalicelib.users import User
from chalicelib.utils import db as utils_db, cognito as utils_cognito, exceptions
from chalicelib.utils.logger import logger, log_exception
from chalicelib.vendors import Vendor

DEFAULT_SEED_PASSWORD = 'password'

VENDORS = [
    {'id': '1', 'name': 'Burger Queen Group'},
    {'id': '2', 'name': 'Pizza Palace Inc.'}
]

BOARD_TEMPLATES = [
    {'id': '1', 'vendor_id': '1', 'name': 'Standard Burger Workflow', 'config': DEFAULT_BOARD_CONFIG},
    {'id': '2', 'vendor_id': '2', 'name': 'Standard Pizza Workflow', 'config': DEFAULT_BOARD_CONFIG}
]

LACTOSE = {'id': 'lactose', 'name': 'Lactose', 'icon': 'LactoseIcon'}
VEGETARIAN = {'id': 'v', 'name': 'Vegetarian'}

MENU_ITEM_TEMPLATES = [
    {'id': '101', 'vendor_id': '1', 'name': 'Classic Cheeseburger', 'price': Decimal('8.99'),
     'description': 'A timeless classic with a juicy beef patty, melted cheddar, pickles, onions, ketchup, '
                    'and mustard on a toasted bun.',
     'image_url': 'https://picsum.photos/400/300?random=21',
     'composition': ['Beef Patty (1/3 lb)', 'Cheddar Cheese Slice', 'Dill Pickles', 'White Onion',
                     'Toasted Sesame Bun'],
     'intolerances': [LACTOSE]},
    {'id': '102', 'vendor_id': '1', 'name': 'Bacon Deluxe', 'price': Decimal('10.99'),
     'description': 'Our classic burger topped with crispy bacon and our special deluxe sauce.',
     'image_url': 'https://picsum.photos/400/300?random=22',
     'composition': ['Beef Patty (1/3 lb)', 'Crispy Bacon (2 strips)', 'Cheddar Cheese Slice', 'Deluxe Sauce'],
     'discount': {'percentage': 10, 'show_to_consumer': True}},
    {'id': '103', 'vendor_id': '1', 'name': 'Spicy Jalapeño Burger', 'price': Decimal('9.99'),
     'description': 'For those who like it hot! Featuring pepper jack cheese and fresh jalapeños.',
     'image_url': 'https://picsum.photos/400/300?random=23',
     'composition': ['Beef Patty (1/3 lb)', 'Pepper Jack Cheese', 'Fresh Jalapeños', 'Spicy Mayo'],
     'allergens': [{'id': 's', 'name': 'Spicy'}]},
    {'id': '104', 'vendor_id': '1', 'name': 'Crispy Fries', 'price': Decimal('3.50'),
     'description': 'Golden, crispy, and perfectly salted.',
     'image_url': 'https://picsum.photos/400/300?random=24',
     'composition': ['Potatoes', 'Canola Oil', 'Salt'],
     'allergens': [{'id': 'gf', 'name': 'Gluten-Free'}, VEGETARIAN]},
    {'id': '201', 'vendor_id': '2', 'name': 'Margherita Pizza', 'price': Decimal('14.00'),
     'description': 'Classic pizza with fresh mozzarella, San Marzano tomatoes, and basil.',
     'image_url': 'https://picsum.photos/400/300?random=31',
     'composition': ['Fresh Mozzarella', 'San Marzano Tomato Sauce', 'Fresh Basil', 'Olive Oil'],
     'allergens': [VEGETARIAN], 'intolerances': [LACTOSE]},
    {'id': '202', 'vendor_id': '2', 'name': 'Pepperoni Passion', 'price': Decimal('16.50'),
     'description': 'Loaded with spicy pepperoni and gooey mozzarella.',
     'image_url': 'https://picsum.photos/400/300?random=32',
     'composition': ['Spicy Pepperoni', 'Mozzarella', 'Tomato Sauce']},
    {'id': '203', 'vendor_id': '2', 'name': 'Veggie Supreme', 'price': Decimal('15.50'),
     'description': 'A garden on a pizza! Bell peppers, onions, olives, and mushrooms.',
     'image_url': 'https://picsum.photos/400/300?random=33',
     'composition': ['Bell Peppers', 'Red Onions', 'Black Olives', 'Mushrooms', 'Mozzarella'],
     'allergens': [VEGETARIAN]},
    {'id': '204', 'vendor_id': '2', 'name': 'Garlic Knots', 'price': Decimal('5.00'),
     'description': 'Warm, buttery, and garlicky. Perfect for dipping.',
     'image_url': 'https://picsum.photos/400/300?random=34',
     'composition': ['Dough', 'Garlic Butter', 'Parsley'],
     'allergens': [VEGETARIAN]}
]

MENU_TEMPLATES = [
    {'id': '1', 'vendor_id': '1', 'name': 'Main Menu (Burgers)', 'sections': [
        {'id': 'sec-1-1', 'title': 'Signature Burgers', 'item_ids': ['101', '102', '103']},
        {'id': 'sec-1-2', 'title': 'Sides', 'item_ids': ['104']}
    ]},
    {'id': '2', 'vendor_id': '2', 'name': 'Main Menu (Pizza)', 'sections': [
        {'id': 'sec-2-1', 'title': 'Pizzas', 'item_ids': ['201', '202', '203']},
        {'id': 'sec-2-2', 'title': 'Starters', 'item_ids': ['204']}
    ]}
]


def _week(open_: str, close: str, closed_day: str) -> Dict:
    return {day: {'is_open': day != closed_day, 'open': open_, 'close': close} for day in WEEKDAYS}


RESTAURANTS = [
    {
        'id': '1', 'vendor_id': '1', 'name': 'Burger Queen',
        'description': 'Home of the Flame-Grilled Masterpiece. We serve the juiciest burgers in town.',
        'banner_url': 'https://picsum.photos/1200/400?random=1',
        'contact': {'phone': '555-1234', 'email': 'contact@burgerqueen.com',
                    'address': '123 Burger Lane, Foodville'},
        'opening_hours': {**_week('11:00', '22:00', 'sunday'),
                          'friday': {'is_open': True, 'open': '11:00', 'close': '23:00'},
                          'saturday': {'is_open': True, 'open': '11:00', 'close': '23:00'}},
        'payment_methods': ['Credit Card', 'Cash', 'Stripe'],
        'branding': {'primary_color': '#D97706', 'logo_url': 'https://picsum.photos/200/200?random=11'},
        'media': [
            {'id': '1', 'type': 'video', 'title': 'How We Make Our Famous Burgers',
             'source': 'https://www.w3schools.com/html/mov_bbb.mp4',
             'description': 'A quick look behind the scenes at Burger Queen.'},
            {'id': '2', 'type': 'text', 'title': 'Employee of the Month!',
             'source': 'Congrats to Sarah J. for her amazing work this month!',
             'description': 'Celebrating our amazing team.'}
        ],
        'board_template_id': '1',
        'assigned_menu_template_ids': ['1']
    },
    {
        'id': '2', 'vendor_id': '2', 'name': 'Pizza Palace',
        'description': 'Authentic Italian pizza with the freshest ingredients. A slice of heaven!',
        'banner_url': 'https://picsum.photos/1200/400?random=2',
        'contact': {'phone': '555-5678', 'email': 'ciao@pizzapalace.com',
                    'address': '456 Pizza Plaza, Foodville'},
        'opening_hours': {**_week('12:00', '23:00', 'monday'),
                          'friday': {'is_open': True, 'open': '12:00', 'close': '00:00'},
                          'saturday': {'is_open': True, 'open': '12:00', 'close': '00:00'}},
        'payment_methods': ['Credit Card', 'PayPal', 'Bizum', 'Cash'],
        'branding': {'primary_color': '#DC2626', 'logo_url': 'https://picsum.photos/200/200?random=12'},
        'media': [
            {'id': '3', 'type': 'audio', 'title': 'Message from the Chef',
             'source': 'https://www.w3schools.com/html/horse.ogg',
             'description': 'Listen to Chef Giovanni talk about his passion for pizza.'},
            {'id': '4', 'type': 'link', 'title': 'Catering Services', 'source': '#',
             'description': 'Planning a party? Click to learn more.'}
        ],
        'board_template_id': '2',
        'assigned_menu_template_ids': ['2']
    }
]

USERS = [
    {'name': 'Burger Queen Admin', 'username': 'vendor1', 'role': ROLE_VENDOR, 'vendor_id': '1'},
    {'name': 'Pizza Palace Admin', 'username': 'vendor2', 'role': ROLE_VENDOR, 'vendor_id': '2'},
    {'name': 'Super Admin', 'username': 'superadmin', 'role': ROLE_SUPER_ADMIN},
    {
        'name': 'Burger Restaurant Manager', 'username': 'restadmin1', 'role': ROLE_RESTAURANT_ADMIN,
        'vendor_id': '1', 'restaurant_id': '1',
        'permissions': {'can_view_analytics': True, 'can_manage_menu': True,
                        'can_manage_settings': False, 'can_manage_orders': True},
        'permission_schedule': {day: {'is_active': True, 'start_time': '00:00', 'end_time': '23:59'}
                                for day in WEEKDAYS}
    }
]


class SeedLog:
    def __init__(self):
        self.lines: List[str] = []

    def info(self, message: str):
        logger.info(f'seed_database ::: {message}')
        self.lines.append(message)

    def error(self, message: str):
        logger.error(f'seed_database ::: {message}')
        self.lines.append(f'ERROR: {message}')

    def __str__(self):
        return '\n'.join(self.lines)


def clear_seeded_partitions(log: SeedLog):
    for record in Vendor.list_records():
        vendor_id = record['id_']
        for partkey in (keys_structure.board_templates_pk, keys_structure.menu_templates_pk,
                        keys_structure.menu_item_templates_pk):
            utils_db.delete_partition(partkey.format(vendor_id=vendor_id))
    for record in Restaurant.list_records():
        utils_db.delete_partition(keys_structure.orders_pk.format(restaurant_id=record['id_']))
    for partkey in (keys_structure.restaurants_pk, keys_structure.vendors_pk, keys_structure.users_pk):
        utils_db.delete_partition(partkey)
    log.info('Tables cleared.')


def _new_record(data: Dict, **overrides) -> Dict:
    record = {key: deepcopy(value) for key, value in data.items() if key != 'id'}
    return {**record, **overrides}


def seed_users(id_map: Dict[str, str], log: SeedLog, create_auth_users: bool):
    for data in USERS:
        username = data['username']
        try:
            if create_auth_users:
                try:
                    user_id = utils_cognito.create_auth_user(username, DEFAULT_SEED_PASSWORD)
                except exceptions.ValidationException:
                    user_id = utils_cognito.authenticate(username, DEFAULT_SEED_PASSWORD)['user_id']
            else:
                user_id = str(uuid4())
            User.create_profile(
                user_id,
                username=username,
                name=data['name'],
                role=data['role'],
                vendor_id=id_map.get(f"vendor_{data.get('vendor_id')}"),
                restaurant_id=id_map.get(f"restaurant_{data.get('restaurant_id')}"),
                permissions=deepcopy(data.get('permissions')),
                permission_schedule=deepcopy(data.get('permission_schedule'))
            )
            log.info(f'Seeded User: {username}')
        except Exception as e:
            log_exception(e, msg=f'seed_users ::: user {username} was not seeded')
            log.error(f'Failed User {username}: {e}')


def seed_database(create_auth_users: bool = True) -> str:
    """
    Replaces vendors, templates, restaurants and users with the demo data set
    :return:
    seeding log
    """
    log = SeedLog()
    log.info('Starting seed...')
    clear_seeded_partitions(log)
    id_map: Dict[str, str] = {}

    for data in VENDORS:
        vendor = Vendor(str(uuid4()), name=data['name'])
        vendor._create_db_record()
        id_map[f"vendor_{data['id']}"] = vendor.id_
        log.info(f"Created Vendor: {data['name']}")

    for data in BOARD_TEMPLATES:
        template = BoardTemplate(str(uuid4()), **_new_record(data, vendor_id=id_map[f"vendor_{data['vendor_id']}"]))
        template._create_db_record()
        id_map[f"board_{data['id']}"] = template.id_

    for data in MENU_ITEM_TEMPLATES:
        item = MenuItemTemplate(str(uuid4()), **_new_record(data, vendor_id=id_map[f"vendor_{data['vendor_id']}"],
                                                            is_available=True))
        item._create_db_record()
        id_map[f"item_{data['id']}"] = item.id_

    for data in MENU_TEMPLATES:
        sections = [{**section, 'item_ids': [id_map.get(f'item_{item_id}', item_id)
                                             for item_id in section['item_ids']]}
                    for section in data['sections']]
        menu = MenuTemplate(str(uuid4()), **_new_record(data, vendor_id=id_map[f"vendor_{data['vendor_id']}"],
                                                        sections=sections))
        menu._create_db_record()
        id_map[f"menu_{data['id']}"] = menu.id_
    log.info('Created templates.')

    for data in RESTAURANTS:
        restaurant = Restaurant(str(uuid4()), **_new_record(
            data,
            vendor_id=id_map[f"vendor_{data['vendor_id']}"],
            board_template_id=id_map.get(f"board_{data['board_template_id']}"),
            assigned_menu_template_ids=[id_map[f'menu_{menu_id}'] for menu_id in data['assigned_menu_template_ids']
                                        if f'menu_{menu_id}' in id_map]
        ))
        restaurant._create_db_record()
        id_map[f"restaurant_{data['id']}"] = restaurant.id_
        log.info(f"Created Restaurant: {data['name']}")

    seed_users(id_map, log, create_auth_users)
    log.info('Done! Check logs for any Errors.')
    return str(log)
