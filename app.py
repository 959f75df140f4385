import os

from chalice import Chalice, Response

from chalicelib import auth, analytics, board_templates, carts, images, menu_templates, navigation, orders, \
    restaurants, seed, triggers, users, vendors
from chalicelib.constants.status_codes import http200

app = Chalice(app_name='restaurant-ordering-platform')

app.api.binary_types.insert(0, 'multipart/form-data')
app.debug = True


def get_gen_table_stream_arn():
    return os.environ.get('GEN_TABLE_STREAM_ARN', '')


@app.route('/health-check', methods=['GET'], cors=True)
def health_check():
    return Response(status_code=http200, body={'status': 'ok'})


@app.authorizer()
def role_authorizer(auth_request):
    return auth.role_authorizer(auth_request)


@app.on_dynamodb_record(stream_arn=get_gen_table_stream_arn())
def db_gen_table_stream_trigger(event):
    return triggers.db_gen_table_stream_trigger(event)


@app.lambda_function(name='seed_database')
def seed_database(event, context):
    """
    Replaces the data with the demo data set, {"create_auth_users": false} skips identities
    """
    return {'log': seed.seed_database(create_auth_users=(event or {}).get('create_auth_users', True))}


# AUTH
@app.route('/login', methods=['POST'], cors=True)
def login():
    return auth.login(app.current_request)


@app.route('/refresh-token', methods=['POST'], cors=True)
def refresh_token():
    return auth.refresh_id_token(app.current_request)


# USERS
@app.route('/users/me', methods=['GET'], authorizer=role_authorizer, cors=True)
def get_me():
    return users.User('').endpoint_get_me(app.current_request)


@app.route('/users/me', methods=['PUT'], authorizer=role_authorizer, cors=True)
def update_me():
    return users.User('').endpoint_update_me(app.current_request)


@app.route('/users', methods=['GET'], authorizer=role_authorizer, cors=True)
def get_users():
    """
    super admin gets all users, vendor gets users of the vendor
    """
    return users.User.endpoint_get_users(app.current_request)


@app.route('/users/restaurant-admins', methods=['POST'], authorizer=role_authorizer, cors=True)
def create_restaurant_admin():
    return users.User('').endpoint_create_restaurant_admin(app.current_request)


@app.route('/users/{user_id}', methods=['PUT'], authorizer=role_authorizer, cors=True)
def update_user(user_id):
    return users.User(user_id).endpoint_update_user(app.current_request)


@app.route('/users/{user_id}', methods=['DELETE'], authorizer=role_authorizer, cors=True)
def delete_user(user_id):
    return users.User(user_id).endpoint_delete_user(app.current_request)


# VENDORS
@app.route('/vendors', methods=['GET'], authorizer=role_authorizer, cors=True)
def get_vendors():
    return vendors.Vendor.endpoint_get_all(app.current_request)


@app.route('/vendors', methods=['POST'], authorizer=role_authorizer, cors=True)
def create_vendor():
    """
    super admin operation
    """
    return vendors.Vendor('').endpoint_create(app.current_request)


@app.route('/vendors/{vendor_id}', methods=['GET'], authorizer=role_authorizer, cors=True)
def get_vendor_by_id(vendor_id):
    return vendors.Vendor(vendor_id).endpoint_get_by_id(app.current_request)


@app.route('/vendors/{vendor_id}', methods=['PUT'], authorizer=role_authorizer, cors=True)
def update_vendor(vendor_id):
    """
    super admin operation
    """
    return vendors.Vendor(vendor_id).endpoint_update(app.current_request)


@app.route('/vendors/{vendor_id}', methods=['DELETE'], authorizer=role_authorizer, cors=True)
def delete_vendor(vendor_id):
    """
    super admin operation, removes everything of the vendor
    """
    return vendors.Vendor(vendor_id).endpoint_delete(app.current_request)


# RESTAURANTS
@app.route('/restaurants', methods=['GET'], cors=True)
def get_restaurants():
    return restaurants.Restaurant.endpoint_get_all(app.current_request)


@app.route('/home', methods=['GET'], cors=True)
def get_home():
    return restaurants.Restaurant.endpoint_get_home(app.current_request)


@app.route('/restaurants/{restaurant_id}', methods=['GET'], cors=True)
def get_restaurant_by_id(restaurant_id):
    return restaurants.Restaurant(restaurant_id).endpoint_get_by_id()


@app.route('/restaurants/{restaurant_id}/menu', methods=['GET'], cors=True)
def get_restaurant_menu(restaurant_id):
    return restaurants.Restaurant(restaurant_id).endpoint_get_menu()


@app.route('/restaurants/{restaurant_id}/board', methods=['GET'], cors=True)
def get_restaurant_board_config(restaurant_id):
    return restaurants.Restaurant(restaurant_id).endpoint_get_board()


@app.route('/restaurants', methods=['POST'], authorizer=role_authorizer, cors=True)
def create_restaurant():
    """
    super admin or vendor operation
    """
    return restaurants.Restaurant('').endpoint_create(app.current_request)


@app.route('/restaurants/{restaurant_id}', methods=['PUT'], authorizer=role_authorizer, cors=True)
def update_restaurant(restaurant_id):
    """
    restaurant admin needs the settings permission
    """
    return restaurants.Restaurant(restaurant_id).endpoint_update(app.current_request)


@app.route('/restaurants/{restaurant_id}', methods=['DELETE'], authorizer=role_authorizer, cors=True)
def delete_restaurant(restaurant_id):
    return restaurants.Restaurant(restaurant_id).endpoint_delete(app.current_request)


@app.route('/restaurants/{restaurant_id}/push-notification', methods=['POST'], authorizer=role_authorizer, cors=True)
def push_notification(restaurant_id):
    return restaurants.Restaurant(restaurant_id).endpoint_push_notification(app.current_request)


@app.route('/restaurants/{restaurant_id}/orders', methods=['GET'], authorizer=role_authorizer, cors=True)
def get_restaurant_orders(restaurant_id):
    """
    staff of the restaurant, query params: status, limit, start_key
    """
    return orders.endpoint_get_restaurant_orders(app.current_request, restaurant_id)


@app.route('/restaurants/{restaurant_id}/orders/board', methods=['GET'], authorizer=role_authorizer, cors=True)
def get_restaurant_orders_board(restaurant_id):
    return orders.endpoint_get_board(app.current_request, restaurant_id)


@app.route('/restaurants/{restaurant_id}/analytics', methods=['GET'], authorizer=role_authorizer, cors=True)
def get_restaurant_analytics(restaurant_id):
    return analytics.endpoint_get_analytics(app.current_request, restaurant_id)


# BOARD TEMPLATES
@app.route('/board-templates', methods=['GET'], authorizer=role_authorizer, cors=True)
def get_board_templates():
    return board_templates.BoardTemplate.endpoint_get_all(app.current_request)


@app.route('/board-templates', methods=['POST'], authorizer=role_authorizer, cors=True)
def create_board_template():
    return board_templates.BoardTemplate('').endpoint_create(app.current_request)


@app.route('/board-templates/{board_template_id}', methods=['PUT'], authorizer=role_authorizer, cors=True)
def update_board_template(board_template_id):
    return board_templates.BoardTemplate(board_template_id).endpoint_update(app.current_request)


@app.route('/board-templates/{board_template_id}', methods=['DELETE'], authorizer=role_authorizer, cors=True)
def delete_board_template(board_template_id):
    return board_templates.BoardTemplate(board_template_id).endpoint_delete(app.current_request)


# MENU TEMPLATES
@app.route('/menu-templates', methods=['GET'], authorizer=role_authorizer, cors=True)
def get_menu_templates():
    return menu_templates.MenuTemplate.endpoint_get_all(app.current_request)


@app.route('/menu-templates', methods=['POST'], authorizer=role_authorizer, cors=True)
def create_menu_template():
    return menu_templates.MenuTemplate('').endpoint_create(app.current_request)


@app.route('/menu-templates/{menu_template_id}', methods=['PUT'], authorizer=role_authorizer, cors=True)
def update_menu_template(menu_template_id):
    return menu_templates.MenuTemplate(menu_template_id).endpoint_update(app.current_request)


@app.route('/menu-templates/{menu_template_id}', methods=['DELETE'], authorizer=role_authorizer, cors=True)
def delete_menu_template(menu_template_id):
    return menu_templates.MenuTemplate(menu_template_id).endpoint_delete(app.current_request)


# MENU ITEM TEMPLATES
@app.route('/menu-item-templates', methods=['GET'], authorizer=role_authorizer, cors=True)
def get_menu_item_templates():
    return menu_templates.MenuItemTemplate.endpoint_get_all(app.current_request)


@app.route('/menu-item-templates', methods=['POST'], authorizer=role_authorizer, cors=True)
def create_menu_item_template():
    return menu_templates.MenuItemTemplate('').endpoint_create(app.current_request)


@app.route('/menu-item-templates/{menu_item_template_id}', methods=['PUT'], authorizer=role_authorizer, cors=True)
def update_menu_item_template(menu_item_template_id):
    return menu_templates.MenuItemTemplate(menu_item_template_id).endpoint_update(app.current_request)


@app.route('/menu-item-templates/{menu_item_template_id}', methods=['DELETE'], authorizer=role_authorizer,
           cors=True)
def delete_menu_item_template(menu_item_template_id):
    return menu_templates.MenuItemTemplate(menu_item_template_id).endpoint_delete(app.current_request)


# CART
@app.route('/carts/{cart_id}', methods=['GET'], cors=True)
def get_cart(cart_id):
    return carts.Cart.init_endpoint(app.current_request, cart_id).endpoint_get_cart()


@app.route('/carts/{cart_id}/items', methods=['POST'], cors=True)
def add_item_to_cart(cart_id):
    return carts.Cart.init_endpoint(app.current_request, cart_id).endpoint_add_item(app.current_request)


@app.route('/carts/{cart_id}/items/{cart_item_id}', methods=['PUT'], cors=True)
def set_cart_item_quantity(cart_id, cart_item_id):
    return carts.Cart.init_endpoint(app.current_request, cart_id).\
        endpoint_set_quantity(app.current_request, cart_item_id)


@app.route('/carts/{cart_id}/items/{cart_item_id}', methods=['DELETE'], cors=True)
def remove_item_from_cart(cart_id, cart_item_id):
    return carts.Cart.init_endpoint(app.current_request, cart_id).endpoint_remove_item(cart_item_id)


@app.route('/carts/{cart_id}', methods=['DELETE'], cors=True)
def clear_cart(cart_id):
    return carts.Cart.init_endpoint(app.current_request, cart_id).endpoint_clear_cart()


# ORDERS
@app.route('/orders', methods=['POST'], cors=True)
def create_order():
    """
    guests and consumers place orders from their cart, user is taken from the token when it is passed
    """
    return orders.Order.init_endpoint(app.current_request).endpoint_create_order(app.current_request)


@app.route('/orders/{restaurant_id}/{order_id}', methods=['GET'], cors=True)
def get_order_by_id(restaurant_id, order_id):
    return orders.Order.init_endpoint(app.current_request, restaurant_id, order_id).endpoint_get_by_id()


@app.route('/orders/{restaurant_id}/{order_id}/status', methods=['PUT'], authorizer=role_authorizer, cors=True)
def update_order_status(restaurant_id, order_id):
    """
    vendor or restaurant admin with the orders permission
    """
    return orders.Order.init_endpoint(app.current_request, restaurant_id, order_id).\
        endpoint_update_status(app.current_request)


# NAVIGATION
@app.route('/navigation', methods=['POST'], cors=True)
def navigate():
    return navigation.endpoint_navigate(app.current_request)


# IMAGES
@app.route('/image-upload', methods=['POST'], content_types=['multipart/form-data'], authorizer=role_authorizer,
           cors=True)
def image_upload():
    """
    restaurant banner or menu item image
    """
    return images.image_upload(app.current_request)
