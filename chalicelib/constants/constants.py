import os
from decimal import Decimal

# Roles
ROLE_SUPER_ADMIN = 'SuperAdmin'
ROLE_VENDOR = 'Vendor'
ROLE_RESTAURANT_ADMIN = 'RestaurantAdmin'
ROLE_CONSUMER = 'Consumer'
ALL_ROLES = (ROLE_SUPER_ADMIN, ROLE_VENDOR, ROLE_RESTAURANT_ADMIN, ROLE_CONSUMER)

# RestaurantAdmin permissions
PERMISSION_VIEW_ANALYTICS = 'can_view_analytics'
PERMISSION_MANAGE_MENU = 'can_manage_menu'
PERMISSION_MANAGE_SETTINGS = 'can_manage_settings'
PERMISSION_MANAGE_ORDERS = 'can_manage_orders'
ALL_PERMISSIONS = (PERMISSION_VIEW_ANALYTICS, PERMISSION_MANAGE_MENU,
                   PERMISSION_MANAGE_SETTINGS, PERMISSION_MANAGE_ORDERS)

WEEKDAYS = ('monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday')

# Client views
VIEW_HOME = 'home'
VIEW_RESTAURANT = 'restaurant'
VIEW_CHECKOUT = 'checkout'
VIEW_ORDER_STATUS = 'order_status'
VIEW_VENDOR_DASHBOARD = 'vendor_dashboard'
VIEW_SUPER_ADMIN_DASHBOARD = 'super_admin_dashboard'
VIEW_LOGIN = 'login'
VIEW_ACCESS_DENIED = 'access_denied'
ALL_VIEWS = (VIEW_HOME, VIEW_RESTAURANT, VIEW_CHECKOUT, VIEW_ORDER_STATUS,
             VIEW_VENDOR_DASHBOARD, VIEW_SUPER_ADMIN_DASHBOARD, VIEW_LOGIN)

GUEST_USER_ID = '0'
GUEST_USER = {
    'id': GUEST_USER_ID,
    'name': 'Guest',
    'username': 'guest',
    'role': ROLE_CONSUMER,
    'linked_restaurant_ids': []
}
SUPER_ADMIN_USERNAME = 'superadmin'

# Pricing
TAX_RATE = Decimal('0.08')
DELIVERY_FEE = Decimal('5.00')
CENTS = Decimal('0.01')

REJECTED_STATUS = 'rejected'
ORDER_ID_LENGTH = 8
TOP_ITEMS_LIMIT = 5

MEDIA_TYPES = ('video', 'text', 'audio', 'link')
MEDIA_TYPE_VIDEO = 'video'

CART_CONFLICT_MESSAGE = 'You can only order from one restaurant at a time.'
SELF_DELETION_MESSAGE = 'You cannot delete yourself.'

MAIN_IMAGE_NAME = 'main.jpg'
THUMB_IMAGE_NAME = 'thumb.jpg'

ORDER_EMAIL_FROM = os.environ.get('ORDER_EMAIL_FROM', 'orders@flowapp.test')
