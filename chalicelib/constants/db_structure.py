DEFAULT_BOARD_CONFIG = {
    'statuses': [
        {'id': 'pending', 'label': 'Pending', 'color': '#fb923c'},
        {'id': 'accepted', 'label': 'Accepted', 'color': '#3b82f6'},
        {'id': 'in-progress', 'label': 'In Progress', 'color': '#a855f7'},
        {'id': 'ready-for-pickup', 'label': 'Ready for Pickup', 'color': '#facc15'},
        {'id': 'completed', 'label': 'Completed', 'color': '#22c55e'},
        {'id': 'rejected', 'label': 'Rejected', 'color': '#ef4444'}
    ],
    'columns': [
        {'id': 'col-1', 'title': 'New Orders', 'status_ids': ['pending'],
         'icon': 'ClipboardListIcon', 'title_color': '#374151', 'column_color': '#F3F4F6'},
        {'id': 'col-2', 'title': 'In Progress', 'status_ids': ['accepted', 'in-progress'],
         'icon': 'ChefHatIcon', 'title_color': '#374151', 'column_color': '#F3F4F6'},
        {'id': 'col-3', 'title': 'Ready for Pickup', 'status_ids': ['ready-for-pickup'],
         'icon': 'ShoppingBagIcon', 'title_color': '#374151', 'column_color': '#F3F4F6'}
    ],
    'rejection_reasons': [
        {'id': 'reason-1', 'message': 'Restaurant is too busy to accept new orders.'},
        {'id': 'reason-2', 'message': 'One or more items are out of stock.'},
        {'id': 'reason-3', 'message': 'Closing soon and cannot fulfill the order in time.'}
    ],
    'status_transitions': {
        'pending': ['accepted', 'rejected'],
        'accepted': ['in-progress'],
        'in-progress': ['ready-for-pickup'],
        'ready-for-pickup': ['completed'],
        'completed': [],
        'rejected': []
    }
}

DEFAULT_OPENING_HOURS = {
    'monday': {'is_open': True, 'open': '11:00', 'close': '22:00'},
    'tuesday': {'is_open': True, 'open': '11:00', 'close': '22:00'},
    'wednesday': {'is_open': True, 'open': '11:00', 'close': '22:00'},
    'thursday': {'is_open': True, 'open': '11:00', 'close': '22:00'},
    'friday': {'is_open': True, 'open': '11:00', 'close': '23:00'},
    'saturday': {'is_open': True, 'open': '11:00', 'close': '23:00'},
    'sunday': {'is_open': True, 'open': '11:00', 'close': '22:00'}
}

DEFAULT_PAYMENT_METHODS = ['Credit Card', 'Cash']

DEFAULT_BRANDING = {
    'primary_color': '#F97316',
    'logo_url': 'https://picsum.photos/200/200'
}

DEFAULT_CONTACT = {
    'phone': '',
    'email': '',
    'address': ''
}

DEFAULT_RESTAURANT_ADMIN_PERMISSIONS = {
    'can_view_analytics': True,
    'can_manage_menu': True,
    'can_manage_settings': True,
    'can_manage_orders': True
}
