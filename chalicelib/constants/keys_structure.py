vendors_pk = 'vendors'
vendors_sk = '{vendor_id}'

users_pk = 'users'
users_sk = '{user_id}'

restaurants_pk = 'restaurants'
restaurants_sk = '{restaurant_id}'

board_templates_pk = 'board_templates_{vendor_id}'
board_templates_sk = '{board_template_id}'

menu_templates_pk = 'menu_templates_{vendor_id}'
menu_templates_sk = '{menu_template_id}'

menu_item_templates_pk = 'menu_item_templates_{vendor_id}'
menu_item_templates_sk = '{menu_item_template_id}'

carts_pk = 'carts'
carts_sk = '{cart_id}'

orders_pk = 'orders_{restaurant_id}'
orders_sk = '{order_id}'
