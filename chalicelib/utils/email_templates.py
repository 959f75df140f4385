def get_new_order_notification_message(order_record, restaurant_name=None):
    items = '\n'.join(
        f"    {item.get('quantity')} x {item.get('name')} ({item.get('price')})"
        for item in order_record.get('items', [])
    )
    return f"""
        New order at {restaurant_name or order_record.get('restaurant_id')}\n
        ID: {order_record.get('id_')}\n
        Items:\n{items}\n
        Subtotal: {order_record.get('subtotal')}\n
        Taxes: {order_record.get('taxes')}\n
        Delivery fee: {order_record.get('delivery_fee')}\n
        Total: {order_record.get('total')}\n
        Time: {order_record.get('order_time')}
    """


def get_order_status_message(order_record, status_label=None):
    message = f"Order {order_record.get('id_')} is now {status_label or order_record.get('status_')}"
    if order_record.get('rejection_reason'):
        message += f": {order_record.get('rejection_reason')}"
    return message
