import os
from decimal import Decimal

from boto3.dynamodb.types import TypeSerializer
from chalice.app import DynamoDBEvent

from chalicelib import triggers
from chalicelib.utils import notifications as utils_notifications
from test.utils.regression_test_data import put_vendor_with_restaurant, get_order_record

serializer = TypeSerializer()


def stream_record(event_name, new_image=None, old_image=None, event_id='event-1'):
    dynamodb = {
        'ApproximateCreationDateTime': 1714989600,
        'Keys': {},
        'SequenceNumber': '100',
        'SizeBytes': 512,
        'StreamViewType': 'NEW_AND_OLD_IMAGES'
    }
    if new_image is not None:
        dynamodb['NewImage'] = {key: serializer.serialize(value) for key, value in new_image.items()}
    if old_image is not None:
        dynamodb['OldImage'] = {key: serializer.serialize(value) for key, value in old_image.items()}
    return {
        'awsRegion': 'eu-central-1',
        'eventID': event_id,
        'eventName': event_name,
        'eventSourceARN': os.environ['GEN_TABLE_STREAM_ARN'],
        'dynamodb': dynamodb
    }


def stream_event(*records) -> DynamoDBEvent:
    return DynamoDBEvent({'Records': list(records)}, None)


def test_deserialize_ddb_rec():
    assert triggers.deserialize_ddb_rec(None) == {}
    assert triggers.deserialize_ddb_rec({'status_': {'S': 'pending'}, 'total': {'N': '24.42'}}) == \
        {'status_': 'pending', 'total': Decimal('24.42')}


def test_new_order_is_emailed(fake_aws):
    vendor_id, restaurant_id = put_vendor_with_restaurant()
    order = get_order_record(restaurant_id, vendor_id, 'pending',
                             [{'name': 'Classic Cheeseburger', 'quantity': 2, 'price': '8.99'}], '24.42')
    triggers.db_gen_table_stream_trigger(stream_event(stream_record('INSERT', new_image=order)))

    assert len(fake_aws.emails) == 1
    email = fake_aws.emails[0]
    assert email['to'] == ['contact@burgerqueen.com', 'all-orders@flowapp.test']
    assert email['from'] == 'orders@flowapp.test'
    assert email['subject'] == f"New order has been created, order ID - {order['id_']}, restaurant - Burger Queen"
    assert '2 x Classic Cheeseburger' in email['message']
    assert fake_aws.sns_messages == []


def test_status_change_is_published(fake_aws):
    vendor_id, restaurant_id = put_vendor_with_restaurant()
    old = get_order_record(restaurant_id, vendor_id, 'pending', [], '10.00')
    new = {**old, 'status_': 'rejected', 'rejection_reason': 'One or more items are out of stock.'}
    triggers.db_gen_table_stream_trigger(stream_event(stream_record('MODIFY', new_image=new, old_image=old)))

    assert fake_aws.sns_messages == [{
        'topic_arn': os.environ['ORDER_EVENTS_TOPIC_ARN'],
        'message': f"Order {old['id_']} is now Rejected: One or more items are out of stock.",
        'subject': 'Order status changed',
        'attributes': {'restaurant_id': restaurant_id, 'order_id': old['id_'], 'status': 'rejected'}
    }]
    assert fake_aws.emails == []


def test_other_changes_are_ignored(fake_aws):
    vendor_id, restaurant_id = put_vendor_with_restaurant()
    order = get_order_record(restaurant_id, vendor_id, 'pending', [], '10.00')
    restaurant = {'record_type': 'restaurant', 'id_': restaurant_id, 'name_': 'Burger Queen'}
    triggers.db_gen_table_stream_trigger(stream_event(
        stream_record('MODIFY', new_image={**order, 'total': 11}, old_image=order),
        stream_record('INSERT', new_image=restaurant),
        stream_record('REMOVE', old_image=order)
    ))
    assert fake_aws.emails == []
    assert fake_aws.sns_messages == []


def test_failed_record_does_not_stop_the_batch(fake_aws, monkeypatch):
    vendor_id, restaurant_id = put_vendor_with_restaurant()
    first = get_order_record(restaurant_id, vendor_id, 'pending', [], '10.00')
    second = get_order_record(restaurant_id, vendor_id, 'pending', [], '12.00')
    sent = []

    def flaky_send_email_ses(emails_to, email_from, subject, message):
        if not sent:
            sent.append(subject)
            raise RuntimeError('SES is throttling')
        return fake_aws.send_email_ses(emails_to, email_from, subject, message)

    monkeypatch.setattr(utils_notifications, 'send_email_ses', flaky_send_email_ses)
    triggers.db_gen_table_stream_trigger(stream_event(
        stream_record('INSERT', new_image=first, event_id='event-1'),
        stream_record('INSERT', new_image=second, event_id='event-2')
    ))
    assert len(fake_aws.emails) == 1
    assert second['id_'] in fake_aws.emails[0]['subject']


def test_order_of_deleted_restaurant_still_notifies(fake_aws):
    order = get_order_record('deleted-restaurant', 'v-1', 'pending', [], '10.00')
    triggers.db_gen_table_stream_trigger(stream_event(stream_record('INSERT', new_image=order)))
    assert fake_aws.emails[0]['to'] == ['all-orders@flowapp.test']
