import os

TEST_ENVIRONMENT = {
    'stage': 'test',
    'LOG_LEVEL': 'DEBUG',
    'AWS_DEFAULT_REGION': 'eu-central-1',
    'AWS_ACCESS_KEY_ID': 'testing',
    'AWS_SECRET_ACCESS_KEY': 'testing',
    'MAIN_BOTO_REGION': 'eu-central-1',
    'DEFAULT_REGION': 'eu-central-1',
    'GEN_TABLE_NAME': 'restaurant-ordering-test-gen-table',
    'GEN_TABLE_STREAM_ARN': 'arn:aws:dynamodb:eu-central-1:000000000000:table/restaurant-ordering-test-gen-table/'
                            'stream/2024-01-01T00:00:00.000',
    'COGNITO_USER_POOL_ID': 'eu-central-1_testpool',
    'COGNITO_USER_POOL_CLIENT_ID': 'test-client-id',
    'JWT_SECRET': 'test-secret-key-which-is-long-enough-for-hs256',
    'AUTH_EMAIL_DOMAIN': 'flowapp.test',
    'IMAGES_BUCKET_NAME': 'restaurant-ordering-test-images',
    'PUSH_NOTIFICATIONS_TOPIC_ARN': 'arn:aws:sns:eu-central-1:000000000000:test-push',
    'ORDER_EVENTS_TOPIC_ARN': 'arn:aws:sns:eu-central-1:000000000000:test-order-events',
    'ORDER_EMAIL_FROM': 'orders@flowapp.test',
    'ALL_ORDERS_EMAIL': 'all-orders@flowapp.test',
    'MAX_IMG_WIDTH': '400',
    'MAX_THUMBNAIL_WIDTH': '100'
}
os.environ.update(TEST_ENVIRONMENT)

import pytest  # noqa: E402

from chalicelib import images  # noqa: E402
from chalicelib.utils import db as utils_db, cognito as utils_cognito, notifications as utils_notifications, \
    exceptions  # noqa: E402
from test.utils.fake_table import FakeTable  # noqa: E402


class FakeAws:
    """
    Records calls to identity provider, S3, SES and SNS
    """

    def __init__(self):
        self.identities = {}
        self.deleted_identities = []
        self.emails = []
        self.sns_messages = []
        self.uploads = []

    def create_auth_user(self, username, password):
        if username.lower() in self.identities:
            raise exceptions.ValidationException(f'Username {username} is already taken')
        user_id = f'identity-{len(self.identities) + 1}'
        self.identities[username.lower()] = {'user_id': user_id, 'password': password}
        return user_id

    def delete_auth_user(self, username):
        self.identities.pop(username.lower(), None)
        self.deleted_identities.append(username)

    def authenticate(self, username, password):
        identity = self.identities.get(username.lower())
        if identity is None or identity['password'] != password:
            raise exceptions.NotAuthorizedException('Invalid credentials.')
        return {
            'user_id': identity['user_id'],
            'id_token': f"id-token-{identity['user_id']}",
            'access_token': f"access-token-{identity['user_id']}",
            'refresh_token': f"refresh-token-{identity['user_id']}"
        }

    def refresh_id_token(self, id_token, refresh_token):
        if not refresh_token.startswith('refresh-token-'):
            raise exceptions.NotAuthorizedException('Session expired, please log in again.')
        return f"id-token-{refresh_token[len('refresh-token-'):]}-renewed"

    def send_email_ses(self, emails_to, email_from, subject, message):
        self.emails.append({'to': [email for email in emails_to if email], 'from': email_from,
                            'subject': subject, 'message': message})
        return f'email-{len(self.emails)}'

    def publish_sns(self, topic_arn, message, subject=None, attributes=None):
        self.sns_messages.append({'topic_arn': topic_arn, 'message': message, 'subject': subject,
                                  'attributes': attributes or {}})
        return f'sns-{len(self.sns_messages)}'

    def upload_file_to_s3(self, body, file_path, content_type):
        self.uploads.append({'file_path': file_path, 'content_type': content_type, 'size': len(body)})
        return f"https://{os.environ['IMAGES_BUCKET_NAME']}.s3.amazonaws.com/{file_path}"


@pytest.fixture(autouse=True)
def gen_table(request) -> FakeTable:
    table = FakeTable()
    utils_db._TABLES[os.environ['GEN_TABLE_NAME']] = table

    def resource_teardown():
        utils_db._TABLES.pop(os.environ['GEN_TABLE_NAME'], None)
    request.addfinalizer(resource_teardown)

    return table


@pytest.fixture(autouse=True)
def fake_aws(monkeypatch) -> FakeAws:
    aws = FakeAws()
    monkeypatch.setattr(utils_cognito, 'create_auth_user', aws.create_auth_user)
    monkeypatch.setattr(utils_cognito, 'delete_auth_user', aws.delete_auth_user)
    monkeypatch.setattr(utils_cognito, 'authenticate', aws.authenticate)
    monkeypatch.setattr(utils_cognito, 'refresh_id_token', aws.refresh_id_token)
    monkeypatch.setattr(utils_notifications, 'send_email_ses', aws.send_email_ses)
    monkeypatch.setattr(utils_notifications, 'publish_sns', aws.publish_sns)
    monkeypatch.setattr(images, 'upload_file_to_s3', aws.upload_file_to_s3)
    return aws
