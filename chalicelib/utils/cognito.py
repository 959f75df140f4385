import os
import re
from typing import Dict

import jwt
from botocore.exceptions import ClientError
from pycognito import Cognito

from chalicelib.utils.boto_clients import cognito_client
from chalicelib.utils.exceptions import NotAuthorizedException, ValidationException
from chalicelib.utils.logger import logger


def username_to_email(username: str) -> str:
    """
    Identity provider works with emails only, usernames are mapped to a technical email
    """
    local_part = re.sub(r'\s', '', username.lower())
    return f"{local_part}@{os.environ.get('AUTH_EMAIL_DOMAIN', 'flowapp.test')}"


def get_cognito(username: str = None) -> Cognito:
    return Cognito(os.environ['COGNITO_USER_POOL_ID'], os.environ['COGNITO_USER_POOL_CLIENT_ID'],
                   user_pool_region=os.environ['DEFAULT_REGION'], username=username)


def authenticate(username: str, password: str) -> Dict:
    cognito = get_cognito(username_to_email(username))
    try:
        cognito.authenticate(password=password)
    except ClientError as error:
        logger.warning(f'authenticate ::: {username=} failed to authenticate, {error=}')
        raise NotAuthorizedException('Invalid credentials.')
    claims = jwt.decode(cognito.id_token, options={'verify_signature': False})
    return {
        'user_id': claims['sub'],
        'id_token': cognito.id_token,
        'access_token': cognito.access_token,
        'refresh_token': cognito.refresh_token
    }


def create_auth_user(username: str, password: str) -> str:
    """
    Creates a confirmed identity with a permanent password
    :return:
    identity id (sub), it is used as the user profile id
    """
    email = username_to_email(username)
    try:
        cognito_resp = get_cognito().admin_create_user(
            email,
            temporary_password=password,
            additional_kwargs={'MessageAction': 'SUPPRESS'},
            email=email,
            email_verified='true'
        )
        cognito_client.admin_set_user_password(
            UserPoolId=os.environ['COGNITO_USER_POOL_ID'],
            Username=email,
            Password=password,
            Permanent=True
        )
    except ClientError as error:
        if error.response.get('Error', {}).get('Code') == 'UsernameExistsException':
            raise ValidationException(f'Username {username} is already taken')
        raise
    attributes = {attr['Name']: attr['Value'] for attr in cognito_resp['User'].get('Attributes', [])}
    logger.info(f'create_auth_user ::: {username=} created')
    return attributes.get('sub') or cognito_resp['User']['Username']


def delete_auth_user(username: str):
    try:
        get_cognito(username_to_email(username)).admin_delete_user()
    except ClientError as error:
        if error.response.get('Error', {}).get('Code') != 'UserNotFoundException':
            raise
        logger.warning(f'delete_auth_user ::: identity for {username=} not found, nothing to delete')
        return
    logger.info(f'delete_auth_user ::: {username=} deleted')


def refresh_id_token(id_token: str, refresh_token: str) -> str:
    cognito = Cognito(os.environ['COGNITO_USER_POOL_ID'], os.environ['COGNITO_USER_POOL_CLIENT_ID'],
                      user_pool_region=os.environ['DEFAULT_REGION'], id_token=id_token, refresh_token=refresh_token)
    try:
        cognito.renew_access_token()
    except ClientError as error:
        logger.warning(f'refresh_id_token ::: token was not refreshed, {error=}')
        raise NotAuthorizedException('Session expired, please log in again.')
    return cognito.id_token
