import functools
import os
from datetime import datetime
from typing import Dict, Optional

import jwt
from chalice.app import Request

from chalicelib.constants import keys_structure
from chalicelib.constants.constants import ROLE_SUPER_ADMIN, ROLE_VENDOR, ROLE_RESTAURANT_ADMIN, WEEKDAYS
from chalicelib.utils import exceptions as utils_exceptions, db as utils_db
from chalicelib.utils.logger import log_request, logger, log_exception


def cognito_idp_url():
    return f"https://cognito-idp.{os.environ.get('DEFAULT_REGION')}.amazonaws.com/" \
           f"{os.environ.get('COGNITO_USER_POOL_ID')}"


def cognito_jwk_url():
    return f"{cognito_idp_url()}/.well-known/jwks.json"


def get_token(request: Request) -> Optional[str]:
    token = request.headers.get('authorization')
    if token and token.lower().startswith('bearer '):
        token = token[len('bearer '):]
    return token or None


def decode_token(token: str) -> Dict:
    """
    JWT_SECRET is used for local stages, Cognito id tokens are verified with the user pool JWKS
    """
    try:
        if os.environ.get('JWT_SECRET'):
            return jwt.decode(token, os.environ['JWT_SECRET'], algorithms=['HS256'])
        jwks_client = jwt.PyJWKClient(cognito_jwk_url())
        signing_key = jwks_client.get_signing_key_from_jwt(token)
        return jwt.decode(
            token,
            signing_key.key,
            algorithms=['RS256'],
            audience=os.environ['COGNITO_USER_POOL_CLIENT_ID'],
            issuer=cognito_idp_url())
    except jwt.PyJWTError as error:
        setattr(error, 'LEVEL', 'warning')
        log_exception(error, 401, f"decode_token ::: {error}")
        raise utils_exceptions.AuthorizationException(f'Token is not valid: {error}')


def get_user_record(user_id: str) -> Dict:
    return utils_db.get_db_item(
        partkey=keys_structure.users_pk,
        sortkey=keys_structure.users_sk.format(user_id=user_id)
    )


def get_auth_result(token: str) -> Dict:
    claims = decode_token(token)
    user_id = claims.get('sub')
    if not user_id:
        raise utils_exceptions.AuthorizationException('Token has no subject')
    try:
        user_item = get_user_record(user_id)
    except utils_exceptions.RecordNotFound:
        raise utils_exceptions.NotAuthorizedException(f'User profile {user_id} not found')
    return {
        'user_id': user_id,
        'role': user_item.get('role'),
        'name': user_item.get('name_'),
        'vendor_id': user_item.get('vendor_id'),
        'restaurant_id': user_item.get('restaurant_id'),
        'permissions': user_item.get('permissions') or {},
        'permission_schedule': user_item.get('permission_schedule') or {},
        'linked_restaurant_ids': user_item.get('linked_restaurant_ids') or []
    }


def get_optional_auth_result(request: Request) -> Optional[Dict]:
    """
    For public endpoints which behave differently for a logged-in user
    """
    token = get_token(request)
    if token is None:
        return None
    try:
        return get_auth_result(token)
    except (utils_exceptions.AuthorizationException, utils_exceptions.NotAuthorizedException) as error:
        logger.warning(f'get_optional_auth_result ::: continue as anonymous user, {error=}')
        return None


def _authenticate_request(request: Request) -> Dict:
    log_request(request)
    token = get_token(request)
    if token is None:
        raise utils_exceptions.NotAuthorizedException('Authorization header is missing')
    auth_result = get_auth_result(token)
    setattr(request, 'auth_result', auth_result)
    logger.info(f"authenticate ::: user_id={auth_result['user_id']} role={auth_result['role']}")
    return auth_result


def authenticate(func):
    """
    Wrapper for functions which require user's authentication
    """

    @functools.wraps(func)
    def result_auth(request, *args, **kwargs):
        _authenticate_request(request)
        return func(request, *args, **kwargs)

    return result_auth


def authenticate_class(func):
    """
    Wrapper for class methods which require user's authentication
    """

    @functools.wraps(func)
    def result_auth(instance, request, *args, **kwargs):
        auth_result = _authenticate_request(request)
        setattr(instance, 'auth_result', auth_result)
        setattr(instance, 'request_data', {'auth_result': auth_result})
        return func(instance, request, *args, **kwargs)

    return result_auth


def is_schedule_active(permission_schedule: Optional[Dict], moment: datetime = None) -> bool:
    """
    Empty schedule means no time restrictions
    """
    if not permission_schedule:
        return True
    moment = moment or datetime.now()
    day_schedule = permission_schedule.get(WEEKDAYS[moment.weekday()])
    if not day_schedule or not day_schedule.get('is_active'):
        return False
    current_time = moment.strftime('%H:%M')
    return day_schedule.get('start_time', '00:00') <= current_time <= day_schedule.get('end_time', '23:59')


def has_permission(auth_result: Dict, permission: str, moment: datetime = None) -> bool:
    role = auth_result.get('role')
    if role in (ROLE_SUPER_ADMIN, ROLE_VENDOR):
        return True
    if role != ROLE_RESTAURANT_ADMIN:
        return False
    return bool(auth_result.get('permissions', {}).get(permission)) and \
        is_schedule_active(auth_result.get('permission_schedule'), moment)


def check_vendor_access(auth_result: Dict, vendor_id: str, permission: str = None):
    role = auth_result.get('role')
    if role == ROLE_SUPER_ADMIN:
        return
    if role not in (ROLE_VENDOR, ROLE_RESTAURANT_ADMIN) or auth_result.get('vendor_id') != vendor_id:
        raise utils_exceptions.AccessDenied(f"user {auth_result.get('user_id')} has no access to {vendor_id=}")
    if permission and not has_permission(auth_result, permission):
        raise utils_exceptions.AccessDenied(f"user {auth_result.get('user_id')} has no {permission=} right now")


def check_restaurant_access(auth_result: Dict, restaurant_record: Dict, permission: str = None,
                            allow_super_admin: bool = True):
    """
    Vendor manages every restaurant of the vendor, RestaurantAdmin only the own one
    and only while the permission is active
    """
    role = auth_result.get('role')
    restaurant_id = restaurant_record.get('id_') or restaurant_record.get('id')
    if role == ROLE_SUPER_ADMIN and allow_super_admin:
        return
    if role == ROLE_VENDOR and auth_result.get('vendor_id') == restaurant_record.get('vendor_id'):
        return
    if role == ROLE_RESTAURANT_ADMIN and auth_result.get('restaurant_id') == restaurant_id:
        if permission is None or has_permission(auth_result, permission):
            return
        raise utils_exceptions.AccessDenied(f"user {auth_result.get('user_id')} has no {permission=} right now")
    raise utils_exceptions.AccessDenied(f"user {auth_result.get('user_id')} has no access to {restaurant_id=}")


def resolve_vendor_id(auth_result: Dict, requested_vendor_id: Optional[str] = None) -> str:
    """
    SuperAdmin works with any vendor and has to pass it explicitly, staff work with the own vendor
    """
    if auth_result.get('role') == ROLE_SUPER_ADMIN:
        if not requested_vendor_id:
            raise utils_exceptions.ValidationException('vendor_id must be provided')
        return requested_vendor_id
    vendor_id = auth_result.get('vendor_id')
    if not vendor_id:
        raise utils_exceptions.AccessDenied(f"user {auth_result.get('user_id')} is not linked to a vendor")
    if requested_vendor_id and requested_vendor_id != vendor_id:
        raise utils_exceptions.AccessDenied(f"user {auth_result.get('user_id')} has no access to "
                                            f"vendor_id={requested_vendor_id}")
    return vendor_id


def require_role(auth_result: Dict, *roles):
    if auth_result.get('role') not in roles:
        raise utils_exceptions.AccessDenied(f"role {auth_result.get('role')} is not allowed, expected {roles}")
