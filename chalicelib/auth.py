from typing import List

from chalice import AuthResponse, AuthRoute, Response

from chalicelib.constants.constants import ROLE_SUPER_ADMIN, ROLE_VENDOR, ROLE_RESTAURANT_ADMIN, ROLE_CONSUMER, \
    SUPER_ADMIN_USERNAME
from chalicelib.constants.status_codes import http200
from chalicelib.users import User
from chalicelib.utils import auth as utils_auth, app as utils_app, data as utils_data, cognito as utils_cognito, \
    exceptions
from chalicelib.utils.logger import logger, log_request

PROFILE_ROUTES = [
    AuthRoute(path='/users/me', methods=['GET', 'PUT'])
]

STAFF_ROUTES = [
    AuthRoute(path='/restaurants/*', methods=['PUT']),
    AuthRoute(path='/restaurants/*/orders', methods=['GET']),
    AuthRoute(path='/restaurants/*/orders/board', methods=['GET']),
    AuthRoute(path='/restaurants/*/analytics', methods=['GET']),
    AuthRoute(path='/menu-templates', methods=['GET', 'POST']),
    AuthRoute(path='/menu-templates/*', methods=['PUT', 'DELETE']),
    AuthRoute(path='/menu-item-templates', methods=['GET', 'POST']),
    AuthRoute(path='/menu-item-templates/*', methods=['PUT', 'DELETE']),
    AuthRoute(path='/image-upload', methods=['POST'])
]

ORDER_PROCESSING_ROUTES = [
    AuthRoute(path='/orders/*/*/status', methods=['PUT']),
    AuthRoute(path='/restaurants/*/push-notification', methods=['POST'])
]

VENDOR_MANAGEMENT_ROUTES = [
    AuthRoute(path='/users', methods=['GET']),
    AuthRoute(path='/users/restaurant-admins', methods=['POST']),
    AuthRoute(path='/users/*', methods=['PUT', 'DELETE']),
    AuthRoute(path='/restaurants', methods=['POST']),
    AuthRoute(path='/restaurants/*', methods=['DELETE']),
    AuthRoute(path='/board-templates', methods=['GET', 'POST']),
    AuthRoute(path='/board-templates/*', methods=['PUT', 'DELETE']),
    AuthRoute(path='/vendors', methods=['GET']),
    AuthRoute(path='/vendors/*', methods=['GET'])
]

SUPER_ADMIN_ROUTES = [
    AuthRoute(path='/vendors', methods=['POST']),
    AuthRoute(path='/vendors/*', methods=['PUT', 'DELETE'])
]

ROLE_ROUTES = {
    ROLE_CONSUMER: PROFILE_ROUTES,
    ROLE_RESTAURANT_ADMIN: [*PROFILE_ROUTES, *STAFF_ROUTES, *ORDER_PROCESSING_ROUTES],
    ROLE_VENDOR: [*PROFILE_ROUTES, *STAFF_ROUTES, *ORDER_PROCESSING_ROUTES, *VENDOR_MANAGEMENT_ROUTES],
    ROLE_SUPER_ADMIN: [*PROFILE_ROUTES, *STAFF_ROUTES, *VENDOR_MANAGEMENT_ROUTES, *SUPER_ADMIN_ROUTES]
}


def get_role_routes(role: str) -> List[AuthRoute]:
    return ROLE_ROUTES.get(role, [])


def role_authorizer(auth_request):
    """
    Grants routes by role, ownership and permissions are checked by the endpoints
    """
    token = auth_request.token or ''
    if token.lower().startswith('bearer '):
        token = token[len('bearer '):]
    try:
        auth_result = utils_auth.get_auth_result(token)
    except (exceptions.AuthorizationException, exceptions.NotAuthorizedException) as error:
        logger.warning(f'role_authorizer ::: access denied, {error=}')
        return AuthResponse(routes=[], principal_id='')
    return AuthResponse(routes=get_role_routes(auth_result['role']), principal_id=auth_result['user_id'])


def get_or_recover_profile(user_id: str, username: str) -> User:
    """
    Identity without a profile gets one: super admin for the reserved username, consumer otherwise
    """
    try:
        return User.init_by_id(user_id)
    except exceptions.RecordNotFound:
        role = ROLE_SUPER_ADMIN if username == SUPER_ADMIN_USERNAME else ROLE_CONSUMER
        logger.warning(f'get_or_recover_profile ::: profile of {user_id=} not found, recovering with {role=}')
        return User.create_profile(user_id, username=username, name=username[:1].upper() + username[1:], role=role)


@utils_app.request_exception_handler
def login(request):
    log_request(request)
    request_body = utils_data.parse_raw_body(request)
    for field in ('username', 'password'):
        if not request_body.get(field):
            raise exceptions.MandatoryFieldsAreNotFilled(f'{field} is mandatory')
    tokens = utils_cognito.authenticate(request_body['username'], request_body['password'])
    user = get_or_recover_profile(tokens['user_id'], request_body['username'])
    return Response(status_code=http200, body={
        'token': tokens['id_token'],
        'id_token': tokens['id_token'],
        'access_token': tokens['access_token'],
        'refresh_token': tokens['refresh_token'],
        'user': user._to_ui()
    })


@utils_app.request_exception_handler
def refresh_id_token(request):
    log_request(request)
    request_body = utils_data.parse_raw_body(request)
    for field in ('id_token', 'refresh_token'):
        if not request_body.get(field):
            raise exceptions.MandatoryFieldsAreNotFilled(f'{field} is mandatory')
    id_token = utils_cognito.refresh_id_token(request_body['id_token'], request_body['refresh_token'])
    return Response(status_code=http200, body={'status': 'success', 'id_token': id_token})
