from copy import deepcopy
from typing import Dict, List, Optional, Callable

from boto3.dynamodb.conditions import Key
from chalice import Response

from chalicelib.constants import keys_structure
from chalicelib.constants.constants import GUEST_USER, GUEST_USER_ID, ROLE_CONSUMER, ROLE_VENDOR, \
    ROLE_RESTAURANT_ADMIN, ROLE_SUPER_ADMIN, VIEW_HOME, VIEW_RESTAURANT, VIEW_CHECKOUT, VIEW_ORDER_STATUS, \
    VIEW_VENDOR_DASHBOARD, VIEW_SUPER_ADMIN_DASHBOARD, VIEW_LOGIN, VIEW_ACCESS_DENIED, ALL_VIEWS
from chalicelib.constants.status_codes import http200
from chalicelib.restaurants import Restaurant
from chalicelib.users import User
from chalicelib.utils import auth as utils_auth, app as utils_app, data as utils_data, db as utils_db, exceptions
from chalicelib.utils.logger import logger, log_request

RESTAURANT_HASH_PREFIX = '#restaurant/'


def validated_user(user) -> Optional[Dict]:
    if user is not None and not isinstance(user, dict):
        raise exceptions.ValidationException(f'user must be an object or null, got {user=}')
    return user


class SessionState:
    """
    Client session: current user, view, location hash, selected restaurant, cart and active orders
    """

    def __init__(self, user: Optional[Dict] = None, view: str = VIEW_LOGIN, hash: str = '',
                 selected_restaurant_id: str = None, is_cart_open: bool = False, cart: List = None,
                 active_order_ids: List = None, notifications: List = None, **kwargs):
        if view not in ALL_VIEWS:
            raise exceptions.ValidationException(f'unknown view {view}')
        self.user: Optional[Dict] = deepcopy(validated_user(user))
        self.view: str = view
        self.hash: str = normalize_hash(hash)
        self.selected_restaurant_id: Optional[str] = selected_restaurant_id
        self.is_cart_open: bool = is_cart_open
        self.cart: List = list(cart or [])
        self.active_order_ids: List = list(active_order_ids or [])
        self.notifications: List[Dict] = []

    @property
    def role(self) -> Optional[str]:
        return self.user.get('role') if self.user else None

    @property
    def is_guest(self) -> bool:
        return bool(self.user) and self.user.get('id') == GUEST_USER_ID

    def notify(self, message: str, type_: str = 'info'):
        self.notifications.append({'message': message, 'type': type_})

    def to_dict(self) -> Dict:
        return {
            'user': self.user,
            'view': self.view,
            'hash': self.hash,
            'selected_restaurant_id': self.selected_restaurant_id,
            'is_cart_open': self.is_cart_open,
            'cart': self.cart,
            'active_order_ids': self.active_order_ids,
            'notifications': self.notifications
        }


def normalize_hash(hash_: Optional[str]) -> str:
    if not hash_ or hash_ == '#':
        return ''
    return hash_ if hash_.startswith('#') else f'#{hash_}'


def restaurant_id_from_hash(hash_: str) -> Optional[str]:
    if not hash_.startswith(RESTAURANT_HASH_PREFIX):
        return None
    return hash_[len(RESTAURANT_HASH_PREFIX):].split('/')[0] or None


def guest_user(linked_restaurant_ids: List[str] = None) -> Dict:
    return {**deepcopy(GUEST_USER), 'linked_restaurant_ids': list(linked_restaurant_ids or [])}


def handle_navigation(state: SessionState, restaurant_ids: List[str]) -> SessionState:
    """
    Restaurant link in the hash has priority, otherwise the view follows the user's role
    """
    restaurant_id = restaurant_id_from_hash(state.hash)
    if restaurant_id and restaurant_id in restaurant_ids:
        state.selected_restaurant_id = restaurant_id
        state.view = VIEW_RESTAURANT
        if state.user is None or state.role == ROLE_CONSUMER:
            linked_ids = (state.user or {}).get('linked_restaurant_ids') or []
            if state.user is None or restaurant_id not in linked_ids:
                state.user = guest_user([*linked_ids, restaurant_id])
        return state

    if state.user is None:
        state.view = VIEW_LOGIN
    elif state.role in (ROLE_VENDOR, ROLE_RESTAURANT_ADMIN):
        state.view = VIEW_VENDOR_DASHBOARD
    elif state.role == ROLE_SUPER_ADMIN:
        state.view = VIEW_SUPER_ADMIN_DASHBOARD
    elif state.view == VIEW_LOGIN:
        state.view = VIEW_HOME
    return state


def on_hash_change(state: SessionState, restaurant_ids: List[str], payload: Dict) -> SessionState:
    if 'hash' in payload:
        state.hash = normalize_hash(payload['hash'])
    return handle_navigation(state, restaurant_ids)


def on_auth_change(state: SessionState, restaurant_ids: List[str], payload: Dict) -> SessionState:
    """
    Lost session keeps a guest as a guest, anyone else is logged out
    """
    session_user = validated_user(payload.get('user'))
    if session_user:
        if state.user is None or state.user.get('id') != session_user.get('id'):
            state.user = deepcopy(session_user)
    elif not state.is_guest:
        state.user = None
    return handle_navigation(state, restaurant_ids)


def on_login(state: SessionState, restaurant_ids: List[str], payload: Dict) -> SessionState:
    if not payload.get('user'):
        raise exceptions.MandatoryFieldsAreNotFilled('user is mandatory for login event')
    state.user = deepcopy(validated_user(payload['user']))
    state.hash = ''
    state.notify(f"Welcome back, {state.user.get('name')}!", 'success')
    return handle_navigation(state, restaurant_ids)


def on_logout(state: SessionState, restaurant_ids: List[str], payload: Dict) -> SessionState:
    state.user = None
    state.hash = ''
    state.view = VIEW_LOGIN
    state.notify('Logged out.', 'info')
    return state


def on_exit_to_guest(state: SessionState, restaurant_ids: List[str], payload: Dict) -> SessionState:
    state.user = guest_user()
    state.notify('Exiting admin session. Now viewing as a guest.', 'info')
    if restaurant_ids:
        state.hash = f'{RESTAURANT_HASH_PREFIX}{restaurant_ids[0]}'
    else:
        state.hash = ''
        state.view = VIEW_HOME
    return handle_navigation(state, restaurant_ids)


def on_admin_login(state: SessionState, restaurant_ids: List[str], payload: Dict) -> SessionState:
    state.view = VIEW_LOGIN
    return state


def on_navigate(state: SessionState, restaurant_ids: List[str], payload: Dict) -> SessionState:
    view = payload.get('view')
    if view not in ALL_VIEWS:
        raise exceptions.ValidationException(f'unknown view {view}')
    state.view = view
    state.is_cart_open = False
    if view in (VIEW_HOME, VIEW_VENDOR_DASHBOARD, VIEW_SUPER_ADMIN_DASHBOARD):
        state.hash = ''
        state.selected_restaurant_id = None
    elif view in (VIEW_CHECKOUT, VIEW_ORDER_STATUS):
        state.hash = ''
    return state


def on_select_restaurant(state: SessionState, restaurant_ids: List[str], payload: Dict) -> SessionState:
    restaurant_id = payload.get('restaurant_id')
    if not restaurant_id:
        raise exceptions.MandatoryFieldsAreNotFilled('restaurant_id is mandatory for select_restaurant event')
    state.selected_restaurant_id = restaurant_id
    state.view = VIEW_RESTAURANT
    state.hash = f'{RESTAURANT_HASH_PREFIX}{restaurant_id}'
    return handle_navigation(state, restaurant_ids)


EVENT_HANDLERS: Dict[str, Callable] = {
    'hash_change': on_hash_change,
    'auth_change': on_auth_change,
    'login': on_login,
    'logout': on_logout,
    'exit_to_guest': on_exit_to_guest,
    'admin_login': on_admin_login,
    'navigate': on_navigate,
    'select_restaurant': on_select_restaurant
}


def apply_event(state: SessionState, event: str, restaurant_ids: List[str], payload: Dict = None) -> SessionState:
    if event not in EVENT_HANDLERS:
        raise exceptions.ValidationException(f'unknown navigation event {event}')
    if payload is not None and not isinstance(payload, dict):
        raise exceptions.ValidationException('payload must be an object')
    state = EVENT_HANDLERS[event](state, restaurant_ids, payload or {})
    if state.role != ROLE_CONSUMER:
        state.is_cart_open = False
        state.cart = []
        state.active_order_ids = []
    return state


def resolve_view(state: SessionState, restaurant_ids: List[str], vendor_ids: List[str] = None) -> str:
    """
    View which is actually rendered for the state
    """
    if state.view == VIEW_LOGIN or state.user is None:
        return VIEW_LOGIN
    if state.view == VIEW_RESTAURANT:
        return VIEW_RESTAURANT if state.selected_restaurant_id in restaurant_ids else VIEW_HOME
    if state.view == VIEW_ORDER_STATUS:
        return VIEW_ORDER_STATUS if state.active_order_ids else VIEW_HOME
    if state.view == VIEW_VENDOR_DASHBOARD:
        vendor_id = state.user.get('vendor_id')
        has_vendor = bool(vendor_id) and (vendor_ids is None or vendor_id in vendor_ids)
        return VIEW_VENDOR_DASHBOARD if has_vendor or state.role == ROLE_RESTAURANT_ADMIN else VIEW_ACCESS_DENIED
    if state.view in (VIEW_CHECKOUT, VIEW_SUPER_ADMIN_DASHBOARD):
        return state.view
    return VIEW_HOME


def _persist_linked_restaurants(auth_result: Optional[Dict], state: SessionState):
    if not auth_result or auth_result.get('role') != ROLE_CONSUMER or not state.user:
        return
    known_ids = auth_result.get('linked_restaurant_ids') or []
    new_ids = [i for i in state.user.get('linked_restaurant_ids') or [] if i not in known_ids]
    if not new_ids:
        return
    user = User(auth_result['user_id'])
    user.request_data = {'auth_result': auth_result}
    user.linked_restaurant_ids = [*known_ids, *new_ids]
    user._update_db_record()
    logger.info(f"_persist_linked_restaurants ::: user {auth_result['user_id']} linked {new_ids}")


@utils_app.request_exception_handler
@utils_app.log_start_finish
def endpoint_navigate(request):
    log_request(request)
    request_body = utils_data.parse_raw_body(request)
    if not request_body.get('event'):
        raise exceptions.MandatoryFieldsAreNotFilled('event is mandatory')
    state_dict = request_body.get('state') or {}
    if not isinstance(state_dict, dict):
        raise exceptions.ValidationException('state must be an object')
    restaurant_ids = [record['id_'] for record in Restaurant.list_records()]
    vendor_ids = [record['id_'] for record in utils_db.query_items_paged(
        Key('partkey').eq(keys_structure.vendors_pk))]

    state = apply_event(SessionState(**state_dict), request_body['event'], restaurant_ids,
                        request_body.get('payload'))
    _persist_linked_restaurants(utils_auth.get_optional_auth_result(request), state)
    return Response(status_code=http200, body={
        'state': state.to_dict(),
        'rendered_view': resolve_view(state, restaurant_ids, vendor_ids)
    })
