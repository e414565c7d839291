from functools import wraps
from flask import abort, g, request
from flask_jwt_extended import verify_jwt_in_request, get_jwt, get_current_user
from matcha_trade.services.policy import has_all_permissions, capabilities_for
from matcha_trade.services.security import touch_activity, EXPORT_SCOPE

SAFE_METHODS = ('GET', 'HEAD', 'OPTIONS')


def _enter(allow_locked: bool):
    """Authenticate, record activity and expose user/capability context on flask.g."""
    verify_jwt_in_request()
    if get_jwt().get('scope') == EXPORT_SCOPE:
        abort(403, description='Export confirmation tokens cannot call the API')
    user = get_current_user()
    if user is None or not user.is_active:
        abort(401, description='Account inactive')
    state = touch_activity(user)
    g.current_user = user
    g.capabilities = capabilities_for(user.role)
    g.panic = state.panic_mode
    g.simulation = state.simulation_mode
    if state.panic_mode and not allow_locked and request.method not in SAFE_METHODS:
        abort(423, description='Session locked')
    return user


def require_permissions(*codes: str, allow_locked: bool = False):
    """All listed permissions required; with none listed any signed-in user passes."""
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = _enter(allow_locked)
            if not has_all_permissions(user.role, codes):
                abort(403, description='Missing permission')
            return fn(*args, **kwargs)
        return wrapper
    return outer


def require_any_permission(*codes: str, allow_locked: bool = False):
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = _enter(allow_locked)
            if not any(has_all_permissions(user.role, [c]) for c in codes):
                abort(403, description='Missing permission')
            return fn(*args, **kwargs)
        return wrapper
    return outer


def require_roles(*roles: str, allow_locked: bool = False):
    """Procedure tier guard, e.g. require_roles(*TIER_FINANCE)."""
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = _enter(allow_locked)
            if user.role not in roles:
                abort(403, description='Role not permitted')
            return fn(*args, **kwargs)
        return wrapper
    return outer
