"""Helpers shared by the Flask controllers.

Identity comes from the auth provider and lands in the Flask session as
user_id / business_id / role; these helpers only read it.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import wraps

from flask import Flask, jsonify, session

from ..core.enums import EmployeeRole
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    CacheInstallError,
    ConflictError,
    DomainError,
    OfflineError,
    PersistenceError,
    ValidationError,
)
from .logging_config import get_logger

logger = get_logger("web")

MANAGER_ROLES = {EmployeeRole.OWNER.value, EmployeeRole.MANAGER.value}


@dataclass(frozen=True)
class Actor:
    user_id: str
    business_id: str
    role: EmployeeRole


def json_error(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def current_actor() -> Actor:
    try:
        role = EmployeeRole(session.get("role"))
    except ValueError as e:
        raise AuthorizationError("Rôle de session inconnu") from e
    return Actor(user_id=str(session["user_id"]), business_id=str(session["business_id"]), role=role)


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session or "business_id" not in session:
            return json_error("Veuillez vous connecter pour continuer.", 401)
        return view(*args, **kwargs)

    return wrapper


def manager_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session or "business_id" not in session:
            return json_error("Veuillez vous connecter pour continuer.", 401)
        if session.get("role") not in MANAGER_ROLES:
            return json_error("Accès réservé au propriétaire ou au manager.", 403)
        return view(*args, **kwargs)

    return wrapper


def status_for(error: DomainError) -> int:
    if isinstance(error, ConflictError):
        return 409
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, AuthenticationError):
        return 401
    if isinstance(error, AuthorizationError):
        return 403
    if isinstance(error, OfflineError):
        return 504
    if isinstance(error, (PersistenceError, CacheInstallError)):
        return 503
    return 500


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        status = status_for(e)
        if status >= 500:
            logger.error("%s: %s", type(e).__name__, e)
        return json_error(str(e), status)
