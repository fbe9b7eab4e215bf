"""
Authentication service for Escola Gestão
Handles login, password management, and session utilities
"""

import logging
import secrets
import string
from datetime import datetime

from sqlalchemy import func

from database import db
from models.user import User

logger = logging.getLogger(__name__)

class AuthService:
    """Authentication service class"""

    @staticmethod
    def authenticate(email, password):
        """Authenticate a user by email and password"""
        try:
            normalized = (email or '').strip()
            user = (
                User.query
                .filter(func.lower(User.email) == func.lower(normalized))
                .filter_by(is_active=True)
                .first()
            )

            if user and user.check_password(password):
                user.update_last_login()
                logger.info("User %s logged in", user.email)
                return True, user, "Login successful"

            logger.info("Failed login for %s", normalized)
            return False, None, "Invalid email or password"

        except Exception as e:
            db.session.rollback()
            logger.error("Authentication error: %s", e)
            return False, None, f"Authentication error: {str(e)}"

    @staticmethod
    def generate_password(length=10):
        """Generate a random password for new staff accounts"""
        chars = string.ascii_letters + string.digits
        return ''.join(secrets.choice(chars) for _ in range(length))

    @staticmethod
    def create_user(tenant_id, email, full_name, role, password=None, employee_id=None):
        """Create a login account; returns (success, user, password, message)"""
        try:
            email = (email or '').strip().lower()
            if role not in User.ROLES:
                return False, None, None, "Invalid role"

            if User.query.filter(func.lower(User.email) == email).first():
                return False, None, None, "Email already registered"

            generated = password is None
            if generated:
                password = AuthService.generate_password()

            user = User(
                tenant_id=tenant_id,
                email=email,
                full_name=full_name,
                role=role,
                employee_id=employee_id
            )
            user.set_password(password, keep_copy=generated)
            db.session.add(user)
            db.session.commit()

            logger.info("Created %s account %s for tenant %s", role, email, tenant_id)
            return True, user, password, "User created successfully"

        except Exception as e:
            db.session.rollback()
            logger.error("Error creating user %s: %s", email, e)
            return False, None, None, f"Error creating user: {str(e)}"

    @staticmethod
    def change_password(user_id, old_password, new_password):
        """Change user password"""
        try:
            user = db.session.get(User, user_id)

            if not user:
                return False, "User not found"

            if not user.check_password(old_password):
                return False, "Current password is incorrect"

            user.set_password(new_password)
            db.session.commit()

            return True, "Password changed successfully"

        except Exception as e:
            db.session.rollback()
            return False, f"Error changing password: {str(e)}"

    @staticmethod
    def reset_password(tenant_id, user_id):
        """Reset a user's password to a new random one, kept recoverable for the admin"""
        try:
            user = db.session.get(User, user_id)

            if not user or user.tenant_id != tenant_id:
                return False, None, "User not found"

            new_password = AuthService.generate_password()
            user.set_password(new_password, keep_copy=True)
            db.session.commit()

            logger.info("Password reset for %s", user.email)
            return True, new_password, "Password reset successfully"

        except Exception as e:
            db.session.rollback()
            return False, None, f"Error resetting password: {str(e)}"

    @staticmethod
    def set_user_active(tenant_id, user_id, is_active):
        """Activate or deactivate a user account"""
        try:
            user = db.session.get(User, user_id)

            if not user or user.tenant_id != tenant_id:
                return False, "User not found"

            user.is_active = bool(is_active)
            db.session.commit()

            return True, "User activated successfully" if is_active else "User deactivated successfully"

        except Exception as e:
            db.session.rollback()
            return False, f"Error updating user: {str(e)}"

class SessionManager:
    """Session management utilities"""

    @staticmethod
    def create_session(session, user):
        """Create user session"""
        session['user_id'] = user.id
        session['role'] = user.role
        session['tenant_id'] = user.tenant_id
        session['email'] = user.email
        session['login_time'] = datetime.utcnow().isoformat()
        session.permanent = True

    @staticmethod
    def clear_session(session):
        """Clear user session"""
        session.clear()

    @staticmethod
    def is_authenticated(session):
        """Check if user is authenticated"""
        return 'user_id' in session and 'role' in session

    @staticmethod
    def get_current_user(session):
        """Load the current user, None when the session is stale"""
        user_id = session.get('user_id')
        if user_id is None:
            return None
        user = db.session.get(User, user_id)
        if user is None or not user.is_active:
            return None
        return user

    @staticmethod
    def get_current_tenant_id(session):
        """Get current tenant ID from session"""
        return session.get('tenant_id')

    @staticmethod
    def get_session_info(session):
        """Get complete session information"""
        if not SessionManager.is_authenticated(session):
            return None

        return {
            'user_id': session.get('user_id'),
            'role': session.get('role'),
            'tenant_id': session.get('tenant_id'),
            'email': session.get('email'),
            'login_time': session.get('login_time')
        }
