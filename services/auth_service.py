# designflow/services/auth_service.py
import logging

from connectors.supabase_connector import SupabaseError
from services.result import AuthenticationError, Result

logger = logging.getLogger(__name__)


class CredentialGate:
    """
    State behind the login form: the two credential fields, an in-flight flag and the last error.
    Every submission is independent; there is no retry or lockout.
    """

    def __init__(self, auth):
        self.auth = auth
        self.email = ""
        self.password = ""
        self.in_flight = False
        self.error = ""

    def submit(self, email=None, password=None):
        """
        Signs in with the given (or stored) credentials.
        :return: Result with the user dict, or an AuthenticationError carrying the server's message.
        """
        if email is not None:
            self.email = email
        if password is not None:
            self.password = password
        self.error = ""
        self.in_flight = True
        try:
            user = self.auth.sign_in_with_password(self.email, self.password)
        except SupabaseError as e:
            logger.warning(f"Sign in failed for {self.email}: {e}")
            self.error = str(e)
            return Result.failure(AuthenticationError(str(e)))
        finally:
            self.in_flight = False
        self.password = ""
        return Result.success(user)
