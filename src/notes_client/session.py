"""Client session: the stored token and the user it resolves to."""
import logging

from email_validator import EmailNotValidError, validate_email

from notes_client.api_client import ApiClient
from notes_client.errors import ApiError
from notes_client.local_store import TOKEN_KEY, KeyValueStore
from notes_client.models import User

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
MIN_PASSWORD_LENGTH = 6


class SessionState:
    """
    Tracks who is logged in.

    The token lives only in the local store; the API client reads it from here
    on every request. Attaching a session to an ApiClient makes 401 responses
    drop the token and point redirect_to at the login page.
    """

    def __init__(self, api: ApiClient, store: KeyValueStore) -> None:
        self.api = api
        self.store = store
        self.user: User | None = None
        self.loading = True
        self.error: str | None = None
        self.redirect_to: str | None = None
        self._restored = False
        api.session = self

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def current_token(self) -> str | None:
        return self.store.get(TOKEN_KEY)

    def expire(self) -> None:
        """Forget the token and user after the server rejected them."""
        logger.info("Session expired, redirecting to login")
        self.store.remove(TOKEN_KEY)
        self.user = None
        self.redirect_to = LOGIN_PATH

    async def restore(self) -> bool:
        """
        Resolve the stored token to a user, once per session lifetime.

        Later calls return the current authentication state without a request.
        """
        if self._restored:
            return self.is_authenticated
        self._restored = True
        if self.current_token() is None:
            self.loading = False
            return False
        return await self.load_user()

    async def load_user(self) -> bool:
        """Fetch the user for the stored token; an invalid token is dropped."""
        try:
            self.user = await self.api.get_user()
        except ApiError:
            self.store.remove(TOKEN_KEY)
            self.user = None
            return False
        finally:
            self.loading = False
        self.redirect_to = None
        return True

    async def register(self, name: str, email: str, password: str) -> bool:
        """Create an account and log in as it."""
        problem = _registration_problem(name, email, password)
        if problem is not None:
            self.error = problem
            return False
        self.loading = True
        try:
            token = await self.api.register(name.strip(), email, password)
        except ApiError as e:
            self.loading = False
            self.error = e.user_message("Registration failed. Please try again.")
            return False
        self.store.set(TOKEN_KEY, token)
        return await self.load_user()

    async def login(self, email: str, password: str) -> bool:
        self.loading = True
        try:
            token = await self.api.login(email, password)
        except ApiError as e:
            self.loading = False
            self.error = e.user_message("Invalid credentials. Please try again.")
            return False
        self.store.set(TOKEN_KEY, token)
        return await self.load_user()

    def logout(self) -> None:
        self.store.remove(TOKEN_KEY)
        self.user = None
        self.loading = False

    def clear_error(self) -> None:
        self.error = None


def _registration_problem(name: str, email: str, password: str) -> str | None:
    """Return a user-facing message for invalid registration input, else None."""
    if not name or not name.strip():
        return "Please enter your name"
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return "Please enter a valid email"
    if len(password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    return None
